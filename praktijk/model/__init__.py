# ruff: noqa: F401

from praktijk.model.appointment import Appointment, AppointmentType
from praktijk.model.client import Client
from praktijk.model.enums import (
    AppointmentStatus,
    ImportSource,
    InsuranceCompany,
    MedicalCondition,
)
from praktijk.model.user import User
