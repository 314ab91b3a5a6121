import enum


@enum.unique
class InsuranceCompany(enum.Enum):
    CHRISTELIJKE = "Christelijke"
    LIBERALE = "Liberale"
    SOLIDARIS = "Solidaris"
    HELAN = "Helan"
    VLAAMS_NEUTRAAL = "Vlaams/Neutraal"


@enum.unique
class AppointmentStatus(enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    RESCHEDULED = "rescheduled"

    @classmethod
    def default(cls) -> "AppointmentStatus":
        return cls.SCHEDULED


@enum.unique
class MedicalCondition(enum.Enum):
    """Conditions that qualify a client for Solidaris dietary reimbursement"""

    ALLERGIES = "allergies"
    INTOLERANCES = "intolerances"
    CHRONIC_KIDNEY_DISEASE = "chronic_kidney_disease"
    EATING_DISORDER = "eating_disorder"
    MALNUTRITION = "malnutrition"
    OBESITY = "obesity"


@enum.unique
class ImportSource(enum.Enum):
    MANUAL = "manual"
    CSV = "csv"
