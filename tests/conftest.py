from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Generator

import pytest
from flask import Flask
from pytest_mock import MockFixture

from praktijk import create_app
from praktijk.config import load_config
from praktijk.crypto.kdf import _PBKDF2_PARAMS
from praktijk.db import db
from praktijk.model import AppointmentType, User
from praktijk.users import create_user

TEST_SERVER_SECRET = "test-secret"
TEST_SALT = "a1b2c3d4e5f6a7b8c9d0e1f2a3b4c5d6"


@pytest.fixture(autouse=True)
def _insecure_kdf_params(mocker: MockFixture) -> None:
    mocker.patch.dict(_PBKDF2_PARAMS, {"iterations": 10}, clear=True)


@pytest.fixture()
def key() -> bytes:
    return bytes(range(32))


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    config = load_config(
        {
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "PRAKTIJK_ENCRYPTION_SECRET": TEST_SERVER_SECRET,
        }
    )
    app = create_app(config)
    app.config["TESTING"] = True

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def user(app: Flask) -> User:
    return create_user(email="dietist@example.com", name="An Peeters", clinic_name="Praktijk An")


@pytest.fixture()
def other_user(app: Flask) -> User:
    return create_user(email="collega@example.com", name="Bert Claes")


@pytest.fixture()
def appointment_type(app: Flask, user: User) -> AppointmentType:
    appointment_type = AppointmentType(
        user_id=user.id,  # type: ignore[call-arg]
        name="Eerste consultatie",  # type: ignore[call-arg]
        price=Decimal("45.00"),  # type: ignore[call-arg]
        duration_minutes=60,  # type: ignore[call-arg]
        is_custom=False,  # type: ignore[call-arg]
    )
    db.session.add(appointment_type)
    db.session.commit()
    return appointment_type


@pytest.fixture()
def start_time() -> datetime:
    return datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


@pytest.fixture()
def end_time(start_time: datetime) -> datetime:
    return start_time + timedelta(hours=1)
