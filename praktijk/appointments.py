from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional, Sequence

from flask import current_app
from sqlalchemy import Select

from praktijk.crypto import decrypt_fields, user_key
from praktijk.crypto.db_field_encryption import encrypt_field
from praktijk.db import db
from praktijk.model import Appointment, AppointmentStatus, AppointmentType


@dataclass
class AppointmentTypeRecord:
    id: str
    name: str
    price: float
    duration_minutes: int
    is_custom: bool
    user_id: Optional[str] = None


@dataclass
class AppointmentRecord:
    """The decrypted view of an appointment"""

    id: str
    user_id: str
    appointment_type: Optional[AppointmentTypeRecord]
    client_ids: list[str]
    start_time: datetime
    end_time: datetime
    status: AppointmentStatus
    notes: Optional[str] = None
    completed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    undecryptable_fields: frozenset[str] = field(default_factory=frozenset)


def _type_record(appointment_type: AppointmentType) -> AppointmentTypeRecord:
    return AppointmentTypeRecord(
        id=appointment_type.id,
        user_id=appointment_type.user_id,
        name=appointment_type.name,
        price=float(appointment_type.price),
        duration_minutes=appointment_type.duration_minutes
        or AppointmentType.DEFAULT_DURATION_MINUTES,
        is_custom=appointment_type.is_custom,
    )


def get_appointment_types(user_id: str) -> list[AppointmentTypeRecord]:
    rows = db.session.scalars(
        db.select(AppointmentType)
        .filter(AppointmentType.user_id == user_id)
        .order_by(AppointmentType.name.asc())
    ).all()
    return [_type_record(row) for row in rows]


def create_appointment_type(
    user_id: str,
    *,
    name: str,
    price: Decimal | float | str | None,
    duration_minutes: Optional[int] = None,
) -> AppointmentTypeRecord:
    """
    Create a custom appointment type. The name is trimmed, a missing duration falls back to
    `AppointmentType.DEFAULT_DURATION_MINUTES`.
    """
    name = (name or "").strip()
    if not name or price is None:
        raise ValueError("Name and price are required")
    try:
        amount = Decimal(str(price))
    except InvalidOperation:
        raise ValueError(f"Invalid price: {price!r}")
    if not duration_minutes:
        duration_minutes = AppointmentType.DEFAULT_DURATION_MINUTES

    row = AppointmentType(
        user_id=user_id,  # type: ignore[call-arg]
        name=name,  # type: ignore[call-arg]
        price=amount,  # type: ignore[call-arg]
        duration_minutes=duration_minutes,  # type: ignore[call-arg]
        is_custom=True,  # type: ignore[call-arg]
    )
    db.session.add(row)
    db.session.commit()

    current_app.logger.info(f"Created appointment type {row.id} for user {user_id}")
    return _type_record(row)


def _decrypt_row(row: Appointment, key: bytearray) -> AppointmentRecord:
    decrypted = decrypt_fields({"notes_encrypted": row.notes_encrypted}, key)
    if decrypted.failed:
        current_app.logger.warning(f"Appointment {row.id} has undecryptable notes")

    return AppointmentRecord(
        id=row.id,
        user_id=row.user_id,
        appointment_type=_type_record(row.appointment_type) if row.appointment_type else None,
        client_ids=row.client_ids,
        start_time=row.start_time,
        end_time=row.end_time,
        status=row.status,
        notes=decrypted.get("notes_encrypted") or None,
        completed_at=row.completed_at,
        created_at=row.created_at,
        undecryptable_fields=decrypted.failed,
    )


def _select_appointments(user_id: str) -> Select[tuple[Appointment]]:
    return db.select(Appointment).filter(
        Appointment.user_id == user_id, Appointment.deleted_at.is_(None)
    )


def _get_row(user_id: str, appointment_id: str) -> Appointment | None:
    return db.session.scalars(
        _select_appointments(user_id).filter(Appointment.id == appointment_id)
    ).one_or_none()


def get_appointments(
    user_id: str,
    *,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    client_id: Optional[str] = None,
) -> list[AppointmentRecord]:
    query = _select_appointments(user_id).order_by(Appointment.start_time.asc())
    if start is not None:
        query = query.filter(Appointment.start_time >= start)
    if end is not None:
        query = query.filter(Appointment.end_time <= end)
    if client_id:
        # client ids are stored as a JSON list of strings
        query = query.filter(
            Appointment.client_ids_json.contains(f'"{client_id}"', autoescape=True)
        )

    rows = db.session.scalars(query).all()
    if not rows:
        return []

    with user_key(user_id) as key:
        return [_decrypt_row(row, key) for row in rows]


def get_appointment_by_id(user_id: str, appointment_id: str) -> AppointmentRecord | None:
    if (row := _get_row(user_id, appointment_id)) is None:
        return None

    with user_key(user_id) as key:
        return _decrypt_row(row, key)


def create_appointment(  # noqa: PLR0913
    user_id: str,
    *,
    appointment_type_id: str,
    client_ids: Sequence[str],
    start_time: datetime,
    end_time: datetime,
    notes: Optional[str] = None,
) -> AppointmentRecord:
    with user_key(user_id) as key:
        row = Appointment(
            user_id=user_id,  # type: ignore[call-arg]
            appointment_type_id=appointment_type_id,  # type: ignore[call-arg]
            start_time=start_time,  # type: ignore[call-arg]
            end_time=end_time,  # type: ignore[call-arg]
            status=AppointmentStatus.default(),  # type: ignore[call-arg]
            notes_encrypted=encrypt_field(notes, key) or None,  # type: ignore[call-arg]
        )
        row.client_ids = list(client_ids)
        db.session.add(row)
        db.session.commit()

        current_app.logger.info(f"Created appointment {row.id} for user {user_id}")
        return _decrypt_row(row, key)


def update_appointment(
    user_id: str, appointment_id: str, updates: Mapping[str, Any]
) -> AppointmentRecord | None:
    """
    Apply a partial update. Setting the status to completed stamps `completed_at`, any other
    status clears it. Notes are only re-encrypted when present in `updates`.
    """
    if (row := _get_row(user_id, appointment_id)) is None:
        return None

    with user_key(user_id) as key:
        if appointment_type_id := updates.get("appointment_type_id"):
            row.appointment_type_id = appointment_type_id
        if (client_ids := updates.get("client_ids")) is not None:
            row.client_ids = list(client_ids)
        if start_time := updates.get("start_time"):
            row.start_time = start_time
        if end_time := updates.get("end_time"):
            row.end_time = end_time
        if (status := updates.get("status")) is not None:
            row.status = AppointmentStatus(status)
            if row.status == AppointmentStatus.COMPLETED:
                row.completed_at = datetime.now(timezone.utc)
            else:
                row.completed_at = None
        if "notes" in updates:
            row.notes_encrypted = encrypt_field(updates["notes"] or None, key) or None

        db.session.commit()
        # the type relationship is stale if the type id changed
        db.session.refresh(row)
        return _decrypt_row(row, key)


def delete_appointment(user_id: str, appointment_id: str) -> bool:
    if (row := _get_row(user_id, appointment_id)) is None:
        return False

    row.deleted_at = datetime.now(timezone.utc)
    db.session.commit()
    current_app.logger.info(f"Deleted appointment {appointment_id} for user {user_id}")
    return True
