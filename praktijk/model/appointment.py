import json
from datetime import datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from praktijk.db import db
from praktijk.model.enums import AppointmentStatus

if TYPE_CHECKING:
    from flask_sqlalchemy.model import Model
else:
    Model = db.Model


class AppointmentType(Model):
    __tablename__ = "appointment_types"

    DEFAULT_DURATION_MINUTES = 60

    id: Mapped[str] = mapped_column(db.String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[Optional[str]] = mapped_column(db.ForeignKey("users.id"), index=True)
    name: Mapped[str] = mapped_column(db.String(255), nullable=False)
    price: Mapped[Decimal] = mapped_column(db.Numeric(10, 2), nullable=False)
    duration_minutes: Mapped[int] = mapped_column(default=DEFAULT_DURATION_MINUTES)
    is_custom: Mapped[bool] = mapped_column(default=True)
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<AppointmentType {self.name}>"


class Appointment(Model):
    __tablename__ = "appointments"

    id: Mapped[str] = mapped_column(db.String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(db.ForeignKey("users.id"), index=True, nullable=False)
    appointment_type_id: Mapped[str] = mapped_column(
        db.ForeignKey("appointment_types.id"), nullable=False
    )
    appointment_type: Mapped["AppointmentType"] = relationship(lazy="joined")
    client_ids_json: Mapped[str] = mapped_column(db.Text, default="[]", nullable=False)
    start_time: Mapped[datetime] = mapped_column(db.DateTime(timezone=True), index=True)
    end_time: Mapped[datetime] = mapped_column(db.DateTime(timezone=True))
    status: Mapped[AppointmentStatus] = mapped_column(
        SQLAlchemyEnum(AppointmentStatus, native_enum=False),
        default=AppointmentStatus.SCHEDULED,
        nullable=False,
    )
    notes_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    completed_at: Mapped[Optional[datetime]] = mapped_column(db.DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(db.DateTime(timezone=True))

    @property
    def client_ids(self) -> list[str]:
        return json.loads(self.client_ids_json or "[]")

    @client_ids.setter
    def client_ids(self, value: list[str]) -> None:
        self.client_ids_json = json.dumps(list(value))

    def __repr__(self) -> str:
        return f"<Appointment {self.id}>"
