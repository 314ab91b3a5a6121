from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import Enum as SQLAlchemyEnum
from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column

from praktijk.db import db
from praktijk.model.enums import ImportSource, InsuranceCompany

if TYPE_CHECKING:
    from flask_sqlalchemy.model import Model
else:
    Model = db.Model


class Client(Model):
    """
    A dietitian's client. Every `*_encrypted` column holds a ciphertext blob under the owning
    user's key, `None` when the value was never set.
    """

    __tablename__ = "clients"

    id: Mapped[str] = mapped_column(db.String(36), primary_key=True, default=lambda: str(uuid4()))
    user_id: Mapped[str] = mapped_column(db.ForeignKey("users.id"), index=True, nullable=False)

    name_encrypted: Mapped[str] = mapped_column(db.Text, nullable=False)
    email_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    phone_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    date_of_birth_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    notes_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    insurance_number_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)
    medical_conditions_encrypted: Mapped[Optional[str]] = mapped_column(db.Text)

    insurance_company: Mapped[InsuranceCompany] = mapped_column(
        SQLAlchemyEnum(InsuranceCompany, native_enum=False),
        nullable=False,
    )
    import_source: Mapped[ImportSource] = mapped_column(
        SQLAlchemyEnum(ImportSource, native_enum=False),
        default=ImportSource.MANUAL,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(db.DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<Client {self.id}>"
