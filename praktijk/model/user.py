from datetime import datetime
from typing import TYPE_CHECKING, Optional
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.orm import Mapped, mapped_column

from praktijk.crypto import generate_salt
from praktijk.db import db

if TYPE_CHECKING:
    from flask_sqlalchemy.model import Model
else:
    Model = db.Model


class User(Model):
    """
    A practitioner. Authentication lives with the identity provider, this row only carries the
    profile and the salt their field encryption key is derived from.
    """

    __tablename__ = "users"

    EMAIL_MAX_LENGTH = 255
    NAME_MAX_LENGTH = 255
    SALT_MAX_LENGTH = 128

    id: Mapped[str] = mapped_column(db.String(36), primary_key=True)
    email: Mapped[str] = mapped_column(db.String(EMAIL_MAX_LENGTH), unique=True, index=True)
    name: Mapped[str] = mapped_column(db.String(NAME_MAX_LENGTH))
    clinic_name: Mapped[Optional[str]] = mapped_column(db.String(NAME_MAX_LENGTH))
    clinic_address: Mapped[Optional[str]] = mapped_column(db.Text)
    clinic_phone: Mapped[Optional[str]] = mapped_column(db.String(64))
    _encryption_key_salt: Mapped[str] = mapped_column(
        "encryption_key_salt", db.String(SALT_MAX_LENGTH), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        db.DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    deleted_at: Mapped[Optional[datetime]] = mapped_column(db.DateTime(timezone=True))

    def __init__(
        self,
        email: str,
        name: str,
        clinic_name: Optional[str] = None,
        id: Optional[str] = None,
    ) -> None:
        super().__init__(
            id=id or str(uuid4()),  # type: ignore[call-arg]
            email=email,  # type: ignore[call-arg]
            name=name,  # type: ignore[call-arg]
            clinic_name=clinic_name,  # type: ignore[call-arg]
        )
        self.encryption_key_salt = generate_salt()

    @property
    def encryption_key_salt(self) -> str:
        return self._encryption_key_salt

    @encryption_key_salt.setter
    def encryption_key_salt(self, value: str) -> None:
        # changing the salt changes the derived key and orphans everything encrypted under it
        if self._encryption_key_salt is not None and self._encryption_key_salt != value:
            raise ValueError("The encryption key salt cannot be changed once it is set")
        self._encryption_key_salt = value

    def __repr__(self) -> str:
        return f"<User {self.id}>"
