from typing import Optional

from flask import current_app

from praktijk.db import db
from praktijk.model import User


def create_user(
    email: str, name: str, clinic_name: Optional[str] = None, user_id: Optional[str] = None
) -> User:
    """
    Create the practitioner's record. `user_id` is the identity provider's id for the account.
    The encryption key salt is generated here, exactly once.
    """
    user = User(email=email, name=name, clinic_name=clinic_name, id=user_id)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"Created user {user.id}")
    return user


def get_user_by_id(user_id: str) -> User | None:
    return db.session.scalars(
        db.select(User).filter(User.id == user_id, User.deleted_at.is_(None))
    ).one_or_none()


def get_user_by_email(email: str) -> User | None:
    return db.session.scalars(
        db.select(User).filter(User.email == email, User.deleted_at.is_(None))
    ).one_or_none()


def get_encryption_key_salt(user_id: str) -> str | None:
    return db.session.scalar(db.select(User._encryption_key_salt).filter(User.id == user_id))
