from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Generator, Optional

from flask import current_app

from praktijk.crypto.errors import SaltNotFoundError
from praktijk.crypto.kdf import derive_server_key

if TYPE_CHECKING:
    from praktijk.config import EncryptionSettings

SaltLookup = Callable[[str], Optional[str]]


def _default_salt_lookup(user_id: str) -> Optional[str]:
    from praktijk.users import get_encryption_key_salt

    return get_encryption_key_salt(user_id)


def resolve_user_key(
    user_id: str,
    *,
    salt_lookup: Optional[SaltLookup] = None,
    settings: Optional["EncryptionSettings"] = None,
) -> bytearray:
    """
    Derive the field encryption key for a user. Call this once per data access operation and
    discard the key afterwards, it must not be cached across requests.
    """
    if salt_lookup is None:
        salt_lookup = _default_salt_lookup
    if settings is None:
        settings = current_app.config["ENCRYPTION"]

    salt = salt_lookup(user_id)
    if not salt:
        raise SaltNotFoundError(user_id)

    return derive_server_key(
        user_id, salt, settings.server_secret, iterations=settings.kdf_iterations
    )


@contextmanager
def user_key(user_id: str, **kwargs: Any) -> Generator[bytearray, None, None]:
    """
    Resolve a user's key for the duration of one operation and wipe it afterwards.
    """
    key = resolve_user_key(user_id, **kwargs)
    try:
        yield key
    finally:
        key.clear()
