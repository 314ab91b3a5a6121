"""
Facilitates the encryption & decryption of the sensitive database fields of one record as a unit.
"""

import logging
from typing import Iterable, Mapping, Optional

from praktijk.crypto.cipher import check_key, decrypt, encrypt
from praktijk.crypto.errors import DecryptionError

logger = logging.getLogger(__name__)


class DecryptedFields(dict[str, str]):
    """
    The plaintext of a field bundle. Fields that failed to decrypt map to an empty string like in
    any plain mapping, and their names are also recorded in `failed` so that a failure can be told
    apart from a value that was genuinely empty.
    """

    def __init__(
        self, values: Optional[Mapping[str, str]] = None, failed: Iterable[str] = ()
    ) -> None:
        super().__init__(values or {})
        self.failed: frozenset[str] = frozenset(failed)


def encrypt_field(data: str | None, key: bytes | bytearray) -> str | None:
    if data is None:
        return None
    return encrypt(data, key)


def decrypt_field(data: str | None, key: bytes | bytearray) -> str | None:
    if data is None:
        return None
    return decrypt(data, key)


def encrypt_fields(fields: Mapping[str, str | None], key: bytes | bytearray) -> dict[str, str]:
    """
    Encrypt every present field. Absent (`None`) fields are left out of the result entirely, an
    empty string is a present value.
    """
    check_key(key)
    return {name: encrypt(value, key) for name, value in fields.items() if value is not None}


def decrypt_fields(fields: Mapping[str, str | None], key: bytes | bytearray) -> DecryptedFields:
    """
    Decrypt every non-empty field. A field that fails to decrypt is reported in `failed` instead
    of raising. A key of the wrong size is a caller error and raises `ValueError` before any
    field is looked at.
    """
    check_key(key)

    values: dict[str, str] = {}
    failed: list[str] = []

    for name, value in fields.items():
        if not value:
            continue

        try:
            values[name] = decrypt(value, key)
        except DecryptionError as e:
            # the value itself is never logged
            logger.warning(f"Failed to decrypt field {name!r}: {e}")
            values[name] = ""
            failed.append(name)

    return DecryptedFields(values, failed)
