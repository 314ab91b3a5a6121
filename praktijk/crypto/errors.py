class CryptoError(Exception):
    pass


class DecryptionError(CryptoError):
    """A ciphertext blob was malformed or did not authenticate under the given key."""


class SaltNotFoundError(CryptoError):
    """No encryption key salt is on record for a user, so no key can be derived."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"Encryption key salt not found for user {user_id!r}")
        self.user_id = user_id
