"""
sealjournal exception hierarchy.

All sealjournal exceptions inherit from SealJournalError, making it easy for
consumers to catch library-level errors while still distinguishing specific
failure modes.
"""


class SealJournalError(Exception):
    """Base exception class for all sealjournal errors."""


class ConfigurationError(SealJournalError):
    """Raised for configuration errors (missing keys, invalid values)."""


class ValidationError(SealJournalError):
    """Raised for bad caller input, before any storage is touched."""


class PasswordRequiredError(ValidationError):
    """Raised when an operation is attempted without a password."""

    def __init__(self, message: str = "Password required"):
        super().__init__(message)


class NotFoundError(SealJournalError):
    """Raised when an entry id does not exist anywhere in the journal."""


class StoreError(SealJournalError):
    """Base exception for sealed store failures."""


class IntegrityError(StoreError):
    """Raised when a sealed file fails signature, hash or structure checks."""


class CryptoError(StoreError):
    """Raised for any decryption failure.

    A wrong password and a corrupted ciphertext both surface as this class
    with the same message, so callers cannot tell the two apart.
    """

    def __init__(self, message: str = "decryption failed"):
        super().__init__(message)


class StoreNotFoundError(StoreError):
    """Raised when the ciphertext or public-key file is missing."""
