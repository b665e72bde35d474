"""
Sealed storage for sealjournal.

Password-encrypted, signed persistence of a single JSON document as a
ciphertext file plus a paired public-key file.
"""

from .sealed import (
    PBKDF2_ITERATIONS,
    SealedFile,
    SealedStore,
    Unsealed,
    derive_key,
    seal_payload,
    unseal_payload,
    verify_sealed,
)

__all__ = [
    "PBKDF2_ITERATIONS",
    "SealedFile",
    "SealedStore",
    "Unsealed",
    "derive_key",
    "seal_payload",
    "unseal_payload",
    "verify_sealed",
]
