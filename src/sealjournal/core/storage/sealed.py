"""
Sealed storage: password encryption plus tamper evidence for one document.

A document is sealed into a pair of files:

- the **ciphertext file**, a JSON object holding the AES-256-GCM ciphertext
  of ``{"payload": ..., "privateKey": ...}`` together with its salt, IV,
  tag, a SHA-256 digest and an Ed25519 signature over the ciphertext;
- the **public-key file**, the PEM public half of the signing keypair.

A fresh Ed25519 keypair is generated on every seal. The private half only
ever exists inside the encrypted plaintext, so whoever can decrypt also
recovers the key that signed that generation.

Unsealing verifies the signature and the digest before any key derivation
is attempted. Decryption failures are reported as a single
:class:`CryptoError` whether the password was wrong or the ciphertext was
damaged, so the store never acts as a password oracle.

The two files are each replaced atomically, but not as one commit. A crash
between the two writes leaves a mismatched pair; ``publicKeyHash`` in the
ciphertext file makes that state detectable as
``IntegrityError("public key mismatch")`` instead of a bare signature failure.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import hashlib
import json
import os
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiofiles.os
from cryptography.exceptions import InvalidSignature, InvalidTag
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from loguru import logger

from sealjournal.core.exceptions import (
    CryptoError,
    IntegrityError,
    StoreNotFoundError,
    ValidationError,
)
from sealjournal.core.utils.file_io import atomic_write_text, read_text

# Fixed cost parameters. Changing any of these makes existing files unreadable.
PBKDF2_ITERATIONS = 100_000
KEY_LENGTH = 32
SALT_LENGTH = 16
IV_LENGTH = 12
TAG_LENGTH = 16

_REQUIRED_FIELDS = ("timestamp", "hash", "salt", "iv", "tag", "data", "signature")


def _b64encode(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(value: str, field_name: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise IntegrityError(f"malformed sealed file: field '{field_name}' is not base64") from e


def _sha256_hex(raw: bytes) -> str:
    return hashlib.sha256(raw).hexdigest()


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class SealedFile:
    """On-disk form of a sealed document. Binary fields are base64 strings."""

    timestamp: str
    hash: str
    salt: str
    iv: str
    tag: str
    data: str
    signature: str
    public_key_hash: str | None = None

    def to_dict(self) -> dict[str, str]:
        out = {
            "timestamp": self.timestamp,
            "hash": self.hash,
            "salt": self.salt,
            "iv": self.iv,
            "tag": self.tag,
            "data": self.data,
            "signature": self.signature,
        }
        if self.public_key_hash:
            out["publicKeyHash"] = self.public_key_hash
        return out

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_dict(cls, raw: Any) -> SealedFile:
        if not isinstance(raw, dict):
            raise IntegrityError("malformed sealed file: expected a JSON object")
        missing = [name for name in _REQUIRED_FIELDS if not isinstance(raw.get(name), str)]
        if missing:
            raise IntegrityError(f"malformed sealed file: missing {', '.join(missing)}")
        public_key_hash = raw.get("publicKeyHash")
        return cls(
            timestamp=raw["timestamp"],
            hash=raw["hash"],
            salt=raw["salt"],
            iv=raw["iv"],
            tag=raw["tag"],
            data=raw["data"],
            signature=raw["signature"],
            public_key_hash=public_key_hash if isinstance(public_key_hash, str) else None,
        )

    @classmethod
    def from_json(cls, text: str) -> SealedFile:
        try:
            raw = json.loads(text)
        except json.JSONDecodeError as e:
            raise IntegrityError("malformed sealed file: not valid JSON") from e
        return cls.from_dict(raw)


@dataclass
class Unsealed:
    """Result of a successful unseal."""

    payload: Any
    private_key: str

    def to_dict(self) -> dict[str, Any]:
        return {"payload": self.payload, "privateKey": self.private_key}


# ── Pure transformations ────────────────────────────────────────────


def derive_key(password: str, salt: bytes) -> bytes:
    """Derive the AES-256 key with PBKDF2-HMAC-SHA256 at the fixed iteration count."""
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(password.encode("utf-8"))


def seal_payload(password: str, payload: Any) -> tuple[SealedFile, str]:
    """Encrypt and sign ``payload``.

    Returns:
        The sealed file and the PEM public key that must be stored with it.
    """
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    key = derive_key(password, salt)

    private_key = Ed25519PrivateKey.generate()
    private_pem = private_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = (
        private_key.public_key()
        .public_bytes(serialization.Encoding.PEM, serialization.PublicFormat.SubjectPublicKeyInfo)
        .decode("ascii")
    )

    try:
        plaintext = json.dumps({"payload": payload, "privateKey": private_pem}).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ValidationError(f"payload is not JSON serializable: {e}") from e

    # AESGCM appends the tag to the ciphertext; the file stores them apart
    sealed_bytes = AESGCM(key).encrypt(iv, plaintext, None)
    ciphertext, tag = sealed_bytes[:-TAG_LENGTH], sealed_bytes[-TAG_LENGTH:]

    signature = private_key.sign(ciphertext)

    sealed = SealedFile(
        timestamp=_utc_timestamp(),
        hash=_sha256_hex(ciphertext),
        salt=_b64encode(salt),
        iv=_b64encode(iv),
        tag=_b64encode(tag),
        data=_b64encode(ciphertext),
        signature=_b64encode(signature),
        public_key_hash=_sha256_hex(public_pem.encode("ascii")),
    )
    return sealed, public_pem


def _load_public_key(public_pem: str) -> Ed25519PublicKey:
    try:
        public_key = serialization.load_pem_public_key(public_pem.encode("ascii"))
    except (ValueError, UnicodeEncodeError) as e:
        raise IntegrityError("invalid public key") from e
    if not isinstance(public_key, Ed25519PublicKey):
        raise IntegrityError("invalid public key: not Ed25519")
    return public_key


def verify_sealed(sealed: SealedFile, public_pem: str) -> bytes:
    """Run the mandatory checks on a sealed file and return its ciphertext.

    Raises:
        IntegrityError: on a mismatched key pair, a bad signature or a bad digest.
    """
    if sealed.public_key_hash:
        try:
            pem_bytes = public_pem.encode("ascii")
        except UnicodeEncodeError as e:
            raise IntegrityError("malformed sealed file: public key is not ASCII") from e
        if sealed.public_key_hash != _sha256_hex(pem_bytes):
            raise IntegrityError("public key mismatch")

    public_key = _load_public_key(public_pem)
    ciphertext = _b64decode(sealed.data, "data")
    signature = _b64decode(sealed.signature, "signature")

    try:
        public_key.verify(signature, ciphertext)
    except InvalidSignature as e:
        raise IntegrityError("signature verification failed") from e

    # Digest recorded at seal time
    if _sha256_hex(ciphertext) != sealed.hash:
        raise IntegrityError("hash mismatch")

    return ciphertext


def unseal_payload(password: str, sealed: SealedFile, public_pem: str) -> Unsealed:
    """Verify and decrypt a sealed file."""
    ciphertext = verify_sealed(sealed, public_pem)

    salt = _b64decode(sealed.salt, "salt")
    iv = _b64decode(sealed.iv, "iv")
    tag = _b64decode(sealed.tag, "tag")
    key = derive_key(password, salt)

    try:
        plaintext = AESGCM(key).decrypt(iv, ciphertext + tag, None)
        content = json.loads(plaintext.decode("utf-8"))
    except (InvalidTag, ValueError) as e:
        # One error for wrong password and corrupted ciphertext alike
        raise CryptoError() from e

    if not isinstance(content, dict) or "payload" not in content or not isinstance(content.get("privateKey"), str):
        raise CryptoError()
    return Unsealed(payload=content["payload"], private_key=content["privateKey"])


# ── File-backed store ───────────────────────────────────────────────


class SealedStore:
    """A ciphertext file and its paired public-key file.

    Crypto runs in a worker thread via ``asyncio.to_thread`` so key derivation
    never blocks the event loop; file access goes through aiofiles. The store
    itself does no serialization; callers that mutate concurrently must
    order their calls (see ``JournalTransactor``).

    Args:
        data_path: Path of the ciphertext JSON file.
        public_key_path: Path of the PEM public-key file.
    """

    def __init__(self, data_path: str | Path, public_key_path: str | Path):
        self.data_path = Path(data_path).expanduser()
        self.public_key_path = Path(public_key_path).expanduser()

    def __repr__(self) -> str:
        return f"SealedStore(data_path='{self.data_path}', public_key_path='{self.public_key_path}')"

    async def exists(self) -> bool:
        """Whether a ciphertext file is present.

        A ciphertext file without its public key still counts as existing;
        ``unseal`` then fails with ``StoreNotFoundError`` rather than the pair
        being mistaken for a fresh store.
        """
        return await aiofiles.os.path.exists(self.data_path)

    async def seal(self, password: str, payload: Any) -> SealedFile:
        """Encrypt, sign and write ``payload``, replacing the current pair."""
        sealed, public_pem = await asyncio.to_thread(seal_payload, password, payload)

        await atomic_write_text(self.data_path, sealed.to_json())
        await atomic_write_text(self.public_key_path, public_pem)

        logger.debug(f"Sealed {self.data_path.name} at {sealed.timestamp}")
        return sealed

    async def _read_pair(self) -> tuple[SealedFile, str]:
        try:
            file_text, public_pem = await asyncio.gather(
                read_text(self.data_path),
                read_text(self.public_key_path),
            )
        except FileNotFoundError as e:
            raise StoreNotFoundError(f"Sealed store not found: {e.filename}") from e
        except UnicodeDecodeError as e:
            raise IntegrityError("malformed sealed file: not valid UTF-8") from e
        return SealedFile.from_json(file_text), public_pem

    async def verify(self) -> SealedFile:
        """Check signature and digest without a password."""
        try:
            sealed, public_pem = await self._read_pair()
            await asyncio.to_thread(verify_sealed, sealed, public_pem)
        except IntegrityError as e:
            logger.warning(f"Integrity check failed for {self.data_path.name}: {e}")
            raise
        return sealed

    async def unseal(self, password: str) -> Unsealed:
        """Read, verify and decrypt the current pair."""
        try:
            sealed, public_pem = await self._read_pair()
            unsealed = await asyncio.to_thread(unseal_payload, password, sealed, public_pem)
        except IntegrityError as e:
            logger.warning(f"Integrity check failed for {self.data_path.name}: {e}")
            raise
        except CryptoError:
            logger.warning(f"Could not decrypt {self.data_path.name}")
            raise
        logger.debug(f"Unsealed {self.data_path.name} (saved {sealed.timestamp})")
        return unsealed
