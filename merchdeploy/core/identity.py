"""Identity store — the deployer's Ed25519 keypair and its keystore file.

Keystore format
---------------
A JSON array of base64 secret keys; index 0 is the active key. Each entry is
``base64(flag || seed)`` with ``flag = 0x00`` (Ed25519), the encoding used by
``sui.keystore``. A bare 32-byte seed is also accepted on load.

Address derivation follows Sui: ``0x`` + hex(BLAKE2b-256(flag || public_key)).
Transaction signatures are Ed25519 over BLAKE2b-256(intent || tx_bytes) and
serialized as ``base64(flag || signature || public_key)``.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
import logging
from pathlib import Path

import nacl.signing

from merchdeploy.errors import ConfigurationError

logger = logging.getLogger(__name__)

ED25519_FLAG = 0x00
# TransactionData intent: scope=0, version=0, app_id=0 (Sui).
TRANSACTION_INTENT = bytes([0, 0, 0])
_SEED_LENGTH = 32


def _blake2b_256(data: bytes) -> bytes:
    return hashlib.blake2b(data, digest_size=32).digest()


class Keypair:
    """An Ed25519 signing key plus its derived network address.

    Immutable once created. Build one with ``generate()`` or
    ``from_secret()``.
    """

    def __init__(self, signing_key: nacl.signing.SigningKey) -> None:
        self._signing_key = signing_key
        self._public_key = bytes(signing_key.verify_key)
        self._address = "0x" + _blake2b_256(
            bytes([ED25519_FLAG]) + self._public_key
        ).hex()

    @classmethod
    def generate(cls) -> Keypair:
        return cls(nacl.signing.SigningKey.generate())

    @classmethod
    def from_secret(cls, encoded: str) -> Keypair:
        """Rebuild a keypair from one keystore entry.

        Raises ``ValueError`` if the entry is not valid base64 or does not
        hold an Ed25519 seed.
        """
        try:
            raw = base64.b64decode(encoded, validate=True)
        except (binascii.Error, TypeError) as exc:
            raise ValueError(f"Keystore entry is not valid base64: {exc}") from exc

        if len(raw) == _SEED_LENGTH + 1:
            if raw[0] != ED25519_FLAG:
                raise ValueError(
                    f"Unsupported signature scheme flag 0x{raw[0]:02x}; only Ed25519 is supported"
                )
            seed = raw[1:]
        elif len(raw) == _SEED_LENGTH:
            seed = raw
        else:
            raise ValueError(
                f"Keystore entry decodes to {len(raw)} bytes; expected 32 or 33"
            )
        return cls(nacl.signing.SigningKey(seed))

    @property
    def address(self) -> str:
        return self._address

    @property
    def public_key(self) -> bytes:
        return self._public_key

    def export_secret(self) -> str:
        """Return the keystore encoding of the private key."""
        return base64.b64encode(
            bytes([ED25519_FLAG]) + bytes(self._signing_key)
        ).decode("ascii")

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Sign raw transaction bytes and return the serialized signature."""
        digest = _blake2b_256(TRANSACTION_INTENT + tx_bytes)
        signature = self._signing_key.sign(digest).signature
        return base64.b64encode(
            bytes([ED25519_FLAG]) + signature + self._public_key
        ).decode("ascii")

    def __repr__(self) -> str:
        return f"<Keypair address={self._address!r}>"


# ---------------------------------------------------------------------------
# Keystore file
# ---------------------------------------------------------------------------


def _read_keystore(path: Path) -> Keypair:
    entries = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(entries, list) or not entries:
        raise ValueError("keystore must be a non-empty JSON array")
    if not isinstance(entries[0], str):
        raise ValueError("keystore entry 0 must be a string")
    return Keypair.from_secret(entries[0])


def save_keystore(keypair: Keypair, path: Path) -> None:
    """Write *keypair* as the only entry of the keystore at *path*."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps([keypair.export_secret()], indent=2), encoding="utf-8")
    logger.info("Keypair saved to keystore %s", path)


def load_or_create(keystore_path: Path, *, persist: bool = False) -> Keypair | None:
    """Load the active keypair, or generate one if no keystore exists.

    A freshly generated key is only written to disk when *persist* is
    ``True`` (the funding flow). A keystore that exists but cannot be parsed
    is reported and ``None`` is returned; the caller decides whether that is
    fatal.
    """
    path = Path(keystore_path)
    if path.exists():
        try:
            keypair = _read_keystore(path)
        except (OSError, ValueError) as exc:
            logger.error("Could not load keypair from %s: %s", path, exc)
            return None
        logger.info("Loaded existing keypair from keystore %s", path)
        return keypair

    keypair = Keypair.generate()
    logger.warning(
        "Generated new keypair with address %s. Please save this keypair securely!",
        keypair.address,
    )
    if persist:
        try:
            save_keystore(keypair, path)
        except OSError as exc:
            logger.error("Could not write keystore %s: %s", path, exc)
            return None
    return keypair


def load(keystore_path: Path) -> Keypair:
    """Load the active keypair; raise ``ConfigurationError`` if unavailable."""
    path = Path(keystore_path)
    if not path.exists():
        raise ConfigurationError(
            f"Keystore not found at {path}. Run `merchdeploy fund` first."
        )
    try:
        return _read_keystore(path)
    except (OSError, ValueError) as exc:
        raise ConfigurationError(f"Could not load keypair from {path}: {exc}") from exc
