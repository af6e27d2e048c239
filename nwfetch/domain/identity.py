"""Client identity: an Ed25519 keypair authenticating every connection."""
from __future__ import annotations

import hashlib
import threading

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import (
    Ed25519PrivateKey,
    Ed25519PublicKey,
)

from nwfetch.domain.errors import IdentityError

SEED_SIZE = 32


class Keypair:
    """Ed25519 keypair.

    The 32-byte seed is held in a mutable buffer so `clear` can zero it.
    After `clear` the keypair can no longer sign; the public key stays readable.
    """

    def __init__(self, seed: bytes) -> None:
        if len(seed) != SEED_SIZE:
            raise IdentityError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
        self._lock = threading.Lock()
        self._seed = bytearray(seed)
        try:
            self._private: Ed25519PrivateKey | None = Ed25519PrivateKey.from_private_bytes(bytes(seed))
        except (ValueError, TypeError) as exc:
            raise IdentityError(f"invalid seed: {exc}") from exc
        self._public_key = self._private.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @classmethod
    def generate(cls) -> "Keypair":
        try:
            private = Ed25519PrivateKey.generate()
            seed = private.private_bytes(
                encoding=serialization.Encoding.Raw,
                format=serialization.PrivateFormat.Raw,
                encryption_algorithm=serialization.NoEncryption(),
            )
        except Exception as exc:
            raise IdentityError(f"keypair generation failed: {exc}") from exc
        return cls(seed)

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        """Derive a deterministic keypair; the same seed always yields the same identity."""
        return cls(bytes(seed))

    @classmethod
    def from_hex_seed(cls, seed_hex: str) -> "Keypair":
        return cls(seed_from_hex(seed_hex))

    @property
    def public_key(self) -> bytes:
        return self._public_key

    @property
    def node_id(self) -> str:
        """Stable short identifier derived from the public key."""
        return hashlib.sha256(self._public_key).hexdigest()[:32]

    @property
    def cleared(self) -> bool:
        return self._private is None

    def sign(self, data: bytes) -> bytes:
        with self._lock:
            if self._private is None:
                raise IdentityError("keypair has been cleared")
            return self._private.sign(data)

    def clear(self) -> None:
        """Zero the seed and drop the private key. Safe to call more than once."""
        with self._lock:
            for i in range(len(self._seed)):
                self._seed[i] = 0
            self._private = None

    def __repr__(self) -> str:
        return f"Keypair(node_id={self.node_id!r}, cleared={self.cleared})"


def seed_from_hex(seed_hex: str) -> bytes:
    try:
        seed = bytes.fromhex(seed_hex.strip())
    except ValueError as exc:
        raise IdentityError("seed is not valid hex") from exc
    if len(seed) != SEED_SIZE:
        raise IdentityError(f"seed must be {SEED_SIZE} bytes, got {len(seed)}")
    return seed


def verify_signature(public_key: bytes, signature: bytes, data: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, data)
    except (InvalidSignature, ValueError):
        return False
    return True
