"""AES-256-GCM over a single contiguous buffer with a detached tag."""

from dataclasses import dataclass
from typing import Optional, Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from nacl.utils import random as nacl_random

from .errors import AuthenticationError, FileTooLargeError
from .format_config import KEY_SIZE, MAX_AEAD_PAYLOAD, NONCE_SIZE, TAG_SIZE
from ..utils.secure_memory import secure_zero

BufferLike = Union[bytes, bytearray, memoryview]


@dataclass(frozen=True)
class EncryptedPayload:
    nonce: bytes
    ciphertext: bytes
    tag: bytes


def _aesgcm(key: BufferLike) -> AESGCM:
    if len(key) != KEY_SIZE:
        raise ValueError(f"key must be exactly {KEY_SIZE} bytes")
    return AESGCM(key)


def generate_nonce() -> bytes:
    return nacl_random(NONCE_SIZE)


def encrypt(plaintext: BufferLike, key: BufferLike, associated_data: Optional[bytes] = None) -> EncryptedPayload:
    """Encrypt under a fresh random nonce; never call with a caller-chosen nonce."""
    if len(plaintext) > MAX_AEAD_PAYLOAD:
        raise FileTooLargeError(f"Payload of {len(plaintext)} bytes exceeds the single-buffer limit")
    nonce = generate_nonce()
    sealed = _aesgcm(key).encrypt(nonce, plaintext, associated_data)
    return EncryptedPayload(nonce=nonce, ciphertext=sealed[:-TAG_SIZE], tag=sealed[-TAG_SIZE:])


def decrypt(nonce: bytes, ciphertext: BufferLike, tag: bytes, key: BufferLike,
            associated_data: Optional[bytes] = None) -> bytearray:
    """Verify the tag and return the plaintext; nothing is returned on failure.

    Wiping is best effort: ``AESGCM.decrypt`` hands back immutable ``bytes``,
    which are copied into the returned bytearray. Callers can zero that copy,
    but the intermediate ``bytes`` object stays in memory until it is
    garbage-collected.
    """
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes")
    if len(tag) != TAG_SIZE:
        raise ValueError(f"tag must be {TAG_SIZE} bytes")
    sealed = bytearray(ciphertext)
    sealed += tag
    try:
        plaintext = _aesgcm(key).decrypt(nonce, sealed, associated_data)
    except InvalidTag as exc:
        raise AuthenticationError("Decryption failed: wrong password or corrupted file") from exc
    finally:
        secure_zero(sealed)
    return bytearray(plaintext)
