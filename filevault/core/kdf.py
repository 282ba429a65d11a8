from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from nacl.utils import random as nacl_random

from .errors import ValidationError
from .format_config import (
    DEFAULT_ITERATIONS,
    KEY_SIZE,
    MAX_ITERATIONS,
    MIN_ITERATIONS,
    SALT_SIZE,
)
from ..utils.secure_memory import secure_zero


@dataclass(frozen=True)
class KeyDerivationParams:
    salt: bytes
    iterations: int = DEFAULT_ITERATIONS
    key_length: int = KEY_SIZE

    @classmethod
    def generate(cls, iterations: int = DEFAULT_ITERATIONS) -> "KeyDerivationParams":
        return cls(salt=nacl_random(SALT_SIZE), iterations=iterations)


def validate_iterations(iterations: int) -> int:
    if isinstance(iterations, bool) or not isinstance(iterations, int):
        raise ValidationError("iterations must be an integer")
    if not MIN_ITERATIONS <= iterations <= MAX_ITERATIONS:
        raise ValidationError(
            f"iterations must be between {MIN_ITERATIONS} and {MAX_ITERATIONS}, got {iterations}"
        )
    return iterations


def _password_bytes(password: Union[str, bytes, bytearray]) -> bytearray:
    # No Unicode normalization: containers must open with the exact UTF-8 bytes used to seal them.
    if isinstance(password, str):
        return bytearray(password.encode("utf-8"))
    if isinstance(password, (bytes, bytearray)):
        return bytearray(password)
    raise TypeError("password must be str, bytes, or bytearray")


def derive_key(password: Union[str, bytes, bytearray], salt: bytes, iterations: int = DEFAULT_ITERATIONS) -> bytearray:
    """
    Derive a 32-byte AES-256 key with PBKDF2-HMAC-SHA256.

    Returns a bytearray so the caller can zero it once the cipher is done.
    """
    if not isinstance(salt, (bytes, bytearray)) or len(salt) == 0:
        raise ValueError("salt must be non-empty bytes")
    validate_iterations(iterations)

    secret = _password_bytes(password)
    try:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=KEY_SIZE,
            salt=bytes(salt),
            iterations=iterations,
        )
        return bytearray(kdf.derive(bytes(secret)))
    finally:
        secure_zero(secret)


def derive_key_with_params(password: Union[str, bytes, bytearray], params: KeyDerivationParams) -> bytearray:
    if params.key_length != KEY_SIZE:
        raise ValidationError(f"key_length must be {KEY_SIZE} bytes for AES-256")
    return derive_key(password, params.salt, params.iterations)
