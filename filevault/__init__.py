"""FileVault: password-based AES-256-GCM file encryption."""

from .core.decrypt import decrypt_file, decrypt_to_memory
from .core.encrypt import encrypt_file
from .core.errors import (
    AuthenticationError,
    FileVaultError,
    FormatError,
    HeaderCorruptionError,
    SizeMismatchError,
    StorageError,
    ValidationError,
)
from .core.verify import VerificationResult, batch_verify, summarize, verify_deep, verify_file
from .utils.preferences import VaultSettings

__version__ = "1.0.0"

__all__ = [
    "AuthenticationError",
    "FileVaultError",
    "FormatError",
    "HeaderCorruptionError",
    "SizeMismatchError",
    "StorageError",
    "ValidationError",
    "VaultSettings",
    "VerificationResult",
    "batch_verify",
    "decrypt_file",
    "decrypt_to_memory",
    "encrypt_file",
    "summarize",
    "verify_deep",
    "verify_file",
]
