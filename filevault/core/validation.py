from __future__ import annotations

import logging
import os
import stat
import unicodedata
from enum import Enum

from .errors import (
    FileTooLargeError,
    FormatError,
    OutputExistsError,
    StorageError,
    ValidationError,
    WeakPasswordError,
)
from .format_config import MAGIC, MAGIC_SIZE

logger = logging.getLogger(__name__)

MAX_FILENAME_BYTES = 255
MAX_SANITIZED_LENGTH = 200
_DANGEROUS_CHARS = ("/", "\\", ":", "*", "?", '"', "<", ">", "|")
_SUSPICIOUS_CHARS = ("\x00", "\n", "\r")


class PasswordStrength(Enum):
    WEAK = 0
    MEDIUM = 1
    STRONG = 2
    VERY_STRONG = 3

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


def _char_classes(password: str) -> tuple[bool, bool, bool, bool]:
    has_upper = any(c.isupper() for c in password)
    has_lower = any(c.islower() for c in password)
    has_digit = any(c.isdigit() for c in password)
    has_special = any(unicodedata.category(c)[0] in ("P", "S") for c in password)
    return has_upper, has_lower, has_digit, has_special


def check_password_strength(password: str) -> PasswordStrength:
    length = len(password)
    score = sum((length >= 8, length >= 12, length >= 16))
    score += sum(_char_classes(password))

    if score >= 7:
        return PasswordStrength.VERY_STRONG
    if score >= 5:
        return PasswordStrength.STRONG
    if score >= 3:
        return PasswordStrength.MEDIUM
    return PasswordStrength.WEAK


def validate_password(password: str, min_length: int = 8, require_strong: bool = False) -> bool:
    """Raise on unusable passwords; return False for merely weak ones."""
    if not password:
        raise ValidationError("Password cannot be empty")
    if len(password) < min_length:
        raise WeakPasswordError(f"Password must be at least {min_length} characters long")

    has_upper, has_lower, has_digit, has_special = _char_classes(password)
    if require_strong:
        missing = [
            label for ok, label in (
                (has_upper, "an uppercase letter"),
                (has_lower, "a lowercase letter"),
                (has_digit, "a digit"),
                (has_special, "a special character"),
            ) if not ok
        ]
        if missing:
            raise WeakPasswordError(f"Password must contain {', '.join(missing)}")
        return True

    if check_password_strength(password) is PasswordStrength.WEAK:
        logger.warning("Password does not meet complexity recommendations")
        return False
    return True


def validate_filename(filename: str) -> None:
    if not filename:
        raise ValidationError("Filename cannot be empty")
    if ".." in filename:
        raise ValidationError(f"Filename contains path traversal sequence: {filename!r}")
    if os.path.isabs(filename):
        raise ValidationError(f"Filename cannot be an absolute path: {filename!r}")
    if any(c in filename for c in _SUSPICIOUS_CHARS):
        raise ValidationError(f"Filename contains a control character: {filename!r}")
    if len(os.fsencode(filename)) > MAX_FILENAME_BYTES:
        raise ValidationError("Filename too long")


def sanitize_filename(filename: str) -> str:
    sanitized = filename
    for char in _DANGEROUS_CHARS + _SUSPICIOUS_CHARS:
        sanitized = sanitized.replace(char, "_")
    sanitized = sanitized.strip(" .")
    if not sanitized:
        sanitized = "unnamed_file"
    return sanitized[:MAX_SANITIZED_LENGTH]


def validate_input_file(path: str, max_file_size: int | None = None) -> os.stat_result:
    try:
        info = os.stat(path)
    except OSError as e:
        raise StorageError(f"Cannot access input file {path}: {e.strerror or e}", path=path, cause=e) from e

    if not stat.S_ISREG(info.st_mode):
        raise ValidationError(f"Not a regular file: {path}", path=path)
    if not os.access(path, os.R_OK):
        raise StorageError(f"Permission denied: {path}", path=path, cause=PermissionError(path))
    if max_file_size is not None and info.st_size > max_file_size:
        raise FileTooLargeError(
            f"File too large: {info.st_size} bytes (max {max_file_size})", path=path
        )
    return info


def validate_output_file(path: str, overwrite: bool = False) -> None:
    validate_filename(os.path.basename(path))

    directory = os.path.dirname(os.path.abspath(path))
    if not os.path.isdir(directory):
        raise StorageError(
            f"Output directory does not exist: {directory}",
            path=path,
            cause=FileNotFoundError(directory),
        )
    if os.path.exists(path):
        if not overwrite:
            raise OutputExistsError(f"Output file already exists: {path}", path=path)
        if os.path.isdir(path):
            raise ValidationError(f"Output path is a directory: {path}", path=path)
    if not os.access(directory, os.W_OK):
        raise StorageError(f"Permission denied: {directory}", path=path, cause=PermissionError(directory))


def is_encrypted_file(path: str) -> bool:
    try:
        with open(path, "rb") as f:
            return f.read(MAGIC_SIZE) == MAGIC
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e.strerror or e}", path=path, cause=e) from e


def validate_encrypted_file(path: str) -> None:
    if not is_encrypted_file(path):
        raise FormatError(f"Not a FileVault encrypted file: {path}", path=path)
