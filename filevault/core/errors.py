from typing import Optional

from nacl.exceptions import CryptoError as NaClCryptoError


EXIT_GENERAL_ERROR = 1
EXIT_FILE_NOT_FOUND = 2
EXIT_PERMISSION_DENIED = 3
EXIT_AUTHENTICATION_FAILED = 4
EXIT_CORRUPTED_FILE = 5
EXIT_INSUFFICIENT_RESOURCES = 6
EXIT_INVALID_ARGUMENTS = 7


class FileVaultError(Exception):
    """Base class for every failure raised by the FileVault core."""

    exit_code = EXIT_GENERAL_ERROR
    default_user_message: Optional[str] = None
    default_suggestions: tuple[str, ...] = ()

    def __init__(self, message: str, *, path: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.path = path

    @property
    def user_message(self) -> str:
        return self.default_user_message or self.message

    @property
    def suggestions(self) -> list[str]:
        return list(self.default_suggestions)


class ValidationError(FileVaultError, ValueError):
    """Input validation failure."""

    exit_code = EXIT_INVALID_ARGUMENTS


class WeakPasswordError(ValidationError):
    default_user_message = "Password is too weak. Please use a stronger password."
    default_suggestions = (
        "Use at least 12 characters",
        "Include uppercase and lowercase letters",
        "Add numbers and special characters",
    )


class OutputExistsError(ValidationError):
    exit_code = EXIT_GENERAL_ERROR
    default_user_message = "Output file already exists. Use --force to overwrite."
    default_suggestions = (
        "Use --force flag to overwrite existing file",
        "Choose a different output filename",
    )


class FileTooLargeError(ValidationError):
    exit_code = EXIT_INSUFFICIENT_RESOURCES


class FormatError(FileVaultError, ValueError):
    """Bad magic, unsupported version/algorithm or a truncated header."""

    exit_code = EXIT_CORRUPTED_FILE
    default_user_message = "File is not a valid FileVault encrypted file."
    default_suggestions = (
        "Verify the file is encrypted with FileVault",
        "Check if the file has been corrupted",
    )


class HeaderCorruptionError(FileVaultError, ValueError):
    """Header checksum mismatch or an out-of-bounds length field."""

    exit_code = EXIT_CORRUPTED_FILE
    default_user_message = "File header appears to be corrupted or damaged."


class AuthenticationError(FileVaultError, NaClCryptoError, ValueError):
    """GCM tag verification failed: wrong password or tampered data.

    The two causes are indistinguishable. Compatible with handlers
    expecting CryptoError as well as ValueError.
    """

    exit_code = EXIT_AUTHENTICATION_FAILED
    default_user_message = "Authentication failed. Please check your password."
    default_suggestions = (
        "Make sure you're using the correct password",
        "Check for typos in the password",
        "Verify the file hasn't been corrupted",
        "If the file was sealed with a custom 'iterations' setting, decrypt with the same value",
    )


class SizeMismatchError(FileVaultError, ValueError):
    """Payload or decrypted length disagrees with the header metadata."""

    exit_code = EXIT_CORRUPTED_FILE
    default_user_message = "File size does not match its header; the file is truncated or damaged."


class StorageError(FileVaultError, OSError):
    """Filesystem failure (missing file, permissions, disk full)."""

    def __init__(self, message: str, *, path: Optional[str] = None, cause: Optional[OSError] = None):
        super().__init__(message, path=path)
        self.cause = cause

    @property
    def exit_code(self) -> int:
        if isinstance(self.cause, FileNotFoundError):
            return EXIT_FILE_NOT_FOUND
        if isinstance(self.cause, PermissionError):
            return EXIT_PERMISSION_DENIED
        return EXIT_GENERAL_ERROR

    @property
    def user_message(self) -> str:
        if isinstance(self.cause, FileNotFoundError):
            return "File not found. Please check the file path."
        if isinstance(self.cause, PermissionError):
            return "Permission denied. Please check file permissions."
        return self.message

    @property
    def suggestions(self) -> list[str]:
        if isinstance(self.cause, FileNotFoundError):
            return [
                "Verify the file path is correct",
                "Use absolute path if relative path doesn't work",
            ]
        return []
