# core/decrypt.py
import logging
import os
from typing import BinaryIO, Optional

from . import cipher
from .encrypt import Password, ProgressCallback, report_progress
from .errors import (
    FileTooLargeError,
    FileVaultError,
    SizeMismatchError,
    StorageError,
    ValidationError,
)
from .format_config import DECRYPTED_SUFFIX, MAX_AEAD_PAYLOAD, TAG_SIZE
from .header import ContainerHeader, read_header, validate_header
from .kdf import derive_key
from .validation import sanitize_filename, validate_output_file
from ..utils.atomic_file import atomic_output
from ..utils.preferences import VaultSettings, resolve_settings
from ..utils.secure_memory import secure_zero, wipe_all

logger = logging.getLogger(__name__)


def payload_length(file_size: int, header: ContainerHeader) -> int:
    """Ciphertext length implied by the file size; rejects impossible layouts."""
    length = file_size - header.size - TAG_SIZE
    if length < 0:
        raise SizeMismatchError(
            f"File too small: expected at least {header.size + TAG_SIZE} bytes, got {file_size}"
        )
    if length != header.original_size:
        raise SizeMismatchError(
            f"Encrypted payload is {length} bytes but the header records {header.original_size}"
        )
    if length > MAX_AEAD_PAYLOAD:
        raise FileTooLargeError(f"Encrypted payload of {length} bytes exceeds the single-buffer limit")
    return length


def _read_block(f: BinaryIO, size: int, what: str) -> bytearray:
    buffer = bytearray(size)
    with memoryview(buffer) as view:
        filled = 0
        while filled < size:
            count = f.readinto(view[filled:])
            if not count:
                break
            filled += count
    if filled != size:
        wipe_all(buffer)
        raise SizeMismatchError(f"Unexpected end of file while reading {what}")
    return buffer


def decrypt_to_memory(input_path: str, password: Password,
                      settings: Optional[VaultSettings] = None,
                      progress: Optional[ProgressCallback] = None) -> tuple[ContainerHeader, bytearray]:
    """
    Authenticate and decrypt a container without touching the filesystem
    beyond reading it. The caller owns (and should wipe) the returned buffer.
    """
    settings = resolve_settings(settings)
    if not password:
        raise ValidationError("Password is required for decryption")

    ciphertext = None
    key = None
    try:
        with open(input_path, "rb") as f:
            file_size = os.fstat(f.fileno()).st_size
            report_progress(progress, 0, 100, "Reading file header")
            header = read_header(f)
            validate_header(header, verify_checksum=settings.verify_header_checksum)

            report_progress(progress, 10, 100, "Validating file format")
            size = payload_length(file_size, header)

            report_progress(progress, 30, 100, "Reading encrypted data")
            ciphertext = _read_block(f, size, "encrypted data")
            tag = bytes(_read_block(f, TAG_SIZE, "authentication tag"))

        report_progress(progress, 50, 100, "Deriving decryption key")
        key = derive_key(password, header.salt, settings.iterations)

        report_progress(progress, 70, 100, "Decrypting data")
        plaintext = cipher.decrypt(header.nonce, ciphertext, tag, key)
    except FileVaultError as e:
        logger.error(f"Decryption of {input_path} failed: {e}")
        raise
    except OSError as e:
        logger.error(f"Decryption of {input_path} failed: {e}")
        raise StorageError(f"Failed to read {input_path}: {e.strerror or e}", path=input_path, cause=e) from e
    finally:
        wipe_all(ciphertext, key)

    if len(plaintext) != header.original_size:
        recovered = len(plaintext)
        secure_zero(plaintext)
        raise SizeMismatchError(
            f"Decrypted size mismatch: expected {header.original_size}, got {recovered}",
            path=input_path,
        )
    return header, plaintext


def default_output_path(input_path: str, original_name: str = "", encrypted_extension: str = ".enc") -> str:
    """Output path next to the container; a stored name is sanitized so it cannot escape the directory."""
    directory = os.path.dirname(os.path.abspath(input_path))
    if original_name:
        return os.path.join(directory, sanitize_filename(original_name))

    base = os.path.basename(input_path)
    stem, ext = os.path.splitext(base)
    if ext == encrypted_extension and stem:
        return os.path.join(directory, stem)
    return os.path.join(directory, base + DECRYPTED_SUFFIX)


def decrypt_file(input_path: str, output_path: str, password: Password,
                 settings: Optional[VaultSettings] = None,
                 progress: Optional[ProgressCallback] = None) -> ContainerHeader:
    """Decrypt a container into ``output_path``; nothing is written unless authentication succeeds."""
    settings = resolve_settings(settings)
    validate_output_file(output_path, overwrite=settings.overwrite)

    header, plaintext = decrypt_to_memory(input_path, password, settings=settings, progress=progress)
    try:
        report_progress(progress, 90, 100, "Writing decrypted file")
        with atomic_output(output_path) as out:
            out.write(plaintext)
    finally:
        secure_zero(plaintext)

    report_progress(progress, 100, 100, "Decryption completed")
    logger.info(f"Decrypted {input_path} -> {output_path} ({header.original_size} bytes)")
    return header
