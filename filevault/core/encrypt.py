# core/encrypt.py
import logging
import os
from typing import Callable, Optional, Union

from . import cipher
from .errors import FileVaultError, StorageError, ValidationError
from .header import ContainerHeader, build_header, serialize_header
from .kdf import KeyDerivationParams, derive_key_with_params
from .validation import validate_input_file, validate_output_file
from ..utils.atomic_file import atomic_output
from ..utils.preferences import VaultSettings, resolve_settings
from ..utils.secure_memory import wipe_all

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int, str], None]
Password = Union[str, bytes, bytearray]


def report_progress(progress: Optional[ProgressCallback], current: int, total: int, stage: str) -> None:
    logger.debug(f"{stage} ({current}/{total})")
    if progress is not None:
        progress(current, total, stage)


def read_plaintext(path: str, expected_size: int) -> bytearray:
    """Read a whole file into a wipeable buffer, failing if its size moved under us."""
    buffer = bytearray(expected_size)
    try:
        with open(path, "rb") as f, memoryview(buffer) as view:
            filled = 0
            while filled < expected_size:
                count = f.readinto(view[filled:])
                if not count:
                    break
                filled += count
            changed = filled != expected_size or f.read(1) != b""
    except OSError as e:
        wipe_all(buffer)
        raise StorageError(f"Failed to read input file {path}: {e.strerror or e}", path=path, cause=e) from e

    if changed:
        wipe_all(buffer)
        raise StorageError(f"Input file changed while it was being read: {path}", path=path)
    return buffer


def _same_file(a: str, b: str) -> bool:
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def encrypt_file(input_path: str, output_path: str, password: Password,
                 settings: Optional[VaultSettings] = None,
                 progress: Optional[ProgressCallback] = None) -> ContainerHeader:
    """
    Encrypt ``input_path`` into a FileVault container at ``output_path``.

    The output only appears once fully written; plaintext and key buffers are
    zeroed on every exit path. Returns the header that was written.
    """
    settings = resolve_settings(settings)
    if not password:
        raise ValidationError("Password is required for encryption")

    info = validate_input_file(input_path, settings.max_file_size)
    validate_output_file(output_path, overwrite=settings.overwrite)
    if _same_file(input_path, output_path):
        raise ValidationError("Input and output must be different files", path=output_path)

    total = info.st_size
    plaintext = None
    key = None
    try:
        report_progress(progress, 0, total, "Reading file")
        plaintext = read_plaintext(input_path, total)

        params = KeyDerivationParams.generate(settings.iterations)
        report_progress(progress, 0, total, "Deriving key")
        key = derive_key_with_params(password, params)

        report_progress(progress, total // 2, total, "Encrypting")
        payload = cipher.encrypt(plaintext, key)
        header = build_header(params.salt, payload.nonce, len(plaintext), os.path.basename(input_path))

        report_progress(progress, total * 3 // 4, total, "Writing encrypted data")
        with atomic_output(output_path) as out:
            out.write(serialize_header(header))
            out.write(payload.ciphertext)
            out.write(payload.tag)
    except FileVaultError as e:
        logger.error(f"Encryption of {input_path} failed: {e}")
        raise
    finally:
        wipe_all(plaintext, key)

    report_progress(progress, total, total, "Encryption completed")
    logger.info(f"Encrypted {input_path} -> {output_path} ({total} bytes)")
    return header
