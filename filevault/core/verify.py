"""
Password-free structural verification of FileVault containers.

Checks run in a fixed order and stop at the first failure:
accessible -> magic -> header -> size. ``verify_deep`` adds a full
authenticated decryption in memory.
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import asdict, dataclass
from time import perf_counter
from typing import Iterable, Optional

from .decrypt import decrypt_to_memory
from .encrypt import Password
from .errors import AuthenticationError, FileVaultError, StorageError
from .format_config import MAGIC, MAGIC_SIZE, TAG_SIZE, container_size
from .header import ContainerHeader, read_header, validate_header
from ..utils.preferences import VaultSettings
from ..utils.secure_memory import secure_zero

logger = logging.getLogger(__name__)


@dataclass
class VerificationResult:
    filename: str
    file_accessible: bool = False
    format_valid: bool = False
    header_valid: bool = False
    size_consistent: bool = False
    authenticated: Optional[bool] = None
    file_size: int = 0
    original_filename: str = ""
    original_size: int = 0
    algorithm: str = ""
    format_version: int = 0
    error_message: Optional[str] = None
    verification_time: float = 0.0

    @property
    def is_valid(self) -> bool:
        structural = self.file_accessible and self.format_valid and self.header_valid and self.size_consistent
        return structural and self.authenticated is not False

    def to_dict(self) -> dict:
        data = asdict(self)
        data["is_valid"] = self.is_valid
        return data


@dataclass(frozen=True)
class ContainerInfo:
    filename: str
    file_size: int
    original_filename: str
    original_size: int
    algorithm: str
    format_version: int


def _fail(result: VerificationResult, started: float, message: str) -> VerificationResult:
    result.error_message = message
    result.verification_time = perf_counter() - started
    logger.debug(f"Verification of {result.filename} failed: {message}")
    return result


def verify_file(path: str) -> VerificationResult:
    started = perf_counter()
    result = VerificationResult(filename=path)

    try:
        info = os.stat(path)
    except OSError as e:
        return _fail(result, started, f"File not accessible: {e.strerror or e}")
    if not stat.S_ISREG(info.st_mode):
        return _fail(result, started, "File not accessible: not a regular file")

    try:
        with open(path, "rb") as f:
            result.file_accessible = True
            result.file_size = info.st_size

            if f.read(MAGIC_SIZE) != MAGIC:
                return _fail(result, started, "File is not a FileVault encrypted file")
            result.format_valid = True

            f.seek(0)
            try:
                header = read_header(f)
                validate_header(header)
            except FileVaultError as e:
                return _fail(result, started, f"Invalid header: {e}")
    except OSError as e:
        return _fail(result, started, f"File not accessible: {e.strerror or e}")

    result.header_valid = True
    result.original_filename = header.original_name
    result.original_size = header.original_size
    result.algorithm = header.algorithm_name
    result.format_version = header.version

    minimum = header.size + TAG_SIZE
    if result.file_size < minimum:
        return _fail(result, started, f"File too small: expected at least {minimum} bytes, got {result.file_size}")
    expected = container_size(len(header.name), header.original_size)
    if result.file_size != expected:
        return _fail(
            result, started,
            f"Size mismatch: header implies {expected} bytes, file has {result.file_size}",
        )
    result.size_consistent = True

    result.verification_time = perf_counter() - started
    return result


def verify_deep(path: str, password: Password, settings: Optional[VaultSettings] = None) -> VerificationResult:
    """Structural checks plus an in-memory decryption; no output is written."""
    result = verify_file(path)
    if not result.is_valid:
        return result

    started = perf_counter() - result.verification_time
    try:
        _, plaintext = decrypt_to_memory(path, password, settings=settings)
    except AuthenticationError as e:
        result.authenticated = False
        return _fail(result, started, f"Authentication failed: {e}")
    except FileVaultError as e:
        result.authenticated = False
        return _fail(result, started, f"Integrity check failed: {e}")

    secure_zero(plaintext)
    result.authenticated = True
    result.verification_time = perf_counter() - started
    return result


def batch_verify(paths: Iterable[str], password: Optional[Password] = None,
                 settings: Optional[VaultSettings] = None) -> list[VerificationResult]:
    results = []
    for path in paths:
        if password is None:
            results.append(verify_file(path))
        else:
            results.append(verify_deep(path, password, settings=settings))
    return results


def summarize(results: Iterable[VerificationResult]) -> dict[str, int]:
    summary = {
        "total": 0,
        "valid": 0,
        "invalid": 0,
        "accessible": 0,
        "format_ok": 0,
        "header_ok": 0,
        "size_ok": 0,
    }
    for result in results:
        summary["total"] += 1
        summary["valid" if result.is_valid else "invalid"] += 1
        summary["accessible"] += int(result.file_accessible)
        summary["format_ok"] += int(result.format_valid)
        summary["header_ok"] += int(result.header_valid)
        summary["size_ok"] += int(result.size_consistent)
    return summary


def read_container_info(path: str) -> ContainerInfo:
    """Parse and validate the header of ``path`` without a password."""
    try:
        with open(path, "rb") as f:
            file_size = os.fstat(f.fileno()).st_size
            header: ContainerHeader = read_header(f)
    except FileVaultError:
        raise
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e.strerror or e}", path=path, cause=e) from e
    validate_header(header)
    return ContainerInfo(
        filename=path,
        file_size=file_size,
        original_filename=header.original_name,
        original_size=header.original_size,
        algorithm=header.algorithm_name,
        format_version=header.version,
    )
