from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Iterable, Optional, Protocol

from .decrypt import decrypt_file as _decrypt_file, default_output_path
from .encrypt import Password, ProgressCallback, encrypt_file as _encrypt_file
from .errors import FileVaultError, ValidationError
from .header import ContainerHeader
from .validation import validate_encrypted_file, validate_password
from .verify import VerificationResult, batch_verify, read_container_info, summarize, verify_deep, verify_file
from ..utils.preferences import VaultSettings

logger = logging.getLogger(__name__)


class EncryptFileFn(Protocol):
    def __call__(
        self,
        input_path: str,
        output_path: str,
        password: Password,
        settings: Optional[VaultSettings] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ContainerHeader: ...


class DecryptFileFn(Protocol):
    def __call__(
        self,
        input_path: str,
        output_path: str,
        password: Password,
        settings: Optional[VaultSettings] = None,
        progress: Optional[ProgressCallback] = None,
    ) -> ContainerHeader: ...


@dataclass
class BatchReport:
    succeeded: list[str] = field(default_factory=list)
    failed: list[tuple[str, FileVaultError]] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failure_count(self) -> int:
        return len(self.failed)

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


class VaultService:
    """Single-file operations plus path defaults, overwrite protection and batches."""

    def __init__(self, settings: Optional[VaultSettings] = None,
                 encrypt_file: EncryptFileFn = _encrypt_file,
                 decrypt_file: DecryptFileFn = _decrypt_file):
        self.settings = (settings or VaultSettings()).validate()
        self._encrypt_file = encrypt_file
        self._decrypt_file = decrypt_file

    def check_password(self, password: str) -> bool:
        return validate_password(
            password,
            min_length=self.settings.min_password_length,
            require_strong=self.settings.require_strong_password,
        )

    def encrypted_path_for(self, input_path: str) -> str:
        return input_path + self.settings.encrypted_extension

    def decrypted_path_for(self, encrypted_path: str) -> str:
        try:
            header_name = read_container_info(encrypted_path).original_filename
        except FileVaultError:
            header_name = ""
        return default_output_path(encrypted_path, header_name, self.settings.encrypted_extension)

    def encrypt_file(self, input_path: str, password: Password, output_path: Optional[str] = None,
                     progress: Optional[ProgressCallback] = None) -> str:
        if isinstance(password, str):
            self.check_password(password)
        target = output_path or self.encrypted_path_for(input_path)
        if os.path.isdir(target):
            target = os.path.join(target, os.path.basename(self.encrypted_path_for(input_path)))
        logger.info(f"Encrypting: {input_path} -> {target}")
        self._encrypt_file(input_path, target, password, settings=self.settings, progress=progress)
        return target

    def decrypt_file(self, encrypted_path: str, password: Password, output_path: Optional[str] = None,
                     progress: Optional[ProgressCallback] = None) -> str:
        validate_encrypted_file(encrypted_path)
        target = output_path or self.decrypted_path_for(encrypted_path)
        if os.path.isdir(target):
            target = os.path.join(target, os.path.basename(self.decrypted_path_for(encrypted_path)))
        if os.path.abspath(target) == os.path.abspath(encrypted_path):
            raise ValidationError("Decrypted output would overwrite the encrypted file", path=target)
        logger.info(f"Decrypting: {encrypted_path} -> {target}")
        self._decrypt_file(encrypted_path, target, password, settings=self.settings, progress=progress)
        return target

    def verify_file(self, encrypted_path: str, password: Optional[Password] = None) -> VerificationResult:
        if password is None:
            return verify_file(encrypted_path)
        return verify_deep(encrypted_path, password, settings=self.settings)

    def verify_many(self, paths: Iterable[str], password: Optional[Password] = None) -> tuple[list[VerificationResult], dict[str, int]]:
        results = batch_verify(paths, password=password, settings=self.settings)
        return results, summarize(results)

    def encrypt_many(self, paths: Iterable[str], password: Password, output_dir: Optional[str] = None) -> BatchReport:
        report = BatchReport()
        for path in paths:
            try:
                report.succeeded.append(self.encrypt_file(path, password, output_path=output_dir))
            except FileVaultError as e:
                logger.warning(f"Skipping {path}: {e}")
                report.failed.append((path, e))
        return report

    def decrypt_many(self, paths: Iterable[str], password: Password, output_dir: Optional[str] = None) -> BatchReport:
        report = BatchReport()
        for path in paths:
            try:
                report.succeeded.append(self.decrypt_file(path, password, output_path=output_dir))
            except FileVaultError as e:
                logger.warning(f"Skipping {path}: {e}")
                report.failed.append((path, e))
        return report

