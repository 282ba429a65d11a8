# preferences.py
from dataclasses import dataclass, asdict, fields, replace
import json
from pathlib import Path
from typing import Optional, Union

from ..core.errors import ValidationError
from ..core.format_config import (
    DEFAULT_ITERATIONS,
    DEFAULT_MAX_FILE_SIZE,
    ENCRYPTED_EXTENSION,
    MAX_AEAD_PAYLOAD,
)
from ..core.kdf import validate_iterations

DEFAULT_CONFIG_PATH = Path.home() / ".filevault" / "config.json"

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128

# Presets tighten the password policy only. The iteration count is not recorded in
# containers, so every preset keeps the format default.
SECURITY_LEVELS = {
    "standard": {"min_password_length": 8, "require_strong_password": False},
    "high": {"min_password_length": 12, "require_strong_password": True},
    "paranoid": {"min_password_length": 16, "require_strong_password": True},
}


@dataclass
class VaultSettings:
    iterations: int = DEFAULT_ITERATIONS
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    verify_header_checksum: bool = True
    overwrite: bool = False
    min_password_length: int = MIN_PASSWORD_LENGTH
    require_strong_password: bool = False
    encrypted_extension: str = ENCRYPTED_EXTENSION

    def validate(self) -> "VaultSettings":
        validate_iterations(self.iterations)
        if isinstance(self.max_file_size, bool) or not isinstance(self.max_file_size, int):
            raise ValidationError("max_file_size must be an integer")
        if not 0 < self.max_file_size <= MAX_AEAD_PAYLOAD:
            raise ValidationError(f"max_file_size must be between 1 and {MAX_AEAD_PAYLOAD} bytes")
        if not MIN_PASSWORD_LENGTH <= int(self.min_password_length) <= MAX_PASSWORD_LENGTH:
            raise ValidationError(
                f"min_password_length must be between {MIN_PASSWORD_LENGTH} and {MAX_PASSWORD_LENGTH}"
            )
        if not self.encrypted_extension.startswith(".") or len(self.encrypted_extension) < 2:
            raise ValidationError("encrypted_extension must look like '.enc'")
        return self

    @classmethod
    def from_security_level(cls, level: str, **overrides) -> "VaultSettings":
        try:
            preset = SECURITY_LEVELS[level]
        except KeyError:
            raise ValidationError(
                f"Unknown security level '{level}'; choose one of {', '.join(SECURITY_LEVELS)}"
            ) from None
        return cls(**{**preset, **overrides}).validate()

    def with_overrides(self, **changes) -> "VaultSettings":
        return replace(self, **changes).validate()

    @classmethod
    def load_preferences(cls, path: Optional[Union[str, Path]] = None) -> "VaultSettings":
        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return cls()
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid configuration file {config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ValidationError(f"Configuration file {config_path} must contain a JSON object")
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValidationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**data).validate()

    def save_preferences(self, path: Optional[Union[str, Path]] = None) -> Path:
        config_path = Path(path) if path else DEFAULT_CONFIG_PATH
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as f:
            json.dump(asdict(self), f, indent=4)
        return config_path


def resolve_settings(settings: Optional[VaultSettings]) -> VaultSettings:
    return settings if settings is not None else VaultSettings()
