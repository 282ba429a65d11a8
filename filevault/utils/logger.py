import logging
import os
import platform
from pathlib import Path
from typing import Optional

LOG_FILE_NAME = "filevault.log"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _default_log_dir() -> Path:
    if os.name == "nt":
        base = os.getenv("APPDATA") or str(Path.home())
        return Path(base) / "FileVault" / "logs"
    if platform.system() == "Darwin":
        return Path.home() / "Library" / "Application Support" / "FileVault" / "logs"
    return Path.home() / ".local" / "share" / "filevault" / "logs"


def _file_handler(log_file: Path, level: int, formatter: logging.Formatter) -> logging.Handler:
    # Paths with undecodable bytes are logged escaped instead of failing the record.
    handler = logging.FileHandler(log_file, encoding="utf-8", errors="backslashreplace")
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(debug: bool, log_dir: Optional[Path] = None, console: bool = True) -> logging.Logger:
    """Route FileVault logging to ``filevault.log`` and, in debug mode, to stderr.

    ``console=False`` keeps stderr quiet even in debug mode, for machine-readable runs.
    """
    logger = logging.getLogger()
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)

    target_dir = log_dir or _default_log_dir()
    formatter = logging.Formatter(LOG_FORMAT)

    if debug and console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    try:
        target_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        if not logger.handlers:
            logger.addHandler(logging.NullHandler())
        return logger

    file_level = logging.DEBUG if debug else logging.WARNING
    logger.addHandler(_file_handler(target_dir / LOG_FILE_NAME, file_level, formatter))
    return logger
