"""Command-line front end for FileVault."""

import argparse
import getpass
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional

from .core.errors import (
    EXIT_GENERAL_ERROR,
    EXIT_INVALID_ARGUMENTS,
    FileVaultError,
    ValidationError,
    WeakPasswordError,
)
from .core.vault_service import BatchReport, VaultService
from .core.verify import read_container_info
from .utils.logger import configure_logging
from .utils.preferences import SECURITY_LEVELS, VaultSettings

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="filevault", description="Password-based AES-256-GCM file encryption")
    parser.add_argument("--debug", action="store_true", help="verbose logging to console and log file")
    parser.add_argument("--config", help="path to a JSON settings file")
    parser.add_argument("--security-level", choices=sorted(SECURITY_LEVELS), help="KDF/password preset")
    parser.add_argument("--log-dir", help="directory for filevault.log")

    sub = parser.add_subparsers(dest="command", required=True)

    def add_password_options(p: argparse.ArgumentParser) -> None:
        group = p.add_mutually_exclusive_group()
        group.add_argument("-p", "--password", help="password (visible in process listings; prefer the prompt)")
        group.add_argument("--password-file", help="read the password from the first line of a file")

    enc = sub.add_parser("encrypt", help="encrypt one or more files")
    enc.add_argument("paths", nargs="+")
    enc.add_argument("-o", "--output", help="output file, or an existing directory for the containers")
    enc.add_argument("-f", "--force", action="store_true",
                     help="overwrite outputs and skip the weak-password confirmation (minimum length still applies)")
    add_password_options(enc)

    dec = sub.add_parser("decrypt", help="decrypt one or more containers")
    dec.add_argument("paths", nargs="+")
    dec.add_argument("-o", "--output", help="output file, or an existing directory for the decrypted files")
    dec.add_argument("-f", "--force", action="store_true", help="overwrite existing outputs")
    add_password_options(dec)

    ver = sub.add_parser("verify", help="check container structure (and with --deep, authenticity)")
    ver.add_argument("paths", nargs="+")
    ver.add_argument("--deep", action="store_true", help="also decrypt in memory; requires the password")
    ver.add_argument("--json", action="store_true", help="print results as JSON")
    add_password_options(ver)

    info = sub.add_parser("info", help="show header metadata without decrypting")
    info.add_argument("paths", nargs="+")

    return parser


def _load_settings(args: argparse.Namespace) -> VaultSettings:
    settings = VaultSettings.load_preferences(args.config)
    if args.security_level:
        preset = VaultSettings.from_security_level(args.security_level)
        settings = settings.with_overrides(
            min_password_length=preset.min_password_length,
            require_strong_password=preset.require_strong_password,
        )
    if getattr(args, "force", False):
        settings = settings.with_overrides(overwrite=True)
    return settings


def _read_password(args: argparse.Namespace, confirm: bool) -> str:
    if args.password:
        return args.password
    if args.password_file:
        try:
            with open(args.password_file, "r", encoding="utf-8") as f:
                password = f.readline().rstrip("\r\n")
        except OSError as e:
            raise ValidationError(f"Cannot read password file {args.password_file}: {e.strerror or e}") from e
        if not password:
            raise ValidationError("Password file is empty")
        return password

    password = getpass.getpass("Enter password: ")
    if confirm and getpass.getpass("Confirm password: ") != password:
        raise ValidationError("Passwords do not match")
    return password


def _confirm(question: str) -> bool:
    if not sys.stdin.isatty():
        return False
    return input(f"{question} (y/N): ").strip().lower() == "y"


def _display(text: str) -> str:
    # Undecodable filenames arrive as surrogate escapes, which a UTF-8 console refuses.
    return text.encode("utf-8", errors="backslashreplace").decode("utf-8")


def _print_error(error: FileVaultError) -> None:
    print(f"Error: {_display(error.user_message)}", file=sys.stderr)
    if error.user_message != error.message:
        print(f"  Details: {_display(error.message)}", file=sys.stderr)
    suggestions = error.suggestions
    if suggestions:
        print("\nSuggestions:", file=sys.stderr)
        for suggestion in suggestions:
            print(f"  - {suggestion}", file=sys.stderr)


def _print_report(action: str, report: BatchReport) -> int:
    for target in report.succeeded:
        print(f"{action}: {_display(target)}")
    for path, error in report.failed:
        print(f"Failed: {_display(path)}: {_display(error.message)}", file=sys.stderr)
    if report.total > 1:
        print(f"\n{report.success_count} succeeded, {report.failure_count} failed")
    if not report.failed:
        return 0
    codes = {error.exit_code for _, error in report.failed}
    return codes.pop() if len(codes) == 1 else EXIT_GENERAL_ERROR


def _run_encrypt(args: argparse.Namespace, service: VaultService) -> int:
    password = _read_password(args, confirm=True)
    if not service.check_password(password) and not args.force:
        if not _confirm("Password is weak. Continue anyway?"):
            raise WeakPasswordError("Password rejected as too weak")

    if len(args.paths) == 1:
        target = service.encrypt_file(args.paths[0], password, output_path=args.output)
        print(f"Encrypted: {_display(target)}")
        return 0
    return _print_report("Encrypted", service.encrypt_many(args.paths, password, output_dir=args.output))


def _run_decrypt(args: argparse.Namespace, service: VaultService) -> int:
    password = _read_password(args, confirm=False)
    if len(args.paths) == 1:
        target = service.decrypt_file(args.paths[0], password, output_path=args.output)
        print(f"Decrypted: {_display(target)}")
        return 0
    return _print_report("Decrypted", service.decrypt_many(args.paths, password, output_dir=args.output))


def _run_verify(args: argparse.Namespace, service: VaultService) -> int:
    password: Optional[str] = _read_password(args, confirm=False) if args.deep else None
    results, summary = service.verify_many(args.paths, password=password)

    if args.json:
        print(json.dumps({"results": [r.to_dict() for r in results], "summary": summary}, indent=2))
    else:
        for result in results:
            status = "VALID" if result.is_valid else "INVALID"
            print(f"{_display(result.filename)}: {status}")
            if result.error_message:
                print(f"    Error: {_display(result.error_message)}")
            if result.header_valid:
                print(f"    Format: FileVault v{result.format_version}, {result.algorithm}")
                print(f"    Original: {result.original_filename} ({result.original_size} bytes)")
            if result.authenticated is not None:
                print(f"    Authenticated: {result.authenticated}")
        if len(results) > 1:
            print(f"\nTotal: {summary['total']}  Valid: {summary['valid']}  Invalid: {summary['invalid']}")
    return 0 if summary["invalid"] == 0 else EXIT_GENERAL_ERROR


def _run_info(args: argparse.Namespace) -> int:
    exit_code = 0
    for path in args.paths:
        try:
            info = read_container_info(path)
        except FileVaultError as e:
            print(f"{_display(path)}: {_display(e.message)}", file=sys.stderr)
            exit_code = e.exit_code
            continue
        print(f"{_display(info.filename)}")
        print(f"    Format: FileVault v{info.format_version}")
        print(f"    Algorithm: {info.algorithm}")
        print(f"    Original file: {info.original_filename} ({info.original_size} bytes)")
        print(f"    Encrypted size: {info.file_size} bytes")
    return exit_code


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    configure_logging(
        args.debug,
        log_dir=Path(args.log_dir) if args.log_dir else None,
        console=not getattr(args, "json", False),
    )

    output = getattr(args, "output", None)
    if output and len(args.paths) > 1 and not os.path.isdir(output):
        parser.error("--output must be an existing directory when several inputs are given")

    try:
        if args.command == "info":
            return _run_info(args)
        service = VaultService(_load_settings(args))
        if args.command == "encrypt":
            return _run_encrypt(args, service)
        if args.command == "decrypt":
            return _run_decrypt(args, service)
        if args.command == "verify":
            return _run_verify(args, service)
    except FileVaultError as e:
        logger.error(f"{args.command} failed: {e}")
        _print_error(e)
        return e.exit_code
    except KeyboardInterrupt:
        print("\nAborted.", file=sys.stderr)
        return EXIT_GENERAL_ERROR
    return EXIT_INVALID_ARGUMENTS


if __name__ == "__main__":
    raise SystemExit(main())
