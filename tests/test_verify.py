import os

import pytest

from filevault.core.encrypt import encrypt_file
from filevault.core.errors import FormatError, HeaderCorruptionError, StorageError
from filevault.core.verify import (
    VerificationResult,
    batch_verify,
    read_container_info,
    summarize,
    verify_deep,
    verify_file,
)
from filevault.utils.preferences import VaultSettings

PASSWORD = "Test1234!"
FAST = VaultSettings(iterations=1000)


@pytest.fixture
def container(tmp_path):
    source = tmp_path / "ledger.csv"
    source.write_bytes(b"a,b,c\n1,2,3\n")
    target = str(tmp_path / "ledger.csv.enc")
    encrypt_file(str(source), target, PASSWORD, settings=FAST)
    return target


def _truncate(path: str, count: int = 1) -> None:
    os.truncate(path, os.path.getsize(path) - count)


def test_empty_file_is_accessible_but_not_a_container(tmp_path):
    empty = tmp_path / "empty.bin"
    empty.write_bytes(b"")
    result = verify_file(str(empty))

    assert result.file_accessible is True
    assert result.format_valid is False
    assert result.is_valid is False
    assert "not a FileVault" in result.error_message


def test_valid_container_reports_metadata(container):
    result = verify_file(container)

    assert result.is_valid is True
    assert result.original_size == 12
    assert result.original_filename == "ledger.csv"
    assert result.algorithm == "AES-256-GCM"
    assert result.format_version == 1
    assert result.authenticated is None
    assert result.error_message is None
    assert result.verification_time >= 0


def test_container_truncated_by_one_byte_is_size_inconsistent(container):
    _truncate(container)
    result = verify_file(container)

    assert result.header_valid is True
    assert result.size_consistent is False
    assert result.is_valid is False


def test_container_with_trailing_byte_is_size_inconsistent(container):
    with open(container, "ab") as f:
        f.write(b"\x00")
    assert verify_file(container).size_consistent is False


def test_missing_file_is_not_accessible(tmp_path):
    result = verify_file(str(tmp_path / "missing.enc"))
    assert result.file_accessible is False
    assert "not accessible" in result.error_message


def test_directory_is_not_accessible(tmp_path):
    assert verify_file(str(tmp_path)).file_accessible is False


def test_corrupted_header_fails_header_check(container):
    with open(container, "r+b") as f:
        f.seek(30)
        byte = f.read(1)
        f.seek(30)
        f.write(bytes([byte[0] ^ 0xFF]))
    result = verify_file(container)

    assert result.format_valid is True
    assert result.header_valid is False
    assert "checksum" in result.error_message


def test_header_cut_short_fails_header_check(container):
    with open(container, "r+b") as f:
        f.truncate(50)
    result = verify_file(container)
    assert result.format_valid is True
    assert result.header_valid is False


def test_structural_check_does_not_detect_ciphertext_tampering(container):
    with open(container, "r+b") as f:
        f.seek(-20, os.SEEK_END)
        byte = f.read(1)
        f.seek(-20, os.SEEK_END)
        f.write(bytes([byte[0] ^ 0x01]))

    assert verify_file(container).is_valid is True
    deep = verify_deep(container, PASSWORD, settings=FAST)
    assert deep.authenticated is False
    assert deep.is_valid is False


def test_deep_verify_with_correct_password(container):
    result = verify_deep(container, PASSWORD, settings=FAST)
    assert result.authenticated is True
    assert result.is_valid is True


def test_deep_verify_with_wrong_password(container):
    result = verify_deep(container, "not-the-password", settings=FAST)
    assert result.authenticated is False
    assert result.error_message.startswith("Authentication failed")


def test_deep_verify_skips_decryption_for_structural_failure(container):
    _truncate(container)
    result = verify_deep(container, PASSWORD, settings=FAST)
    assert result.authenticated is None
    assert result.size_consistent is False


def test_batch_verify_and_summary(tmp_path, container):
    junk = tmp_path / "junk.bin"
    junk.write_bytes(b"this is not encrypted at all")
    paths = [container, str(junk), str(tmp_path / "absent.enc")]

    results = batch_verify(paths)
    assert [r.filename for r in results] == paths
    assert summarize(results) == {
        "total": 3,
        "valid": 1,
        "invalid": 2,
        "accessible": 2,
        "format_ok": 1,
        "header_ok": 1,
        "size_ok": 1,
    }


def test_batch_verify_with_password_runs_deep_checks(container):
    results = batch_verify([container], password=PASSWORD, settings=FAST)
    assert results[0].authenticated is True


def test_summarize_empty():
    assert summarize([])["total"] == 0


def test_to_dict_includes_validity():
    data = VerificationResult(filename="x").to_dict()
    assert data["filename"] == "x"
    assert data["is_valid"] is False


def test_read_container_info(container):
    info = read_container_info(container)
    assert info.original_filename == "ledger.csv"
    assert info.original_size == 12
    assert info.file_size == os.path.getsize(container)


def test_read_container_info_errors(tmp_path, container):
    plain = tmp_path / "plain.txt"
    plain.write_bytes(bytes(200))
    with pytest.raises(FormatError):
        read_container_info(str(plain))
    with pytest.raises(StorageError):
        read_container_info(str(tmp_path / "missing.enc"))

    with open(container, "r+b") as f:
        f.seek(80)
        f.write(b"Z")
    with pytest.raises(HeaderCorruptionError):
        read_container_info(container)
