import io
import struct

import pytest

from filevault.core.errors import FormatError, HeaderCorruptionError, ValidationError
from filevault.core.format_config import (
    BASE_HEADER_SIZE,
    IV_SIZE,
    MAGIC,
    MAX_NAME_LENGTH,
    NONCE_SIZE,
    SALT_SIZE,
    container_size,
)
from filevault.core.header import (
    ContainerHeader,
    build_header,
    compute_checksum,
    read_header,
    serialize_header,
    validate_header,
)

SALT = bytes(range(SALT_SIZE))
NONCE = b"\x07" * NONCE_SIZE
NAME_LENGTH_OFFSET = 4 + 4 + 4 + SALT_SIZE + IV_SIZE + 8


def _header(name="report.pdf", size=1234):
    return build_header(SALT, NONCE, size, name)


def test_serialized_size_is_base_plus_name():
    header = _header("report.pdf")
    data = serialize_header(header)
    assert len(data) == BASE_HEADER_SIZE + len(b"report.pdf") == header.size
    assert BASE_HEADER_SIZE == 120
    assert data[:4] == MAGIC


def test_read_header_recovers_every_field():
    header = _header("résumé.txt", size=42)
    parsed = read_header(io.BytesIO(serialize_header(header) + b"payload"))

    assert parsed == header
    assert parsed.original_name == "résumé.txt"
    assert parsed.original_size == 42
    assert parsed.nonce == NONCE
    assert parsed.iv == NONCE + bytes(IV_SIZE - NONCE_SIZE)
    assert parsed.algorithm_name == "AES-256-GCM"
    validate_header(parsed)


def test_empty_name_is_allowed():
    header = _header("", size=0)
    parsed = read_header(io.BytesIO(serialize_header(header)))
    assert parsed.name == b""
    assert parsed.size == BASE_HEADER_SIZE
    validate_header(parsed)


def test_build_header_rejects_oversized_name():
    with pytest.raises(ValidationError):
        _header("x" * (MAX_NAME_LENGTH + 1))


def test_build_header_rejects_wrong_salt_length():
    with pytest.raises(ValueError):
        build_header(b"short", NONCE, 1, "a")


def test_bad_magic_is_format_error():
    data = bytearray(serialize_header(_header()))
    data[:4] = b"NOPE"
    parsed = read_header(io.BytesIO(bytes(data)))
    with pytest.raises(FormatError, match="magic"):
        validate_header(parsed)


def test_unsupported_version_is_format_error():
    data = bytearray(serialize_header(_header()))
    data[4:8] = struct.pack("<I", 2)
    with pytest.raises(FormatError, match="version"):
        validate_header(read_header(io.BytesIO(bytes(data))))


def test_unknown_algorithm_is_format_error():
    data = bytearray(serialize_header(_header()))
    data[8:12] = struct.pack("<I", 9)
    with pytest.raises(FormatError, match="algorithm"):
        validate_header(read_header(io.BytesIO(bytes(data))))


def test_nonzero_iv_padding_is_format_error():
    header = _header()
    padded = ContainerHeader(salt=header.salt, iv=NONCE + b"\x01\x00\x00\x00", original_size=1)
    with pytest.raises(FormatError, match="padding"):
        validate_header(padded, verify_checksum=False)


def test_flipped_name_byte_breaks_checksum():
    data = bytearray(serialize_header(_header("report.pdf")))
    data[BASE_HEADER_SIZE - 48] ^= 0x01  # inside the name
    parsed = read_header(io.BytesIO(bytes(data)))
    with pytest.raises(HeaderCorruptionError):
        validate_header(parsed)
    validate_header(parsed, verify_checksum=False)


def test_checksum_covers_original_size():
    header = _header(size=10)
    tampered = ContainerHeader(
        salt=header.salt, iv=header.iv, original_size=11, name=header.name, checksum=header.checksum
    )
    assert compute_checksum(tampered) != header.checksum
    with pytest.raises(HeaderCorruptionError):
        validate_header(tampered)


def test_oversized_name_length_field_is_rejected_before_reading():
    data = bytearray(serialize_header(_header()))
    data[NAME_LENGTH_OFFSET:NAME_LENGTH_OFFSET + 4] = struct.pack("<I", MAX_NAME_LENGTH + 1)
    with pytest.raises(HeaderCorruptionError):
        read_header(io.BytesIO(bytes(data)))


@pytest.mark.parametrize("cut", [0, 10, 72, 80, BASE_HEADER_SIZE + 9])
def test_truncated_header_is_format_error(cut):
    data = serialize_header(_header("report.pdf"))[:cut]
    with pytest.raises(FormatError, match="Truncated"):
        read_header(io.BytesIO(data))


def test_container_size_adds_payload_and_tag():
    assert container_size(len("a.txt"), 11) == 120 + 5 + 11 + 16


def test_surrogate_escaped_name_is_stored_as_raw_bytes():
    header = _header("caf\udce9.txt")
    assert header.name == b"caf\xe9.txt"
    assert header.original_name == "caf\ufffd.txt"
    parsed = read_header(io.BytesIO(serialize_header(header)))
    validate_header(parsed)
    assert parsed.name == b"caf\xe9.txt"


def test_unencodable_name_is_validation_error():
    with pytest.raises(ValidationError, match="cannot be stored"):
        _header("bad\ud800name")
