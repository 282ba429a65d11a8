"""
Header codec for FileVault containers.

Parsing (``read_header``) and acceptance (``validate_header``) are separate
steps: a header can be parsed from a file that is later rejected, which lets
the verifier report which layer failed.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from dataclasses import dataclass, field, replace
from struct import Struct
from typing import BinaryIO

from .errors import FormatError, HeaderCorruptionError, ValidationError
from .format_config import (
    ALGORITHM_AES_256_GCM,
    BASE_HEADER_SIZE,
    CHECKSUM_SIZE,
    FORMAT_VERSION,
    IV_SIZE,
    MAGIC,
    MAX_NAME_LENGTH,
    NONCE_SIZE,
    RESERVED_SIZE,
    SALT_SIZE,
    SUPPORTED_VERSIONS,
    algorithm_name,
)

logger = logging.getLogger(__name__)

# magic, version, algorithm, salt, iv, original size, name length
_FIXED_PREFIX = Struct("<4sII32s16sQI")


@dataclass(frozen=True)
class ContainerHeader:
    salt: bytes
    iv: bytes
    original_size: int
    name: bytes = b""
    magic: bytes = MAGIC
    version: int = FORMAT_VERSION
    algorithm: int = ALGORITHM_AES_256_GCM
    reserved: bytes = field(default=bytes(RESERVED_SIZE))
    checksum: bytes = b""

    @property
    def nonce(self) -> bytes:
        return self.iv[:NONCE_SIZE]

    @property
    def original_name(self) -> str:
        return self.name.decode("utf-8", errors="replace")

    @property
    def algorithm_name(self) -> str:
        return algorithm_name(self.algorithm)

    @property
    def size(self) -> int:
        return BASE_HEADER_SIZE + len(self.name)

    def body_bytes(self) -> bytes:
        """Every serialized field that precedes the checksum."""
        prefix = _FIXED_PREFIX.pack(
            self.magic,
            self.version,
            self.algorithm,
            self.salt,
            self.iv,
            self.original_size,
            len(self.name),
        )
        return prefix + self.name + self.reserved


def compute_checksum(header: ContainerHeader) -> bytes:
    return hashlib.sha256(header.body_bytes()).digest()[:CHECKSUM_SIZE]


def build_header(salt: bytes, nonce: bytes, original_size: int, original_name: str) -> ContainerHeader:
    """Create a fresh header with its checksum filled in."""
    if len(salt) != SALT_SIZE:
        raise ValueError(f"salt must be {SALT_SIZE} bytes")
    if len(nonce) != NONCE_SIZE:
        raise ValueError(f"nonce must be {NONCE_SIZE} bytes")
    # Undecodable filesystem names come back as surrogate escapes; store their raw bytes.
    try:
        name = original_name.encode("utf-8", errors="surrogateescape")
    except UnicodeEncodeError as e:
        raise ValidationError(f"Original filename cannot be stored: {e.reason}") from e
    if len(name) > MAX_NAME_LENGTH:
        raise ValidationError(
            f"Original filename is {len(name)} bytes; the format allows at most {MAX_NAME_LENGTH}"
        )

    iv = bytes(nonce) + bytes(IV_SIZE - NONCE_SIZE)
    header = ContainerHeader(salt=bytes(salt), iv=iv, original_size=int(original_size), name=name)
    return replace(header, checksum=compute_checksum(header))


def serialize_header(header: ContainerHeader) -> bytes:
    return header.body_bytes() + header.checksum


def _read_exact(reader: BinaryIO, size: int, field_name: str) -> bytes:
    data = reader.read(size)
    if data is None or len(data) != size:
        got = 0 if data is None else len(data)
        raise FormatError(f"Truncated header: expected {size} bytes for {field_name}, got {got}")
    return data


def read_header(reader: BinaryIO) -> ContainerHeader:
    """Parse a header from a binary stream positioned at offset 0.

    Does not check magic, version or checksum; see ``validate_header``.
    """
    prefix = _read_exact(reader, _FIXED_PREFIX.size, "fixed header fields")
    magic, version, algorithm, salt, iv, original_size, name_length = _FIXED_PREFIX.unpack(prefix)

    if name_length > MAX_NAME_LENGTH:
        raise HeaderCorruptionError(
            f"Filename length field too large: {name_length} (max {MAX_NAME_LENGTH})"
        )
    name = _read_exact(reader, name_length, "original filename") if name_length else b""
    reserved = _read_exact(reader, RESERVED_SIZE, "reserved block")
    checksum = _read_exact(reader, CHECKSUM_SIZE, "checksum")

    return ContainerHeader(
        salt=salt,
        iv=iv,
        original_size=original_size,
        name=name,
        magic=magic,
        version=version,
        algorithm=algorithm,
        reserved=reserved,
        checksum=checksum,
    )


def validate_header(header: ContainerHeader, verify_checksum: bool = True) -> None:
    """Raise the first violated header invariant, if any."""
    if header.magic != MAGIC:
        raise FormatError("Invalid magic number")
    if header.version not in SUPPORTED_VERSIONS:
        raise FormatError(f"Unsupported format version: {header.version}")
    if header.algorithm != ALGORITHM_AES_256_GCM:
        raise FormatError(f"Unsupported algorithm id: {header.algorithm}")
    if any(header.iv[NONCE_SIZE:]):
        raise FormatError("IV padding bytes must be zero")
    if verify_checksum and not hmac.compare_digest(compute_checksum(header), header.checksum):
        logger.debug("Header checksum mismatch")
        raise HeaderCorruptionError("Header checksum mismatch")
