"""
File format configuration for FileVault encrypted containers.

Container layout (all integers little-endian):
  - magic            (4 bytes, b"FVLT")
  - format version   (uint32)
  - algorithm id     (uint32, 1 = AES-256-GCM)
  - salt             (32 bytes, PBKDF2 salt)
  - iv               (16 bytes: 12-byte GCM nonce + 4 zero bytes)
  - original size    (uint64)
  - name length      (uint32)
  - original name    (name length bytes, UTF-8)
  - reserved         (32 bytes, 0x00)
  - checksum         (16 bytes, SHA-256 over every preceding header byte, truncated)
  - ciphertext       (original size bytes)
  - auth tag         (16 bytes)
"""

MAGIC = b"FVLT"
FORMAT_VERSION = 1
SUPPORTED_VERSIONS = (FORMAT_VERSION,)

ALGORITHM_AES_256_GCM = 1
ALGORITHM_NAMES = {
    ALGORITHM_AES_256_GCM: "AES-256-GCM",
}

MAGIC_SIZE = 4
VERSION_SIZE = 4
ALGORITHM_SIZE = 4
SALT_SIZE = 32
IV_SIZE = 16
NONCE_SIZE = 12
ORIGINAL_SIZE_SIZE = 8
NAME_LENGTH_SIZE = 4
RESERVED_SIZE = 32
CHECKSUM_SIZE = 16
TAG_SIZE = 16
KEY_SIZE = 32

# Header size without the variable-length name.
BASE_HEADER_SIZE = (
    MAGIC_SIZE + VERSION_SIZE + ALGORITHM_SIZE + SALT_SIZE + IV_SIZE
    + ORIGINAL_SIZE_SIZE + NAME_LENGTH_SIZE + RESERVED_SIZE + CHECKSUM_SIZE
)

MAX_NAME_LENGTH = 4096

# PBKDF2-HMAC-SHA256
DEFAULT_ITERATIONS = 100_000
MIN_ITERATIONS = 1_000
MAX_ITERATIONS = 10_000_000

# cryptography's AESGCM refuses single inputs of 2**31 bytes or more.
MAX_AEAD_PAYLOAD = 2**31 - 1
DEFAULT_MAX_FILE_SIZE = 1024 * 1024 * 1024

ENCRYPTED_EXTENSION = ".enc"
DECRYPTED_SUFFIX = ".decrypted"


def algorithm_name(algorithm_id: int) -> str:
    return ALGORITHM_NAMES.get(algorithm_id, f"Unknown ({algorithm_id})")


def header_size(name_length: int) -> int:
    return BASE_HEADER_SIZE + int(name_length)


def container_size(name_length: int, original_size: int) -> int:
    return header_size(name_length) + int(original_size) + TAG_SIZE
