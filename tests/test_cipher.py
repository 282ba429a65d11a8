import os

import pytest
from nacl.exceptions import CryptoError

from filevault.core import cipher
from filevault.core.errors import AuthenticationError
from filevault.core.format_config import KEY_SIZE, NONCE_SIZE, TAG_SIZE
from filevault.utils.secure_memory import secure_zero


@pytest.fixture
def key():
    return bytearray(os.urandom(KEY_SIZE))


def test_encrypt_produces_detached_tag(key):
    payload = cipher.encrypt(b"Hello World", key)
    assert len(payload.nonce) == NONCE_SIZE
    assert len(payload.tag) == TAG_SIZE
    assert len(payload.ciphertext) == len(b"Hello World")
    assert payload.ciphertext != b"Hello World"


def test_decrypt_round_trip(key):
    payload = cipher.encrypt(bytearray(b"secret bytes"), key)
    plaintext = cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag, key)
    assert plaintext == bytearray(b"secret bytes")
    assert isinstance(plaintext, bytearray)


def test_empty_plaintext(key):
    payload = cipher.encrypt(b"", key)
    assert payload.ciphertext == b""
    assert cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag, key) == bytearray()


def test_nonce_is_fresh_per_call(key):
    nonces = {cipher.encrypt(b"same", key).nonce for _ in range(20)}
    assert len(nonces) == 20


def test_tampered_ciphertext_fails_authentication(key):
    payload = cipher.encrypt(b"attack at dawn", key)
    tampered = bytearray(payload.ciphertext)
    tampered[0] ^= 0x80
    with pytest.raises(AuthenticationError) as excinfo:
        cipher.decrypt(payload.nonce, tampered, payload.tag, key)
    assert isinstance(excinfo.value, CryptoError)
    assert isinstance(excinfo.value, ValueError)


def test_wrong_key_fails_authentication(key):
    payload = cipher.encrypt(b"attack at dawn", key)
    with pytest.raises(AuthenticationError):
        cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag, os.urandom(KEY_SIZE))


def test_associated_data_is_bound(key):
    payload = cipher.encrypt(b"data", key, associated_data=b"ctx")
    with pytest.raises(AuthenticationError):
        cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag, key, associated_data=b"other")


@pytest.mark.parametrize("bad_key", [b"", b"k" * 16, b"k" * 33])
def test_key_length_enforced(bad_key):
    with pytest.raises(ValueError):
        cipher.encrypt(b"data", bad_key)


def test_tag_length_enforced(key):
    payload = cipher.encrypt(b"data", key)
    with pytest.raises(ValueError):
        cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag[:8], key)


def test_returned_plaintext_can_be_wiped(key):
    payload = cipher.encrypt(b"wipe me afterwards", key)
    plaintext = cipher.decrypt(payload.nonce, payload.ciphertext, payload.tag, key)
    secure_zero(plaintext)
    assert plaintext == bytearray(len(b"wipe me afterwards"))
