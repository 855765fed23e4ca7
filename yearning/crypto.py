"""Password hashing and symmetric encryption of stored credentials."""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
import string

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

log = logging.getLogger(__name__)

_ALPHABET = string.digits + string.ascii_lowercase + string.ascii_uppercase
_ITERATIONS = 120000
_BLOCK = 16


def get_random() -> str:
    """Return a 12-character alphanumeric salt."""
    return "".join(secrets.choice(_ALPHABET) for _ in range(12))


def django_encrypt(password: str, salt: str) -> str:
    """Hash a password in Django's ``pbkdf2_sha256`` format."""
    dk = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), _ITERATIONS, 32)
    encoded = base64.b64encode(dk).decode("ascii")
    return f"pbkdf2_sha256${_ITERATIONS}${salt}${encoded}"


def django_check_password(stored: str, password: str) -> bool:
    """Check a password against a stored Django-format hash."""
    parts = stored.split("$")
    if len(parts) < 3:
        raise ValueError("malformed password hash")
    return hmac.compare_digest(stored, django_encrypt(password, parts[2]))


def pkcs7_pad(data: bytes, block_size: int) -> bytes:
    """Append PKCS#7 padding."""
    padding = block_size - len(data) % block_size
    return data + bytes([padding]) * padding


def pkcs7_unpad(data: bytes) -> bytes:
    """Strip PKCS#7 padding as given by the last byte."""
    if not data:
        raise ValueError("nothing to unpad")
    padding = data[-1]
    if padding > len(data):
        raise ValueError("invalid padding")
    return data[: len(data) - padding]


def _cipher(key: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(key[:_BLOCK]))


def encrypt(plain: str, key: str) -> str:
    """AES-CBC encrypt with the key as IV; empty result unless the key is 16 bytes."""
    k = key.encode()
    if len(k) != _BLOCK:
        return ""
    encryptor = _cipher(k).encryptor()
    data = encryptor.update(pkcs7_pad(plain.encode(), _BLOCK)) + encryptor.finalize()
    return base64.b64encode(data).decode("ascii")


def decrypt(cipher_text: str, key: str) -> str:
    """Reverse :func:`encrypt`; returns an empty string when decryption fails."""
    k = key.encode()
    cipher = _cipher(k)
    try:
        data = base64.b64decode(cipher_text, validate=True)
    except (binascii.Error, ValueError):
        data = b""
    if len(data) % _BLOCK:
        return ""
    decryptor = cipher.decryptor()
    plain = decryptor.update(data) + decryptor.finalize()
    try:
        plain = pkcs7_unpad(plain)
    except ValueError:
        log.error("secret key could not decrypt the stored password")
        return ""
    return plain.decode("utf-8", errors="replace")


def hmac_sha256(string_to_sign: str, secret: str) -> str:
    """Base64 HMAC-SHA256 signature."""
    digest = hmac.new(secret.encode(), string_to_sign.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("ascii")