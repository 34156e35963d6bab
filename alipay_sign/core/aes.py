"""
AES content encryption.

The gateway uses AES-CBC with PKCS#7 padding and a fixed all-zero IV; the key
is shared as base64 text. The IV is part of the protocol and must stay fixed.
"""

import base64
import binascii
import json
from typing import Any, Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from alipay_sign.core.exceptions import (
    DecryptionError,
    EncryptionError,
    EncryptionKeyMissingError,
)

ZERO_IV = bytes.fromhex("0" * 32)


def _parse_key(aes_key: Optional[str]) -> bytes:
    if not aes_key:
        raise EncryptionKeyMissingError()
    try:
        key = base64.b64decode(aes_key, validate=True)
    except (binascii.Error, ValueError) as e:
        raise EncryptionError(f"AES key is not valid base64: {e}") from e
    if len(key) not in (16, 24, 32):
        raise EncryptionError(f"AES key must be 16, 24 or 32 bytes, got {len(key)} bytes")
    return key


def _cipher(key: bytes) -> Cipher:
    return Cipher(algorithms.AES(key), modes.CBC(ZERO_IV))


def dumps_json(data: Any) -> str:
    """Compact JSON as the gateway expects it: no spaces, non-ASCII kept."""
    return json.dumps(data, ensure_ascii=False, separators=(',', ':'))


def aes_encrypt(data: Any, aes_key: Optional[str]) -> str:
    """
    Encrypt a JSON value.

    Args:
        data: JSON-serializable value (usually a dict of business content)
        aes_key: Base64 AES key

    Returns:
        Base64-encoded ciphertext

    Raises:
        EncryptionKeyMissingError: If ``aes_key`` is empty
    """
    key = _parse_key(aes_key)

    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(dumps_json(data).encode('utf-8')) + padder.finalize()

    encryptor = _cipher(key).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()
    return base64.b64encode(ciphertext).decode('ascii')


def aes_decrypt(message: str, aes_key: Optional[str]) -> Any:
    """
    Decrypt base64 ciphertext and parse the UTF-8 plaintext as JSON.

    Raises:
        EncryptionKeyMissingError: If ``aes_key`` is empty
        DecryptionError: If the ciphertext, padding or JSON is invalid
    """
    key = _parse_key(aes_key)
    try:
        ciphertext = base64.b64decode(message, validate=True)
        decryptor = _cipher(key).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return json.loads(plaintext.decode('utf-8'))
    except (binascii.Error, ValueError) as e:
        # json.JSONDecodeError and UnicodeDecodeError are ValueErrors
        raise DecryptionError(f"Decryption failed: {e}") from e
