"""
Cryptographic primitives for gateway request signing.

This module provides PEM key normalization, key loading, and RSA PKCS#1 v1.5
signing/verification over SHA-1 (``RSA``) or SHA-256 (``RSA2``).
"""

import base64
import binascii
import logging
from typing import Union

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa
from cryptography.hazmat.primitives.serialization import (
    load_pem_private_key,
    load_pem_public_key,
)

from alipay_sign.core.exceptions import KeyParseError
from alipay_sign.core.models import SignType

logger = logging.getLogger(__name__)

# Closed set: the gateway only knows these two.
ALGORITHM_MAPPING = {
    SignType.RSA: "RSA-SHA1",
    SignType.RSA2: "RSA-SHA256",
}

_HASHES = {
    SignType.RSA: hashes.SHA1,
    SignType.RSA2: hashes.SHA256,
}

PrivateKeyLike = Union[str, bytes, rsa.RSAPrivateKey]
PublicKeyLike = Union[str, bytes, rsa.RSAPublicKey]


def format_key(key: str, label: str) -> str:
    """
    Normalize raw key text into PEM armor.

    Lines are trimmed; a first or last line mentioning ``label`` is treated as
    the existing armor and dropped. The remaining lines are joined without
    separators and wrapped in ``-----BEGIN/END <label>-----``.

    Args:
        key: Raw key text, with or without armor
        label: PEM label, e.g. ``RSA PRIVATE KEY`` or ``PUBLIC KEY``

    Returns:
        PEM text. Malformed input yields a well-formed but unusable block.
    """
    lines = [line.strip() for line in key.split('\n')]

    if lines and label in lines[0]:
        lines.pop(0)

    if lines and label in lines[-1]:
        lines.pop()

    body = ''.join(lines)
    return f"-----BEGIN {label}-----\n{body}\n-----END {label}-----"


def _as_bytes(data: Union[str, bytes]) -> bytes:
    return data.encode('ascii') if isinstance(data, str) else data


def load_private_key(key: PrivateKeyLike) -> rsa.RSAPrivateKey:
    """Load an RSA private key from PKCS#1 or PKCS#8 PEM."""
    if isinstance(key, rsa.RSAPrivateKey):
        return key
    try:
        private_key = load_pem_private_key(_as_bytes(key), password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"Invalid private key: {e}") from e
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise KeyParseError(f"Expected an RSA private key, got {type(private_key).__name__}")
    return private_key


def load_public_key(key: PublicKeyLike) -> rsa.RSAPublicKey:
    """Load an RSA public key from SubjectPublicKeyInfo PEM."""
    if isinstance(key, rsa.RSAPublicKey):
        return key
    try:
        public_key = load_pem_public_key(_as_bytes(key))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise KeyParseError(f"Invalid public key: {e}") from e
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise KeyParseError(f"Expected an RSA public key, got {type(public_key).__name__}")
    return public_key


def sign_content(
    content: str,
    private_key: PrivateKeyLike,
    sign_type: SignType = SignType.RSA2,
    charset: str = "utf-8",
) -> str:
    """
    Sign a canonical string.

    Args:
        content: The exact string to sign
        private_key: PEM text or a loaded RSA private key
        sign_type: ``RSA`` for SHA-1, ``RSA2`` for SHA-256
        charset: Encoding applied to ``content`` before signing

    Returns:
        Base64-encoded signature

    Raises:
        KeyParseError: If the private key cannot be loaded
    """
    sign_type = SignType(sign_type)
    key = load_private_key(private_key)
    signature = key.sign(
        content.encode(charset),
        padding.PKCS1v15(),
        _HASHES[sign_type](),
    )
    return base64.b64encode(signature).decode('ascii')


def verify_content(
    content: str,
    sign: str,
    public_key: PublicKeyLike,
    sign_type: SignType = SignType.RSA2,
    charset: str = "utf-8",
) -> bool:
    """
    Verify a base64 signature over ``content``.

    Returns:
        True if the signature is valid, False otherwise. A malformed
        signature is a mismatch, not an error.

    Raises:
        KeyParseError: If the public key cannot be loaded
    """
    sign_type = SignType(sign_type)
    key = load_public_key(public_key)
    try:
        signature = base64.b64decode(sign, validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Signature is not valid base64")
        return False

    try:
        key.verify(
            signature,
            content.encode(charset),
            padding.PKCS1v15(),
            _HASHES[sign_type](),
        )
    except InvalidSignature:
        return False
    return True
