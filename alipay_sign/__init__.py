"""
alipay-sign - request signing and response verification for the Alipay gateway.

This package provides the deterministic parameter canonicalization, RSA
signing, certificate SN derivation, AES content encryption and raw-response
signature checks that gateway calls depend on.
"""

from importlib.metadata import version

# Set up version
__version__ = "0.1.0"

try:
    __version__ = version("alipay-sign")
except Exception:
    pass

# Core components
from alipay_sign.core.aes import aes_decrypt, aes_encrypt
from alipay_sign.core.canonicalization import (
    build_params,
    get_sign_content,
    sign_request,
    snake_case,
    snake_case_keys,
)
from alipay_sign.core.cert import get_cert_sn, get_root_cert_sn, get_sn, get_sn_from_path
from alipay_sign.core.crypto import ALGORITHM_MAPPING, format_key, sign_content, verify_content
from alipay_sign.core.exceptions import (
    AlipaySignError,
    CanonicalizationError,
    CertificateParseError,
    ConfigurationError,
    DecryptionError,
    EncryptionError,
    EncryptionKeyMissingError,
    KeyParseError,
    MalformedResponseError,
    ParseError,
    SignatureVerificationError,
)
from alipay_sign.core.models import (
    CertificateRecord,
    GatewayResponse,
    KeyType,
    SignedEnvelope,
    SigningConfig,
    SignType,
)
from alipay_sign.core.response import (
    check_response_sign,
    get_response_sign_content,
    parse_response,
    response_key,
)
from alipay_sign.config import build_config, config_from_env

__all__ = [
    # Signing
    "ALGORITHM_MAPPING",
    "build_params",
    "get_sign_content",
    "sign_content",
    "sign_request",
    "snake_case",
    "snake_case_keys",
    "verify_content",
    "format_key",
    # Certificates
    "get_cert_sn",
    "get_root_cert_sn",
    "get_sn",
    "get_sn_from_path",
    # AES
    "aes_decrypt",
    "aes_encrypt",
    # Responses
    "check_response_sign",
    "get_response_sign_content",
    "parse_response",
    "response_key",
    # Configuration
    "build_config",
    "config_from_env",
    # Models
    "CertificateRecord",
    "GatewayResponse",
    "KeyType",
    "SignedEnvelope",
    "SigningConfig",
    "SignType",
    # Errors
    "AlipaySignError",
    "CanonicalizationError",
    "CertificateParseError",
    "ConfigurationError",
    "DecryptionError",
    "EncryptionError",
    "EncryptionKeyMissingError",
    "KeyParseError",
    "MalformedResponseError",
    "ParseError",
    "SignatureVerificationError",
]
