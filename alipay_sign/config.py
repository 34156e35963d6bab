"""
Session configuration.

Assembles a frozen :class:`SigningConfig` from raw credentials in either of
the gateway's two modes:

* public-key mode: the gateway public key is given directly;
* certificate mode: the application certificate, the gateway public-key
  certificate and the gateway root bundle are given (as content or as file
  paths) and their SNs are derived from them.
"""

import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Union

from pydantic import ValidationError

from alipay_sign.core.cert import (
    get_sn,
    get_sn_from_path,
    load_public_key_from_cert,
    load_public_key_from_cert_path,
)
from alipay_sign.core.crypto import format_key
from alipay_sign.core.exceptions import ConfigurationError
from alipay_sign.core.models import KeyType, SigningConfig

logger = logging.getLogger(__name__)

PUBLIC_KEY_LABEL = "PUBLIC KEY"

PathLike = Union[str, Path]
Content = Union[str, bytes]

# Environment variable -> build_config argument
ENV_VARS = {
    "ALIPAY_APP_ID": "app_id",
    "ALIPAY_PRIVATE_KEY": "private_key",
    "ALIPAY_KEY_TYPE": "key_type",
    "ALIPAY_PUBLIC_KEY": "alipay_public_key",
    "ALIPAY_SIGN_TYPE": "sign_type",
    "ALIPAY_CHARSET": "charset",
    "ALIPAY_VERSION": "version",
    "ALIPAY_ENCRYPT_KEY": "encrypt_key",
    "ALIPAY_GATEWAY": "gateway",
    "ALIPAY_WS_SERVICE_URL": "ws_service_url",
    "ALIPAY_APP_CERT_PATH": "app_cert_path",
    "ALIPAY_PUBLIC_CERT_PATH": "alipay_public_cert_path",
    "ALIPAY_ROOT_CERT_PATH": "alipay_root_cert_path",
}


def _sn(content: Optional[Content], path: Optional[PathLike], is_root: bool = False) -> str:
    # Content wins over path
    if content:
        return get_sn(content, is_root)
    return get_sn_from_path(path, is_root)


def build_config(
    app_id: Optional[str],
    private_key: Optional[str],
    *,
    key_type: Union[KeyType, str] = KeyType.PKCS1,
    alipay_public_key: Optional[str] = None,
    app_cert_path: Optional[PathLike] = None,
    app_cert_content: Optional[Content] = None,
    alipay_public_cert_path: Optional[PathLike] = None,
    alipay_public_cert_content: Optional[Content] = None,
    alipay_root_cert_path: Optional[PathLike] = None,
    alipay_root_cert_content: Optional[Content] = None,
    **settings: Any,
) -> SigningConfig:
    """
    Build a session configuration.

    Args:
        app_id: Application id
        private_key: Application private key, raw base64 or PEM
        key_type: ``PKCS1`` (``RSA PRIVATE KEY``) or ``PKCS8`` (``PRIVATE KEY``)
        alipay_public_key: Gateway public key for public-key mode
        app_cert_path, app_cert_content: Application certificate; giving
            either selects certificate mode
        alipay_public_cert_path, alipay_public_cert_content: Gateway
            public-key certificate
        alipay_root_cert_path, alipay_root_cert_content: Gateway root bundle
        **settings: Remaining :class:`SigningConfig` fields (``charset``,
            ``sign_type``, ``encrypt_key``, ...)

    Raises:
        ConfigurationError: If a required credential is missing or invalid
        CertificateParseError: If a certificate cannot be parsed
    """
    if not app_id:
        raise ConfigurationError("config.app_id is required")
    if not private_key:
        raise ConfigurationError("config.private_key is required")

    try:
        key_type = KeyType(key_type)
    except ValueError:
        raise ConfigurationError(f"Unknown key type: {key_type}")

    values = dict(settings)
    values["app_id"] = app_id
    values["private_key"] = format_key(private_key, key_type.pem_label)

    if app_cert_path or app_cert_content:
        logger.debug("Building configuration in certificate mode")
        values["app_cert_sn"] = _sn(app_cert_content, app_cert_path)
        values["alipay_cert_sn"] = _sn(alipay_public_cert_content, alipay_public_cert_path)
        values["alipay_root_cert_sn"] = _sn(
            alipay_root_cert_content, alipay_root_cert_path, is_root=True
        )
        if alipay_public_cert_content:
            raw_public_key = load_public_key_from_cert(alipay_public_cert_content)
        else:
            raw_public_key = load_public_key_from_cert_path(alipay_public_cert_path)
        values["alipay_public_key"] = format_key(raw_public_key, PUBLIC_KEY_LABEL)
    elif alipay_public_key:
        values["alipay_public_key"] = format_key(alipay_public_key, PUBLIC_KEY_LABEL)

    try:
        return SigningConfig(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def config_from_env(environ: Optional[Mapping[str, str]] = None) -> SigningConfig:
    """Build a configuration from ``ALIPAY_*`` environment variables."""
    if environ is None:
        environ = os.environ

    kwargs = {
        argument: environ[name]
        for name, argument in ENV_VARS.items()
        if environ.get(name)
    }
    app_id = kwargs.pop("app_id", None)
    private_key = kwargs.pop("private_key", None)
    return build_config(app_id, private_key, **kwargs)
