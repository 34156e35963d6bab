"""
Request parameter canonicalization.

This module builds the exact string the gateway signs: snake_case field
names, JSON-stringified non-string values, fields sorted by name and joined
as ``key=value`` pairs with ``&``. Any deviation breaks verification on the
gateway, which derives the same string on its side.
"""

import json
import logging
import re
from typing import Any, Dict, Mapping, Optional

from alipay_sign.core.aes import aes_encrypt, dumps_json
from alipay_sign.core.crypto import sign_content
from alipay_sign.core.exceptions import CanonicalizationError, EncryptionKeyMissingError
from alipay_sign.core.models import SignedEnvelope, SigningConfig

logger = logging.getLogger(__name__)

SIGN_FIELD = "sign"
BIZ_CONTENT_FIELD = "biz_content"
NEED_ENCRYPT_FIELD = "need_encrypt"
ENCRYPT_TYPE_AES = "AES"

_LOWER_UPPER = re.compile(r'([a-z0-9])([A-Z])')
_UPPER_UPPER_LOWER = re.compile(r'([A-Z])([A-Z][a-z])')
_NON_ALNUM = re.compile(r'[^A-Za-z0-9]+')


def snake_case(name: str) -> str:
    """
    Convert a field name to snake_case.

    ``bizContent`` -> ``biz_content``, ``HTTPStatus`` -> ``http_status``;
    names already in snake_case are unchanged.
    """
    spaced = _LOWER_UPPER.sub(r'\1 \2', name)
    spaced = _UPPER_UPPER_LOWER.sub(r'\1 \2', spaced)
    words = [word.lower() for word in _NON_ALNUM.split(spaced) if word]
    return '_'.join(words) or name


def snake_case_keys(value: Any) -> Any:
    """Recursively snake_case the keys of mappings, including mappings inside lists."""
    if isinstance(value, Mapping):
        return {snake_case(str(k)): snake_case_keys(v) for k, v in value.items()}
    if isinstance(value, list):
        return [snake_case_keys(item) for item in value]
    return value


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    try:
        return dumps_json(value)
    except (TypeError, ValueError) as e:
        raise CanonicalizationError(f"Cannot serialize value of type {type(value).__name__}: {e}") from e


def _config_fields(method: str, config: SigningConfig) -> Dict[str, Any]:
    return {
        'method': method,
        'app_id': config.app_id,
        'charset': config.charset,
        'version': config.version,
        'sign_type': config.sign_type.value,
        'app_cert_sn': config.app_cert_sn,
        'alipay_cert_sn': config.alipay_cert_sn,
        'alipay_root_cert_sn': config.alipay_root_cert_sn,
        'ws_service_url': config.ws_service_url,
    }


def _encode_biz_content(biz_content: Any, need_encrypt: bool, encrypt_key: Optional[str]) -> str:
    if isinstance(biz_content, str):
        if not need_encrypt:
            return biz_content
        # Pre-serialized content is encrypted as the JSON it holds
        try:
            biz_content = json.loads(biz_content)
        except ValueError as e:
            raise CanonicalizationError(f"biz_content is not valid JSON: {e}") from e

    content = snake_case_keys(biz_content)
    if need_encrypt:
        if not encrypt_key:
            raise EncryptionKeyMissingError()
        return aes_encrypt(content, encrypt_key)
    return dumps_json(content)


def build_params(
    method: str,
    config: SigningConfig,
    params: Optional[Mapping[str, Any]] = None,
    biz_content: Any = None,
    need_encrypt: bool = False,
) -> Dict[str, str]:
    """
    Flatten a request into its wire parameters, without the signature.

    Args:
        method: Gateway method name, e.g. ``alipay.trade.pay``
        config: Session configuration
        params: Extra top-level parameters (any key casing). ``bizContent``
            and ``needEncrypt`` found here are treated like the keyword
            arguments of the same name.
        biz_content: Business content, usually a dict
        need_encrypt: AES-encrypt the business content

    Returns:
        Mapping of snake_case field names to string values

    Raises:
        EncryptionKeyMissingError: If encryption is requested without a key
        CanonicalizationError: If a value cannot be JSON-stringified
    """
    fields: Dict[str, Any] = snake_case_keys(dict(params or {}))

    lifted_content = fields.pop(BIZ_CONTENT_FIELD, None)
    if biz_content is None:
        biz_content = lifted_content
    lifted_encrypt = fields.pop(NEED_ENCRYPT_FIELD, False)
    need_encrypt = bool(need_encrypt or lifted_encrypt)

    fields.update(_config_fields(method, config))

    if biz_content is not None:
        if need_encrypt:
            fields['encrypt_type'] = ENCRYPT_TYPE_AES
        fields[BIZ_CONTENT_FIELD] = _encode_biz_content(
            biz_content, need_encrypt, config.encrypt_key
        )

    return {
        key: _stringify(value)
        for key, value in fields.items()
        if value is not None
    }


def get_sign_content(params: Mapping[str, str], charset: str = "utf-8") -> str:
    """
    Build the canonical sign string.

    Fields are sorted by name and joined as ``key=value`` with ``&``; the
    ``sign`` field never takes part. No URL encoding is applied.

    Raises:
        CanonicalizationError: If a value is not representable in ``charset``
    """
    pairs = []
    for key in sorted(params):
        if key == SIGN_FIELD:
            continue
        value = _stringify(params[key])
        try:
            value.encode(charset)
        except UnicodeEncodeError as e:
            raise CanonicalizationError(
                f"Value of '{key}' cannot be encoded as {charset}: {e}"
            ) from e
        pairs.append(f"{key}={value}")
    return "&".join(pairs)


def sign_request(
    method: str,
    config: SigningConfig,
    params: Optional[Mapping[str, Any]] = None,
    biz_content: Any = None,
    need_encrypt: bool = False,
) -> SignedEnvelope:
    """
    Build, canonicalize and sign a request.

    Returns:
        The signed envelope; ``envelope.params`` carries ``sign`` alongside
        the fields that were signed.
    """
    wire_params = build_params(method, config, params, biz_content, need_encrypt)
    content = get_sign_content(wire_params, config.charset)
    logger.debug(f"Sign content for {method}: {content}")

    sign = sign_content(content, config.private_key, config.sign_type, config.charset)
    return SignedEnvelope(
        params={**wire_params, SIGN_FIELD: sign},
        sign_content=content,
        sign=sign,
    )


__all__ = [
    "CanonicalizationError",
    "build_params",
    "get_sign_content",
    "sign_request",
    "snake_case",
    "snake_case_keys",
]
