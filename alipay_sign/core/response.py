"""
Response signature verification.

The gateway signs the raw bytes of the ``<method>_response`` member as it
emitted them. Parsing and re-serializing that JSON is not byte stable, so the
signed text is recovered as a literal substring of the body instead:

    {"alipay_trade_pay_response":{"code":"10000"},"sign":"jumSvxTKwn24G5sAIN"}
                                 ^--------------^
"""

import json
import logging
from typing import Any, Dict, Optional

from alipay_sign.core.aes import aes_decrypt
from alipay_sign.core.crypto import PublicKeyLike, verify_content
from alipay_sign.core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    SignatureVerificationError,
)
from alipay_sign.core.models import GatewayResponse, SigningConfig, SignType

logger = logging.getLogger(__name__)

SIGN_MARKER = '"sign"'
ERROR_RESPONSE_KEY = "error_response"


def response_key(method: str) -> str:
    """``alipay.trade.pay`` -> ``alipay_trade_pay_response``."""
    return f"{method.replace('.', '_')}_response"


def get_response_sign_content(raw: str, key: str) -> str:
    """
    Recover the signed substring of a raw response body.

    The slice starts right after the first ``"<key>"`` and ends at the last
    ``"sign"``; it is then trimmed to its first ``{`` and last ``}``.

    Args:
        raw: Response body exactly as received
        key: Response member name, see :func:`response_key`

    Returns:
        The JSON object text the gateway signed, byte for byte

    Raises:
        MalformedResponseError: If the body lacks the member, the sign
            marker, or an object between them
    """
    quoted_key = f'"{key}"'
    start = raw.find(quoted_key)
    if start < 0:
        raise MalformedResponseError(f"Response has no '{key}' member")
    begin = start + len(quoted_key)

    end = raw.rfind(SIGN_MARKER)
    if end < begin:
        raise MalformedResponseError(f"Response has no sign after '{key}'")

    segment = raw[begin:end]
    first = segment.find('{')
    last = segment.rfind('}')
    if first < 0 or last < first:
        raise MalformedResponseError(f"'{key}' member is not a JSON object")
    return segment[first:last + 1]


def _text(value: Any) -> Optional[str]:
    return None if value is None else str(value)


def _load_body(raw: str) -> Dict[str, Any]:
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise MalformedResponseError(f"Response is not valid JSON: {e}") from e
    if not isinstance(body, dict):
        raise MalformedResponseError("Response is not a JSON object")
    return body


def check_response_sign(
    raw: Optional[str],
    key: str,
    public_key: PublicKeyLike,
    sign_type: SignType = SignType.RSA2,
    charset: str = "utf-8",
) -> bool:
    """
    Verify the signature of a raw response body.

    Returns:
        True only when the recovered substring verifies against the body's
        ``sign`` value. Empty input, a body of the wrong shape and a
        signature mismatch all yield False.
    """
    if not raw:
        return False

    try:
        content = get_response_sign_content(raw, key)
        server_sign = _load_body(raw).get("sign")
    except MalformedResponseError as e:
        logger.warning(f"Cannot verify response: {e}")
        return False

    if not isinstance(server_sign, str) or not server_sign:
        logger.warning(f"Response for '{key}' carries no sign")
        return False

    verified = verify_content(content, server_sign, public_key, sign_type, charset)
    if not verified:
        logger.warning(f"Response signature mismatch for '{key}'")
    return verified


def parse_response(
    raw: str,
    method: str,
    config: SigningConfig,
    validate_sign: bool = True,
    need_encrypt: bool = False,
) -> GatewayResponse:
    """
    Parse a raw response body into a :class:`GatewayResponse`.

    Reads the ``<method>_response`` member, or ``error_response`` when the
    gateway rejected the call before dispatching it.

    Args:
        raw: Response body exactly as received
        method: Gateway method name the request was sent to
        config: Session configuration; ``alipay_public_key`` is needed when
            ``validate_sign`` is set, ``encrypt_key`` when ``need_encrypt`` is
        validate_sign: Raise when the signature does not verify
        need_encrypt: The response member holds AES ciphertext

    Raises:
        MalformedResponseError: If the body has neither member
        SignatureVerificationError: If ``validate_sign`` is set and the check fails
        ConfigurationError: If ``validate_sign`` is set without a public key
    """
    key = response_key(method)
    body = _load_body(raw)
    if key not in body:
        # Gateway-level failures (bad app id, unknown method) come back here
        if ERROR_RESPONSE_KEY not in body:
            raise MalformedResponseError(f"Response has no '{key}' member")
        key = ERROR_RESPONSE_KEY

    verified = False
    if validate_sign:
        if not config.alipay_public_key:
            raise ConfigurationError("alipay_public_key is required to validate responses")
        verified = check_response_sign(
            raw, key, config.alipay_public_key, config.sign_type, config.charset
        )
        if not verified:
            raise SignatureVerificationError(f"Signature check failed for {method}")

    data = body[key]
    if need_encrypt and isinstance(data, str):
        data = aes_decrypt(data, config.encrypt_key)

    fields = data if isinstance(data, dict) else {}
    return GatewayResponse(
        method=method,
        data=data,
        code=_text(fields.get("code")),
        msg=_text(fields.get("msg")),
        sub_code=_text(fields.get("sub_code")),
        sub_msg=_text(fields.get("sub_msg")),
        sign=_text(body.get("sign")),
        verified=verified,
    )
