"""Unit tests for response substring recovery and verification."""

import pytest

from alipay_sign.core.aes import aes_encrypt
from alipay_sign.core.crypto import sign_content
from alipay_sign.core.exceptions import (
    ConfigurationError,
    MalformedResponseError,
    SignatureVerificationError,
)
from alipay_sign.core.models import SignType
from alipay_sign.core.response import (
    check_response_sign,
    get_response_sign_content,
    parse_response,
    response_key,
)

KEY = "alipay_trade_pay_response"
CONTENT = '{"code":"10000","msg":"Success","out_trade_no":"T1","total_amount":"88.88"}'


def signed_body(rsa_key, content=CONTENT, key=KEY, sign_type=SignType.RSA2, template=None):
    sign = sign_content(content, rsa_key, sign_type)
    template = template or '{{"{key}":{content},"sign":"{sign}"}}'
    return template.format(key=key, content=content, sign=sign)


def test_response_key() -> None:
    assert response_key("alipay.trade.pay") == KEY
    assert response_key("alipay.fund.trans.uni.transfer") == "alipay_fund_trans_uni_transfer_response"


def test_recovers_exact_substring(rsa_key) -> None:
    raw = signed_body(rsa_key)
    assert get_response_sign_content(raw, KEY) == CONTENT


def test_recovers_substring_with_original_whitespace(rsa_key) -> None:
    content = '{ "code" : "10000",\n  "amount": 1.10 }'
    raw = signed_body(rsa_key, content, template='{{\n "{key}" : {content} ,\n "sign" : "{sign}"\n}}')
    # 1.10 would reserialize as 1.1; the literal text is kept
    assert get_response_sign_content(raw, KEY) == content


def test_recovers_substring_before_trailing_cert_sn(rsa_key) -> None:
    template = '{{"{key}":{content},"alipay_cert_sn":"abc","sign":"{sign}"}}'
    raw = signed_body(rsa_key, template=template)
    assert get_response_sign_content(raw, KEY) == CONTENT


def test_sign_marker_is_searched_last(rsa_key) -> None:
    content = '{"code":"10000","sign":"inner"}'
    raw = signed_body(rsa_key, content)
    assert get_response_sign_content(raw, KEY) == content


@pytest.mark.parametrize("sign_type", [SignType.RSA, SignType.RSA2])
def test_valid_signature(rsa_key, public_key_pem, sign_type) -> None:
    raw = signed_body(rsa_key, sign_type=sign_type)
    assert check_response_sign(raw, KEY, public_key_pem, sign_type) is True


@pytest.mark.parametrize("raw", ["", None])
def test_empty_input_is_false(public_key_pem, raw) -> None:
    assert check_response_sign(raw, KEY, public_key_pem) is False


def test_missing_response_key_is_false(rsa_key, public_key_pem) -> None:
    raw = signed_body(rsa_key, key="alipay_trade_query_response")
    assert check_response_sign(raw, KEY, public_key_pem) is False


def test_tampered_substring_is_false(rsa_key, public_key_pem) -> None:
    raw = signed_body(rsa_key).replace('"88.88"', '"88.89"')
    assert check_response_sign(raw, KEY, public_key_pem) is False


def test_missing_sign_is_false(public_key_pem) -> None:
    raw = '{"%s":%s}' % (KEY, CONTENT)
    assert check_response_sign(raw, KEY, public_key_pem) is False


def test_invalid_json_is_false(rsa_key, public_key_pem) -> None:
    raw = signed_body(rsa_key)[:-1]
    assert check_response_sign(raw, KEY, public_key_pem) is False


def test_signature_from_other_key_is_false(other_rsa_key, public_key_pem) -> None:
    assert check_response_sign(signed_body(other_rsa_key), KEY, public_key_pem) is False


def test_malformed_shape_raises_on_extraction() -> None:
    with pytest.raises(MalformedResponseError):
        get_response_sign_content('{"other_response":{},"sign":"x"}', KEY)
    with pytest.raises(MalformedResponseError):
        get_response_sign_content('{"sign":"x","%s":{}}' % KEY, KEY)
    with pytest.raises(MalformedResponseError):
        get_response_sign_content('{"%s":"ciphertext","sign":"x"}' % KEY, KEY)


def test_parse_success_response(rsa_key, config) -> None:
    response = parse_response(signed_body(rsa_key), "alipay.trade.pay", config)

    assert response.verified
    assert response.is_success
    assert response.code == "10000"
    assert response.data["out_trade_no"] == "T1"
    assert response.sign


def test_parse_business_failure(rsa_key, config) -> None:
    content = '{"code":"40004","msg":"Business Failed","sub_code":"ACQ.TRADE_NOT_EXIST","sub_msg":"no trade"}'
    response = parse_response(signed_body(rsa_key, content), "alipay.trade.pay", config)

    assert response.verified
    assert not response.is_success
    assert response.sub_code == "ACQ.TRADE_NOT_EXIST"
    assert response.sub_msg == "no trade"


def test_parse_error_response(rsa_key, config) -> None:
    content = '{"code":"40002","msg":"Invalid Arguments","sub_code":"isv.invalid-app-id"}'
    raw = signed_body(rsa_key, content, key="error_response")
    response = parse_response(raw, "alipay.trade.pay", config)

    assert response.verified
    assert response.code == "40002"


def test_parse_rejects_bad_signature(other_rsa_key, config) -> None:
    with pytest.raises(SignatureVerificationError):
        parse_response(signed_body(other_rsa_key), "alipay.trade.pay", config)


def test_parse_without_validation(other_rsa_key, config) -> None:
    response = parse_response(
        signed_body(other_rsa_key), "alipay.trade.pay", config, validate_sign=False
    )
    assert not response.verified
    assert response.is_success


def test_parse_reports_shape_mismatch(rsa_key, config) -> None:
    with pytest.raises(MalformedResponseError):
        parse_response(signed_body(rsa_key), "alipay.trade.query", config)
    with pytest.raises(MalformedResponseError):
        parse_response("not json", "alipay.trade.pay", config)


def test_parse_requires_public_key(rsa_key, config) -> None:
    no_key = config.model_copy(update={"alipay_public_key": None})
    with pytest.raises(ConfigurationError):
        parse_response(signed_body(rsa_key), "alipay.trade.pay", no_key)


def test_parse_decrypts_encrypted_payload(aes_key, config) -> None:
    ciphertext = aes_encrypt({"code": "10000", "msg": "Success"}, aes_key)
    raw = '{"%s":"%s","sign":"x"}' % (KEY, ciphertext)

    response = parse_response(raw, "alipay.trade.pay", config, validate_sign=False, need_encrypt=True)

    assert response.data == {"code": "10000", "msg": "Success"}
    assert response.is_success
