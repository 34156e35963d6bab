"""Core data models for gateway signing, certificates and responses."""

import codecs
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_GATEWAY = "https://openapi.alipay.com/gateway.do"
SUCCESS_CODE = "10000"


class SignType(str, Enum):
    """Signature algorithms accepted by the gateway."""
    RSA = "RSA"
    RSA2 = "RSA2"


class KeyType(str, Enum):
    """Private key encodings and their PEM labels."""
    PKCS1 = "PKCS1"
    PKCS8 = "PKCS8"

    @property
    def pem_label(self) -> str:
        return "PRIVATE KEY" if self is KeyType.PKCS8 else "RSA PRIVATE KEY"


class SigningConfig(BaseModel):
    """Credentials and protocol settings shared by every call of a client session."""

    model_config = ConfigDict(frozen=True)

    app_id: str = Field(
        ...,
        description="Application id issued by the gateway."
    )
    private_key: str = Field(
        ...,
        description="Application RSA private key, PEM armored."
    )
    charset: str = Field(
        "utf-8",
        description="Text encoding of the request (e.g. utf-8, GBK)."
    )
    version: str = Field(
        "1.0",
        description="Protocol version sent as the `version` field."
    )
    sign_type: SignType = Field(
        SignType.RSA2,
        description="RSA (SHA-1) or RSA2 (SHA-256)."
    )
    app_cert_sn: Optional[str] = Field(
        None,
        description="SN of the application public-key certificate."
    )
    alipay_cert_sn: Optional[str] = Field(
        None,
        description="SN of the gateway public-key certificate."
    )
    alipay_root_cert_sn: Optional[str] = Field(
        None,
        description="`_`-joined SNs of the RSA certificates in the gateway root bundle."
    )
    ws_service_url: Optional[str] = Field(
        None,
        description="Service url forwarded as `ws_service_url`."
    )
    encrypt_key: Optional[str] = Field(
        None,
        description="Base64 AES key used for content encryption."
    )
    alipay_public_key: Optional[str] = Field(
        None,
        description="Gateway public key, PEM armored, used to verify responses."
    )
    gateway: str = Field(
        DEFAULT_GATEWAY,
        description="Gateway endpoint; carried for transports, never signed."
    )

    @field_validator('app_id', 'private_key')
    @classmethod
    def require_non_empty(cls, v: str, info) -> str:
        if not v or not v.strip():
            raise ValueError(f'{info.field_name} is required')
        return v

    @field_validator('charset')
    @classmethod
    def validate_charset(cls, v: str) -> str:
        """Reject charsets Python has no codec for."""
        try:
            codecs.lookup(v)
        except LookupError:
            raise ValueError(f'Unknown charset: {v}')
        return v


class IssuerAttribute(BaseModel):
    """One attribute of a certificate issuer name, as it appears in the certificate."""

    model_config = ConfigDict(frozen=True)

    short_name: str
    value: str


class CertificateRecord(BaseModel):
    """The certificate facts the SN formula needs."""

    model_config = ConfigDict(frozen=True)

    issuer: List[IssuerAttribute] = Field(
        ...,
        description="Issuer attributes in certificate order."
    )
    serial_number: str = Field(
        ...,
        pattern=r'^[0-9a-fA-F]+$',
        description="Serial number, hex encoded."
    )
    signature_oid: str = Field(
        ...,
        description="Dotted OID of the certificate signature algorithm."
    )


class SignedEnvelope(BaseModel):
    """Request parameters ready for form encoding, including `sign`."""

    model_config = ConfigDict(frozen=True)

    params: Dict[str, str] = Field(
        ...,
        description="Wire parameters including the `sign` field."
    )
    sign_content: str = Field(
        ...,
        description="The exact string that was signed."
    )
    sign: str = Field(
        ...,
        description="Base64 RSA signature over `sign_content`."
    )


class GatewayResponse(BaseModel):
    """A parsed gateway response."""

    model_config = ConfigDict(frozen=True)

    method: str
    data: Any = Field(
        None,
        description="Content of the `<method>_response` member (decrypted if requested)."
    )
    code: Optional[str] = None
    msg: Optional[str] = None
    sub_code: Optional[str] = None
    sub_msg: Optional[str] = None
    sign: Optional[str] = None
    verified: bool = Field(
        False,
        description="Whether the response signature was checked and matched."
    )

    @property
    def is_success(self) -> bool:
        return self.code == SUCCESS_CODE and self.sub_code is None
