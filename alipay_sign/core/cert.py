"""
Certificate SN derivation.

The gateway identifies certificates by an "SN": the MD5 of the issuer
principal name (attributes in reverse order) followed by the decimal serial
number. Root bundles are identified by the `_`-joined SNs of their RSA-signed
certificates. No chain, validity or revocation checks are performed here.
"""

import base64
import hashlib
import logging
from pathlib import Path
from typing import List, Optional, Union

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID

from alipay_sign.core.exceptions import CertificateParseError, ConfigurationError
from alipay_sign.core.models import CertificateRecord, IssuerAttribute

logger = logging.getLogger(__name__)

# sha1WithRSA, sha256WithRSA, ... all live under pkcs-1
RSA_SIGNATURE_OID_PREFIX = "1.2.840.113549.1.1"

PEM_CERTIFICATE_MARKER = b"-----BEGIN CERTIFICATE-----"

# Names the gateway uses where they differ from RFC 4514
_SHORT_NAMES = {
    NameOID.EMAIL_ADDRESS: "E",
}

CertificateContent = Union[str, bytes]


def _as_bytes(content: CertificateContent) -> bytes:
    return content.encode('utf-8') if isinstance(content, str) else content


def _require_content(content: Optional[CertificateContent]) -> bytes:
    if not content:
        raise ConfigurationError("empty certificate content")
    return _as_bytes(content)


def _read_path(file_path: Optional[Union[str, Path]]) -> bytes:
    if not file_path:
        raise ConfigurationError("empty file path")
    with open(file_path, "rb") as f:
        return f.read()


def load_certificate(content: CertificateContent) -> x509.Certificate:
    """
    Load a single X.509 certificate from PEM.

    Raises:
        ConfigurationError: If ``content`` is empty
        CertificateParseError: If the PEM cannot be parsed
    """
    data = _require_content(content)
    try:
        return x509.load_pem_x509_certificate(data)
    except ValueError as e:
        raise CertificateParseError(f"Invalid certificate: {e}") from e


def load_certificates(content: CertificateContent) -> List[x509.Certificate]:
    """
    Load every certificate of a PEM bundle, in bundle order.

    Content without any certificate block is an empty bundle.
    """
    data = _require_content(content)
    if PEM_CERTIFICATE_MARKER not in data:
        return []
    try:
        return x509.load_pem_x509_certificates(data)
    except ValueError as e:
        raise CertificateParseError(f"Invalid certificate bundle: {e}") from e


def _short_name(attribute: x509.NameAttribute) -> str:
    if attribute.oid in _SHORT_NAMES:
        return _SHORT_NAMES[attribute.oid]
    return attribute.rfc4514_attribute_name


def certificate_record(cert: x509.Certificate) -> CertificateRecord:
    """Extract issuer attributes, hex serial and signature OID from a certificate."""
    issuer = [
        IssuerAttribute(short_name=_short_name(attr), value=str(attr.value))
        for attr in cert.issuer
    ]
    return CertificateRecord(
        issuer=issuer,
        serial_number=format(cert.serial_number, 'x'),
        signature_oid=cert.signature_algorithm_oid.dotted_string,
    )


def principal_name(record: CertificateRecord) -> str:
    """Issuer attributes in reverse order as ``short=value`` joined by commas."""
    return ",".join(
        f"{attr.short_name}={attr.value}" for attr in reversed(record.issuer)
    )


def get_cert_sn(cert: Union[x509.Certificate, CertificateRecord]) -> str:
    """
    Compute the SN of one certificate.

    Args:
        cert: A loaded certificate or its record

    Returns:
        32-character lowercase hex MD5 of principal name + decimal serial
    """
    record = cert if isinstance(cert, CertificateRecord) else certificate_record(cert)
    decimal_serial = str(int(record.serial_number, 16))
    return hashlib.md5(
        (principal_name(record) + decimal_serial).encode('utf-8')
    ).hexdigest()


def get_root_cert_sn(content: CertificateContent) -> str:
    """
    Compute the SN of a root bundle.

    Only certificates signed with an RSA-family algorithm take part; the
    others are skipped. Returns an empty string when none match.
    """
    sns = []
    for cert in load_certificates(content):
        record = certificate_record(cert)
        if not record.signature_oid.startswith(RSA_SIGNATURE_OID_PREFIX):
            logger.debug(f"Skipping non-RSA root certificate ({record.signature_oid})")
            continue
        sns.append(get_cert_sn(record))

    if not sns:
        logger.warning("Root certificate bundle has no RSA-signed certificate; root SN is empty")
    return "_".join(sns)


def get_sn(content: CertificateContent, is_root: bool = False) -> str:
    """SN of certificate content, or of a root bundle when ``is_root`` is set."""
    if is_root:
        return get_root_cert_sn(_require_content(content))
    return get_cert_sn(load_certificate(content))


def get_sn_from_path(file_path: Optional[Union[str, Path]], is_root: bool = False) -> str:
    """SN of the certificate (or root bundle) stored at ``file_path``."""
    return get_sn(_read_path(file_path), is_root)


def load_public_key_from_cert(content: CertificateContent) -> str:
    """
    Extract the public key of a certificate.

    Returns:
        Base64 SubjectPublicKeyInfo DER, ready for
        ``format_key(..., "PUBLIC KEY")``
    """
    cert = load_certificate(content)
    der = cert.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return base64.b64encode(der).decode('ascii')


def load_public_key_from_cert_path(file_path: Optional[Union[str, Path]]) -> str:
    return load_public_key_from_cert(_read_path(file_path))
