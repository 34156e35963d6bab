"""Shared fixtures: RSA keys, certificates and a signing configuration."""

import base64
from datetime import datetime, timezone

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from alipay_sign.core.models import SigningConfig

ANT_ISSUER = [
    (NameOID.COUNTRY_NAME, "CN"),
    (NameOID.ORGANIZATION_NAME, "Ant Financial"),
    (NameOID.ORGANIZATIONAL_UNIT_NAME, "Certification Authority"),
    (NameOID.COMMON_NAME, "Ant Financial Certification Authority Class 1 R1"),
]


def make_certificate(issuer_attrs, serial, signing_key, hash_alg=None, subject_key=None):
    """Build a self-issued certificate with the given issuer attributes and serial."""
    name = x509.Name([x509.NameAttribute(oid, value) for oid, value in issuer_attrs])
    subject_key = subject_key or signing_key
    builder = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(subject_key.public_key())
        .serial_number(serial)
        .not_valid_before(datetime(2020, 1, 1, tzinfo=timezone.utc))
        .not_valid_after(datetime(2040, 1, 1, tzinfo=timezone.utc))
    )
    return builder.sign(signing_key, hash_alg or hashes.SHA256())


def to_pem(cert) -> str:
    return cert.public_bytes(serialization.Encoding.PEM).decode("ascii")


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def other_rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def ec_key():
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def private_key_pem(rsa_key) -> str:
    """PKCS#1 (``RSA PRIVATE KEY``) PEM."""
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def pkcs8_private_key_pem(rsa_key) -> str:
    return rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture(scope="session")
def public_key_pem(rsa_key) -> str:
    return rsa_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")


@pytest.fixture(scope="session")
def aes_key() -> str:
    return base64.b64encode(b"0123456789abcdef").decode("ascii")


@pytest.fixture
def config(private_key_pem, public_key_pem, aes_key) -> SigningConfig:
    return SigningConfig(
        app_id="2021000000000001",
        private_key=private_key_pem,
        alipay_public_key=public_key_pem,
        encrypt_key=aes_key,
    )


@pytest.fixture(scope="session")
def ant_certificate(rsa_key):
    return make_certificate(ANT_ISSUER, 123456789012345678901234567890, rsa_key)
