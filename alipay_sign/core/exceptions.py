"""
Exceptions raised by the signing core.

Verification mismatches are not represented here as a normal outcome: the
verifiers return ``False`` and leave the policy to the caller.
"""


class AlipaySignError(Exception):
    """Base exception for alipay-sign errors."""
    pass


class ConfigurationError(AlipaySignError):
    """A required credential, key or path is missing."""
    pass


class ParseError(AlipaySignError, ValueError):
    """Key or certificate material could not be parsed."""
    pass


class CertificateParseError(ParseError):
    """PEM certificate data is malformed."""
    pass


class KeyParseError(ParseError):
    """PEM key data is malformed."""
    pass


class CanonicalizationError(AlipaySignError, ValueError):
    """Raised when parameters cannot be turned into a sign string."""
    pass


class EncryptionError(AlipaySignError):
    """AES encryption/decryption failed."""
    pass


class EncryptionKeyMissingError(EncryptionError, ConfigurationError):
    """Encryption was requested without an AES key."""

    def __init__(self, message: str = "encryption key required"):
        super().__init__(message)


class DecryptionError(EncryptionError):
    """Ciphertext could not be decrypted into JSON."""
    pass


class MalformedResponseError(AlipaySignError):
    """The response body does not have the expected ``*_response`` shape."""
    pass


class SignatureVerificationError(AlipaySignError):
    """Response signature did not verify and the caller asked for strict checking."""
    pass
