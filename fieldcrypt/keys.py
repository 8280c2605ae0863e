"""
Key generation utilities.

Produces key strings in the form the settings expect, so generated values
can be pasted straight into configuration.
"""

import base64
import secrets
import string
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from fieldcrypt.directives import CryptoAlgorithm
from fieldcrypt.errors import GeneralCryptoError
from fieldcrypt.validator import AES_KEY_LENGTHS, DES_KEY_LENGTH

# Alphanumeric keys survive env files and shell quoting unchanged
_KEY_ALPHABET = string.ascii_letters + string.digits


@dataclass(frozen=True)
class RsaKeyPair:
    """Base64 DER encoded RSA key pair."""
    private_key: str
    public_key: str

    def __repr__(self) -> str:
        return f"RsaKeyPair(private_key=***, public_key={self.public_key[:12]}...)"


def generate_symmetric_key(algorithm: CryptoAlgorithm = CryptoAlgorithm.AES, bits: int = 128) -> str:
    """
    Generate a random alphanumeric key string for a symmetric algorithm.

    The key is used as UTF-8 bytes, so a 16-character string fills a 128-bit
    key. Each character is drawn from 62 symbols and carries about 5.95 bits
    of entropy, so a 16-character key holds roughly 95 bits and a
    32-character key roughly 190 bits.

    Args:
        algorithm: AES or DES
        bits: Key size in bits (128, 192 or 256 for AES; 64 for DES)

    Returns:
        Random key string of bits // 8 characters
    """
    if algorithm == CryptoAlgorithm.RSA:
        raise GeneralCryptoError("Use generate_rsa_key_pair for RSA", operation="generate")

    length = bits // 8
    if algorithm == CryptoAlgorithm.DES:
        allowed = (DES_KEY_LENGTH,)
    else:
        allowed = AES_KEY_LENGTHS
    if bits % 8 or length not in allowed:
        raise GeneralCryptoError(
            f"{algorithm.value} key size must be one of "
            f"{', '.join(str(n * 8) for n in allowed)} bits, got {bits}",
            operation="generate",
            data=bits,
        )
    return "".join(secrets.choice(_KEY_ALPHABET) for _ in range(length))


def generate_rsa_key_pair(bits: int = 2048) -> RsaKeyPair:
    """
    Generate an RSA key pair.

    Args:
        bits: Modulus size (at least 1024)

    Returns:
        RsaKeyPair with Base64 PKCS#8 private key and Base64 SubjectPublicKeyInfo public key
    """
    if bits < 1024:
        raise GeneralCryptoError("RSA key size must be at least 1024 bits", operation="generate", data=bits)

    private_key = rsa.generate_private_key(public_exponent=65537, key_size=bits)
    private_der = private_key.private_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    public_der = private_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    return RsaKeyPair(
        private_key=base64.b64encode(private_der).decode("ascii"),
        public_key=base64.b64encode(public_der).decode("ascii"),
    )
