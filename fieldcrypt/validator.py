"""
Key and IV validation for field ciphers.

Lengths are measured on the UTF-8 encoding of the configured strings, since
that is the byte form handed to the ciphers.
"""

import base64
import binascii
import re

from fieldcrypt.directives import CryptoAlgorithm
from fieldcrypt.errors import GeneralCryptoError, InvalidKeyFormatError

AES_KEY_LENGTHS = (16, 24, 32)
AES_IV_LENGTH = 16
DES_KEY_LENGTH = 8
DES_IV_LENGTH = 8

_BASE64_PATTERN = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")
_WHITESPACE = re.compile(r"\s")

_OPERATION = "validate"


def required_key_lengths(algorithm: CryptoAlgorithm) -> tuple[int, ...]:
    """Valid key lengths in bytes for a symmetric algorithm."""
    if algorithm == CryptoAlgorithm.DES:
        return (DES_KEY_LENGTH,)
    return AES_KEY_LENGTHS


def required_iv_length(algorithm: CryptoAlgorithm) -> int:
    """IV length in bytes; RSA needs none."""
    if algorithm == CryptoAlgorithm.RSA:
        return 0
    if algorithm == CryptoAlgorithm.DES:
        return DES_IV_LENGTH
    return AES_IV_LENGTH


def _byte_length(value: str) -> int:
    return len(value.encode("utf-8"))


def is_valid_key_length(key: str | None, algorithm: CryptoAlgorithm) -> bool:
    if key is None:
        return False
    return _byte_length(key) in required_key_lengths(algorithm)


def is_valid_iv(iv: str | None, algorithm: CryptoAlgorithm) -> bool:
    if iv is None:
        return False
    return _byte_length(iv) == required_iv_length(algorithm)


def validate_key_length(key: str | None, algorithm: CryptoAlgorithm) -> None:
    """
    Check a symmetric key against the algorithm's allowed lengths.

    RSA keys are checked by validate_rsa_key_format instead.

    Raises:
        GeneralCryptoError: If key is None or has the wrong length
    """
    if key is None:
        raise GeneralCryptoError("Key must not be None", operation=_OPERATION)
    if algorithm == CryptoAlgorithm.RSA:
        return

    length = _byte_length(key)
    allowed = required_key_lengths(algorithm)
    if length not in allowed:
        expected = ", ".join(str(n) for n in allowed)
        raise GeneralCryptoError(
            f"{algorithm.value} key must be {expected} bytes, got {length} bytes",
            operation=_OPERATION,
            data=length,
        )


def validate_iv_length(iv: str | None, algorithm: CryptoAlgorithm) -> None:
    """
    Check an IV against the algorithm's block size.

    Raises:
        GeneralCryptoError: If iv is None or has the wrong length
    """
    if algorithm == CryptoAlgorithm.RSA:
        return
    if iv is None:
        raise GeneralCryptoError("IV must not be None", operation=_OPERATION)

    required = required_iv_length(algorithm)
    length = _byte_length(iv)
    if length != required:
        raise GeneralCryptoError(
            f"{algorithm.value} requires a {required}-byte IV, got {length} bytes",
            operation=_OPERATION,
            data=length,
        )


def _is_base64(key: str) -> bool:
    clean = _WHITESPACE.sub("", key)
    if not clean or not _BASE64_PATTERN.match(clean):
        return False
    try:
        base64.b64decode(clean, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _validate_single_rsa_key(key: str, key_type: str) -> None:
    if not key.strip():
        raise InvalidKeyFormatError(
            f"RSA {key_type} key must not be empty",
            operation=_OPERATION,
        )
    if not _is_base64(key):
        raise InvalidKeyFormatError(
            f"RSA {key_type} key is not valid Base64 (only plain Base64 DER keys are supported)",
            operation=_OPERATION,
        )


def validate_rsa_key_format(private_key: str | None, public_key: str | None) -> None:
    """
    Check that configured RSA keys are plain Base64 strings.

    Keys that are None are skipped.

    Raises:
        InvalidKeyFormatError: If a key is blank or not Base64
    """
    if private_key is not None:
        _validate_single_rsa_key(private_key, "private")
    if public_key is not None:
        _validate_single_rsa_key(public_key, "public")


def _fit_to_length(value: str, length: int) -> str:
    """Truncate or NUL-pad value so its UTF-8 encoding is exactly length bytes."""
    raw = value.encode("utf-8")
    if len(raw) == length:
        return value
    fitted = raw[:length].decode("utf-8", errors="ignore")
    return fitted + "\x00" * (length - _byte_length(fitted))


def adjust_key_length(key: str, algorithm: CryptoAlgorithm) -> str:
    """
    Normalise a symmetric key to the nearest valid length.

    AES keys grow to the next of 16/24/32 bytes or are truncated to 32;
    DES keys are truncated or padded to 8 bytes.

    Raises:
        GeneralCryptoError: If key is None
    """
    if key is None:
        raise GeneralCryptoError("Key must not be None", operation=_OPERATION)

    allowed = required_key_lengths(algorithm)
    length = _byte_length(key)
    if length in allowed:
        return key
    for target in allowed:
        if length < target:
            return _fit_to_length(key, target)
    return _fit_to_length(key, allowed[-1])


def adjust_iv_length(iv: str | None, algorithm: CryptoAlgorithm) -> str | None:
    """
    Normalise an IV to the algorithm's block size.

    A missing IV becomes a string of ASCII zeros; RSA returns None.
    """
    required = required_iv_length(algorithm)
    if required == 0:
        return None
    if iv is None:
        return "0" * required
    return _fit_to_length(iv, required)
