"""Crypto Backend.

String-to-string cipher transforms used by the field engine:
- AES and DES in ECB, CBC, CFB, OFB and CTR modes (PyCryptodome)
- RSA PKCS#1 v1.5 with block-wise processing of long values (cryptography)

Symmetric ciphertext is lowercase hex; asymmetric ciphertext is Base64.
The backend holds no mutable state and may be called from many threads.
"""

import base64
import binascii
import os
import re
from functools import lru_cache

from Crypto.Cipher import AES, DES
from Crypto.Util.Padding import pad, unpad
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import padding as asym_padding
from cryptography.hazmat.primitives.asymmetric import rsa

from fieldcrypt.directives import BlockMode, CryptoAlgorithm, PaddingScheme
from fieldcrypt.errors import EmptyDataError, GeneralCryptoError, InvalidKeyFormatError
from fieldcrypt.validator import validate_iv_length, validate_key_length, validate_rsa_key_format

_HEX_PATTERN = re.compile(r"^(?:[0-9a-fA-F]{2})+$")
_WHITESPACE = re.compile(r"\s")

# PKCS#1 v1.5 overhead per RSA block
RSA_PKCS1_OVERHEAD = 11

SYMMETRIC_PADDINGS = frozenset({
    PaddingScheme.NO_PADDING,
    PaddingScheme.ZERO_PADDING,
    PaddingScheme.ISO10126_PADDING,
    PaddingScheme.PKCS5_PADDING,
})


def _pad(data: bytes, scheme: PaddingScheme, block_size: int) -> bytes:
    if scheme == PaddingScheme.PKCS5_PADDING:
        return pad(data, block_size, style="pkcs7")
    if scheme == PaddingScheme.ZERO_PADDING:
        if data and len(data) % block_size == 0:
            return data
        return data + b"\x00" * (block_size - len(data) % block_size)
    if scheme == PaddingScheme.ISO10126_PADDING:
        count = block_size - len(data) % block_size
        return data + os.urandom(count - 1) + bytes([count])
    return data


def _unpad(data: bytes, scheme: PaddingScheme, block_size: int) -> bytes:
    if scheme == PaddingScheme.PKCS5_PADDING:
        return unpad(data, block_size, style="pkcs7")
    if scheme == PaddingScheme.ZERO_PADDING:
        return data.rstrip(b"\x00")
    if scheme == PaddingScheme.ISO10126_PADDING:
        if not data:
            raise ValueError("Padded data is empty")
        count = data[-1]
        if not 1 <= count <= block_size or count > len(data):
            raise ValueError("ISO10126 padding is incorrect")
        return data[:-count]
    return data


def _decode_ciphertext(content: str) -> bytes:
    """Decode hex ciphertext, falling back to Base64."""
    content = content.strip()
    if _HEX_PATTERN.match(content):
        return bytes.fromhex(content)
    try:
        return base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError("Ciphertext is neither hex nor Base64") from e


@lru_cache(maxsize=32)
def _load_public_key(key: str) -> rsa.RSAPublicKey:
    try:
        public_key = serialization.load_der_public_key(base64.b64decode(_WHITESPACE.sub("", key)))
    except (ValueError, TypeError, binascii.Error) as e:
        raise InvalidKeyFormatError("RSA public key could not be parsed", operation="encrypt") from e
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise InvalidKeyFormatError("Public key is not an RSA key", operation="encrypt")
    return public_key


@lru_cache(maxsize=32)
def _load_private_key(key: str) -> rsa.RSAPrivateKey:
    try:
        private_key = serialization.load_der_private_key(
            base64.b64decode(_WHITESPACE.sub("", key)), password=None
        )
    except (ValueError, TypeError, binascii.Error) as e:
        raise InvalidKeyFormatError("RSA private key could not be parsed", operation="decrypt") from e
    if not isinstance(private_key, rsa.RSAPrivateKey):
        raise InvalidKeyFormatError("Private key is not an RSA key", operation="decrypt")
    return private_key


class CryptoBackend:
    """Stateless cipher provider for the field engine.

    Usage:
        backend = CryptoBackend()

        hex_text = backend.encrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES,
            key="1234567890123456", iv="1234567890123456", plaintext="hello world",
        )
        backend.decrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES,
            key="1234567890123456", iv="1234567890123456", ciphertext=hex_text,
        )
    """

    CIPHERS = {
        CryptoAlgorithm.AES: AES,
        CryptoAlgorithm.DES: DES,
    }

    def _check_symmetric(
        self,
        operation: str,
        mode: BlockMode,
        padding: PaddingScheme,
        algorithm: CryptoAlgorithm,
        key: str | None,
        iv: str | None,
    ) -> tuple[BlockMode, PaddingScheme, CryptoAlgorithm]:
        try:
            mode = BlockMode(mode)
            padding = PaddingScheme(padding)
        except ValueError as e:
            raise GeneralCryptoError(str(e), operation=operation) from e

        if algorithm not in self.CIPHERS:
            raise GeneralCryptoError(
                f"{algorithm} is not a symmetric algorithm",
                operation=operation,
                data=algorithm,
            )
        if padding not in SYMMETRIC_PADDINGS:
            raise GeneralCryptoError(
                f"Padding {padding.value} is not supported by symmetric ciphers",
                operation=operation,
                data=padding,
            )

        algorithm = CryptoAlgorithm(algorithm)
        validate_key_length(key, algorithm)
        if mode.uses_iv:
            validate_iv_length(iv, algorithm)
        return mode, padding, algorithm

    def _new_cipher(self, algorithm: CryptoAlgorithm, mode: BlockMode, key: str, iv: str | None):
        module = self.CIPHERS[algorithm]
        key_bytes = key.encode("utf-8")
        iv_bytes = iv.encode("utf-8") if iv is not None else None

        if mode == BlockMode.ECB:
            return module.new(key_bytes, module.MODE_ECB)
        if mode == BlockMode.CBC:
            return module.new(key_bytes, module.MODE_CBC, iv=iv_bytes)
        if mode == BlockMode.CFB:
            return module.new(key_bytes, module.MODE_CFB, iv=iv_bytes, segment_size=module.block_size * 8)
        if mode == BlockMode.OFB:
            return module.new(key_bytes, module.MODE_OFB, iv=iv_bytes)
        # CTR: the whole IV is the initial counter block
        return module.new(key_bytes, module.MODE_CTR, nonce=b"", initial_value=iv_bytes)

    def encrypt_symmetric(
        self,
        mode: BlockMode,
        padding: PaddingScheme,
        algorithm: CryptoAlgorithm,
        key: str | None,
        iv: str | None,
        plaintext: str | None,
    ) -> str:
        """Encrypt a UTF-8 string with AES or DES.

        Args:
            mode: Block mode
            padding: Padding scheme
            algorithm: AES or DES
            key: Key string (16/24/32 bytes for AES, 8 for DES)
            iv: IV string (block size), ignored for ECB
            plaintext: Value to encrypt

        Returns:
            Lowercase hex ciphertext
            (empty for an empty plaintext under NoPadding in a stream mode)

        Raises:
            EmptyDataError: If plaintext is None
            GeneralCryptoError: If parameters are invalid
        """
        if plaintext is None:
            raise EmptyDataError(operation="encrypt")
        mode, padding, algorithm = self._check_symmetric("encrypt", mode, padding, algorithm, key, iv)

        cipher = self._new_cipher(algorithm, mode, key, iv)
        block_size = self.CIPHERS[algorithm].block_size
        data = _pad(plaintext.encode("utf-8"), padding, block_size)
        return cipher.encrypt(data).hex()

    def decrypt_symmetric(
        self,
        mode: BlockMode,
        padding: PaddingScheme,
        algorithm: CryptoAlgorithm,
        key: str | None,
        iv: str | None,
        ciphertext: str | None,
    ) -> str:
        """Decrypt hex (or Base64) ciphertext produced by encrypt_symmetric.

        An empty plaintext encrypted with NoPadding in CFB, OFB or CTR mode
        yields an empty ciphertext, which is rejected here as blank. Use a
        padding scheme when empty strings must round-trip.

        Raises:
            EmptyDataError: If ciphertext is None or blank
            GeneralCryptoError: If parameters are invalid
            ValueError: If the ciphertext or its padding is malformed
        """
        if ciphertext is None or not ciphertext.strip():
            raise EmptyDataError(operation="decrypt", data=ciphertext)
        if not key or not key.strip():
            raise GeneralCryptoError("Decrypt key must not be None or empty", operation="decrypt")
        mode, padding, algorithm = self._check_symmetric("decrypt", mode, padding, algorithm, key, iv)

        cipher = self._new_cipher(algorithm, mode, key, iv)
        block_size = self.CIPHERS[algorithm].block_size
        data = cipher.decrypt(_decode_ciphertext(ciphertext))
        return _unpad(data, padding, block_size).decode("utf-8")

    def encrypt_asymmetric(
        self,
        plaintext: str | None,
        private_key: str | None,
        public_key: str | None,
    ) -> str:
        """Encrypt a UTF-8 string with the RSA public key.

        Values longer than one RSA block are split and the ciphertext blocks
        concatenated.

        Args:
            plaintext: Value to encrypt
            private_key: Private key of the pair (not used for encryption)
            public_key: Base64 DER public key

        Returns:
            Base64 ciphertext

        Raises:
            EmptyDataError: If plaintext is None
            GeneralCryptoError: If the public key is missing
            InvalidKeyFormatError: If the public key is malformed
        """
        if plaintext is None:
            raise EmptyDataError(operation="encrypt")
        if public_key is None or not public_key.strip():
            raise GeneralCryptoError("RSA public key must not be empty", operation="encrypt")
        validate_rsa_key_format(None, public_key)

        key = _load_public_key(public_key)
        chunk_size = key.key_size // 8 - RSA_PKCS1_OVERHEAD
        data = plaintext.encode("utf-8")

        blocks = [
            key.encrypt(data[start:start + chunk_size], asym_padding.PKCS1v15())
            for start in range(0, max(len(data), 1), chunk_size)
        ]
        return base64.b64encode(b"".join(blocks)).decode("ascii")

    def decrypt_asymmetric(
        self,
        ciphertext: str | None,
        public_key: str | None,
        private_key: str | None,
    ) -> str:
        """Decrypt Base64 ciphertext with the RSA private key.

        Raises:
            EmptyDataError: If ciphertext is None or blank
            GeneralCryptoError: If the private key is missing
            InvalidKeyFormatError: If the private key is malformed
            ValueError: If the ciphertext is malformed
        """
        if ciphertext is None or not ciphertext.strip():
            raise EmptyDataError(operation="decrypt", data=ciphertext)
        if private_key is None or not private_key.strip():
            raise GeneralCryptoError("RSA private key must not be empty", operation="decrypt")
        validate_rsa_key_format(private_key, None)

        key = _load_private_key(private_key)
        block_size = key.key_size // 8
        try:
            data = base64.b64decode(_WHITESPACE.sub("", ciphertext), validate=True)
        except binascii.Error as e:
            raise ValueError("RSA ciphertext is not valid Base64") from e
        if not data or len(data) % block_size:
            raise ValueError(
                f"RSA ciphertext length {len(data)} is not a multiple of {block_size} bytes"
            )

        plaintext = b"".join(
            key.decrypt(data[start:start + block_size], asym_padding.PKCS1v15())
            for start in range(0, len(data), block_size)
        )
        return plaintext.decode("utf-8")


# Singleton instance
crypto_backend = CryptoBackend()
