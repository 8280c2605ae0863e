"""Tests for the crypto backend."""

import base64
import re

import pytest

from fieldcrypt.backend import CryptoBackend, crypto_backend
from fieldcrypt.directives import BlockMode, CryptoAlgorithm, PaddingScheme
from fieldcrypt.errors import EmptyDataError, GeneralCryptoError, InvalidKeyFormatError

AES_KEY = "1234567890123456"
AES_IV = "1234567890123456"
DES_KEY = "12345678"
DES_IV = "12345678"

HEX = re.compile(r"^[0-9a-f]+$")

PADDED_SCHEMES = [
    PaddingScheme.PKCS5_PADDING,
    PaddingScheme.ZERO_PADDING,
    PaddingScheme.ISO10126_PADDING,
]


class TestSymmetric:

    def test_hello_world_aes_cbc(self, backend):
        """AES/CBC/PKCS5 round trip of the reference value."""
        ciphertext = backend.encrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES,
            AES_KEY, AES_IV, "hello world",
        )
        assert HEX.match(ciphertext)
        assert len(ciphertext) == 32

        plaintext = backend.decrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES,
            AES_KEY, AES_IV, ciphertext,
        )
        assert plaintext == "hello world"

    @pytest.mark.parametrize("mode", list(BlockMode))
    @pytest.mark.parametrize("padding", PADDED_SCHEMES)
    def test_aes_round_trip(self, backend, mode, padding):
        plaintext = "Sensitive value: 4111-1111-1111-1111"
        ciphertext = backend.encrypt_symmetric(mode, padding, CryptoAlgorithm.AES, AES_KEY, AES_IV, plaintext)
        assert ciphertext != plaintext
        assert backend.decrypt_symmetric(
            mode, padding, CryptoAlgorithm.AES, AES_KEY, AES_IV, ciphertext
        ) == plaintext

    @pytest.mark.parametrize("mode", list(BlockMode))
    def test_des_round_trip(self, backend, mode):
        ciphertext = backend.encrypt_symmetric(
            mode, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.DES, DES_KEY, DES_IV, "legacy"
        )
        assert backend.decrypt_symmetric(
            mode, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.DES, DES_KEY, DES_IV, ciphertext
        ) == "legacy"

    @pytest.mark.parametrize("key", ["a" * 24, "b" * 32])
    def test_longer_aes_keys(self, backend, key):
        ciphertext = backend.encrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, key, AES_IV, "x"
        )
        assert backend.decrypt_symmetric(
            BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, key, AES_IV, ciphertext
        ) == "x"

    @pytest.mark.parametrize("mode", [BlockMode.CFB, BlockMode.OFB, BlockMode.CTR])
    def test_no_padding_stream_modes(self, backend, mode):
        ciphertext = backend.encrypt_symmetric(
            mode, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, "odd length!"
        )
        assert len(ciphertext) == len("odd length!") * 2
        assert backend.decrypt_symmetric(
            mode, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, ciphertext
        ) == "odd length!"

    def test_no_padding_block_aligned(self, backend):
        ciphertext = backend.encrypt_symmetric(
            BlockMode.ECB, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, None, "exactly16bytes!!"
        )
        assert backend.decrypt_symmetric(
            BlockMode.ECB, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, None, ciphertext
        ) == "exactly16bytes!!"

    def test_no_padding_unaligned_block_mode_fails(self, backend):
        with pytest.raises(ValueError):
            backend.encrypt_symmetric(
                BlockMode.CBC, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, "short"
            )

    def test_deterministic(self, backend):
        args = (BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        assert backend.encrypt_symmetric(*args, "same") == backend.encrypt_symmetric(*args, "same")

    def test_iso10126_is_randomised(self, backend):
        args = (BlockMode.ECB, PaddingScheme.ISO10126_PADDING, CryptoAlgorithm.AES, AES_KEY, None)
        first = backend.encrypt_symmetric(*args, "hello world")
        second = backend.encrypt_symmetric(*args, "hello world")
        assert first != second
        assert backend.decrypt_symmetric(*args, first) == backend.decrypt_symmetric(*args, second)

    def test_unicode(self, backend):
        args = (BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        assert backend.decrypt_symmetric(*args, backend.encrypt_symmetric(*args, "héllo 世界")) == "héllo 世界"

    def test_empty_string(self, backend):
        args = (BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        ciphertext = backend.encrypt_symmetric(*args, "")
        assert len(ciphertext) == 32
        assert backend.decrypt_symmetric(*args, ciphertext) == ""

    @pytest.mark.parametrize("mode", [BlockMode.CFB, BlockMode.OFB, BlockMode.CTR])
    def test_empty_string_without_padding_does_not_round_trip(self, backend, mode):
        args = (mode, PaddingScheme.NO_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        ciphertext = backend.encrypt_symmetric(*args, "")
        assert ciphertext == ""
        with pytest.raises(EmptyDataError):
            backend.decrypt_symmetric(*args, ciphertext)

    def test_decrypt_accepts_base64(self, backend):
        args = (BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        ciphertext = backend.encrypt_symmetric(*args, "hello world")
        as_base64 = base64.b64encode(bytes.fromhex(ciphertext)).decode()
        assert backend.decrypt_symmetric(*args, as_base64) == "hello world"

    def test_decrypt_accepts_uppercase_hex(self, backend):
        args = (BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV)
        ciphertext = backend.encrypt_symmetric(*args, "hello world")
        assert backend.decrypt_symmetric(*args, ciphertext.upper()) == "hello world"

    def test_string_parameters(self, backend):
        ciphertext = backend.encrypt_symmetric("CBC", "PKCS5Padding", "AES", AES_KEY, AES_IV, "plain")
        assert backend.decrypt_symmetric("CBC", "PKCS5Padding", "AES", AES_KEY, AES_IV, ciphertext) == "plain"

    def test_shared_instance(self):
        assert isinstance(crypto_backend, CryptoBackend)


class TestSymmetricErrors:

    def test_none_plaintext(self, backend):
        with pytest.raises(EmptyDataError):
            backend.encrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, None
            )

    @pytest.mark.parametrize("ciphertext", [None, "", "   "])
    def test_blank_ciphertext(self, backend, ciphertext):
        with pytest.raises(EmptyDataError):
            backend.decrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, ciphertext
            )

    def test_wrong_key_length(self, backend):
        with pytest.raises(GeneralCryptoError, match="key"):
            backend.encrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, "short", AES_IV, "x"
            )

    def test_wrong_iv_length(self, backend):
        with pytest.raises(GeneralCryptoError, match="IV"):
            backend.encrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, "1234", "x"
            )

    def test_ecb_ignores_missing_iv(self, backend):
        assert backend.encrypt_symmetric(
            BlockMode.ECB, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, None, "x"
        )

    def test_missing_decrypt_key(self, backend):
        with pytest.raises(GeneralCryptoError):
            backend.decrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, None, AES_IV, "00" * 16
            )

    def test_rsa_not_symmetric(self, backend):
        with pytest.raises(GeneralCryptoError, match="not a symmetric"):
            backend.encrypt_symmetric(
                BlockMode.ECB, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.RSA, AES_KEY, None, "x"
            )

    @pytest.mark.parametrize("padding", [
        PaddingScheme.OAEP_PADDING,
        PaddingScheme.PKCS1_PADDING,
        PaddingScheme.SSL3_PADDING,
    ])
    def test_asymmetric_paddings_rejected(self, backend, padding):
        with pytest.raises(GeneralCryptoError, match="not supported"):
            backend.encrypt_symmetric(BlockMode.ECB, padding, CryptoAlgorithm.AES, AES_KEY, None, "x")

    def test_unknown_mode(self, backend):
        with pytest.raises(GeneralCryptoError):
            backend.encrypt_symmetric("GCM", PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, "x")

    @pytest.mark.parametrize("ciphertext", ["zz", "abc", "00" * 5])
    def test_malformed_ciphertext(self, backend, ciphertext):
        with pytest.raises(ValueError):
            backend.decrypt_symmetric(
                BlockMode.CBC, PaddingScheme.PKCS5_PADDING, CryptoAlgorithm.AES, AES_KEY, AES_IV, ciphertext
            )


class TestAsymmetric:

    def test_round_trip(self, backend, rsa_pair):
        ciphertext = backend.encrypt_asymmetric("hello world", rsa_pair.private_key, rsa_pair.public_key)
        base64.b64decode(ciphertext, validate=True)
        assert backend.decrypt_asymmetric(ciphertext, rsa_pair.public_key, rsa_pair.private_key) == "hello world"

    def test_long_value_is_chunked(self, backend, rsa_pair):
        """1024-bit keys hold 117 bytes per block; 500 bytes need 5 blocks."""
        plaintext = "x" * 500
        ciphertext = backend.encrypt_asymmetric(plaintext, rsa_pair.private_key, rsa_pair.public_key)
        assert len(base64.b64decode(ciphertext)) == 5 * 128
        assert backend.decrypt_asymmetric(ciphertext, rsa_pair.public_key, rsa_pair.private_key) == plaintext

    def test_multibyte_across_chunk_boundary(self, backend, rsa_pair):
        plaintext = "é" * 200
        ciphertext = backend.encrypt_asymmetric(plaintext, rsa_pair.private_key, rsa_pair.public_key)
        assert backend.decrypt_asymmetric(ciphertext, rsa_pair.public_key, rsa_pair.private_key) == plaintext

    def test_randomised(self, backend, rsa_pair):
        first = backend.encrypt_asymmetric("same", rsa_pair.private_key, rsa_pair.public_key)
        second = backend.encrypt_asymmetric("same", rsa_pair.private_key, rsa_pair.public_key)
        assert first != second


class TestAsymmetricErrors:

    def test_none_plaintext(self, backend, rsa_pair):
        with pytest.raises(EmptyDataError):
            backend.encrypt_asymmetric(None, rsa_pair.private_key, rsa_pair.public_key)

    def test_blank_ciphertext(self, backend, rsa_pair):
        with pytest.raises(EmptyDataError):
            backend.decrypt_asymmetric("  ", rsa_pair.public_key, rsa_pair.private_key)

    def test_missing_public_key(self, backend, rsa_pair):
        with pytest.raises(GeneralCryptoError):
            backend.encrypt_asymmetric("x", rsa_pair.private_key, None)

    def test_missing_private_key(self, backend, rsa_pair):
        with pytest.raises(GeneralCryptoError):
            backend.decrypt_asymmetric("AAAA", rsa_pair.public_key, "")

    def test_non_base64_key(self, backend):
        with pytest.raises(InvalidKeyFormatError):
            backend.encrypt_asymmetric("x", None, "not a key!")

    def test_unparsable_key(self, backend):
        with pytest.raises(InvalidKeyFormatError):
            backend.encrypt_asymmetric("x", None, "AAAAAAAA")

    def test_swapped_keys(self, backend, rsa_pair):
        with pytest.raises(InvalidKeyFormatError):
            backend.encrypt_asymmetric("x", rsa_pair.public_key, rsa_pair.private_key)

    def test_truncated_ciphertext(self, backend, rsa_pair):
        ciphertext = backend.encrypt_asymmetric("x", rsa_pair.private_key, rsa_pair.public_key)
        truncated = base64.b64encode(base64.b64decode(ciphertext)[:-1]).decode()
        with pytest.raises(ValueError, match="multiple"):
            backend.decrypt_asymmetric(truncated, rsa_pair.public_key, rsa_pair.private_key)
