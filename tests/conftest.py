"""Pytest fixtures for fieldcrypt tests."""

import threading

import pytest

from fieldcrypt.backend import CryptoBackend
from fieldcrypt.config import CryptoSettings, KeyMaterial, RsaKeyConfig, SymmetricKeyConfig
from fieldcrypt.dispatch import ContainerCryptoService
from fieldcrypt.interceptor import FieldCryptoInterceptor
from fieldcrypt.keys import generate_rsa_key_pair
from fieldcrypt.strategies import StrategyRegistry

AES_KEY = "1234567890123456"
AES_IV = "1234567890123456"
DES_KEY = "12345678"
DES_IV = "12345678"


class FakeBackend:
    """Reversible, recording stand-in for the crypto backend."""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def _record(self, name, *args):
        with self._lock:
            self.calls.append((name, args))

    def encrypt_symmetric(self, mode, padding, algorithm, key, iv, plaintext):
        self._record("encrypt_symmetric", mode, padding, algorithm, key, iv, plaintext)
        return f"enc:{plaintext}"

    def decrypt_symmetric(self, mode, padding, algorithm, key, iv, ciphertext):
        self._record("decrypt_symmetric", mode, padding, algorithm, key, iv, ciphertext)
        return ciphertext.removeprefix("enc:")

    def encrypt_asymmetric(self, plaintext, private_key, public_key):
        self._record("encrypt_asymmetric", plaintext, private_key, public_key)
        return f"rsa:{plaintext}"

    def decrypt_asymmetric(self, ciphertext, public_key, private_key):
        self._record("decrypt_asymmetric", ciphertext, public_key, private_key)
        return ciphertext.removeprefix("rsa:")


class FailingBackend(FakeBackend):
    """Backend that fails on a chosen plaintext."""

    def __init__(self, fail_on="boom"):
        super().__init__()
        self.fail_on = fail_on

    def encrypt_symmetric(self, mode, padding, algorithm, key, iv, plaintext):
        if plaintext == self.fail_on:
            raise RuntimeError("cipher exploded")
        return super().encrypt_symmetric(mode, padding, algorithm, key, iv, plaintext)

    def encrypt_asymmetric(self, plaintext, private_key, public_key):
        if plaintext == self.fail_on:
            raise RuntimeError("cipher exploded")
        return super().encrypt_asymmetric(plaintext, private_key, public_key)


@pytest.fixture(scope="session")
def rsa_pair():
    """1024-bit RSA key pair shared across the session (generation is slow)."""
    return generate_rsa_key_pair(1024)


@pytest.fixture
def settings(rsa_pair):
    """Settings with test AES, DES and RSA keys."""
    return CryptoSettings(
        aes=SymmetricKeyConfig(key=AES_KEY, iv=AES_IV),
        des=SymmetricKeyConfig(key=DES_KEY, iv=DES_IV),
        rsa=RsaKeyConfig(private_key=rsa_pair.private_key, public_key=rsa_pair.public_key),
    )


@pytest.fixture
def aes_keys():
    return KeyMaterial(encrypt_key=AES_KEY, decrypt_key=AES_KEY, iv=AES_IV)


@pytest.fixture
def des_keys():
    return KeyMaterial(encrypt_key=DES_KEY, decrypt_key=DES_KEY, iv=DES_IV)


@pytest.fixture
def rsa_keys(rsa_pair):
    return KeyMaterial(encrypt_key=rsa_pair.private_key, decrypt_key=rsa_pair.public_key)


@pytest.fixture
def backend():
    """Real crypto backend."""
    return CryptoBackend()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def failing_backend():
    return FailingBackend()


@pytest.fixture
def registry():
    """Registry with the built-in strategies."""
    return StrategyRegistry.with_defaults()


@pytest.fixture
def service(registry, backend):
    """Dispatch service backed by the real ciphers."""
    return ContainerCryptoService(registry=registry, backend=backend)


@pytest.fixture
def fake_service(registry, fake_backend):
    """Dispatch service backed by the recording fake."""
    return ContainerCryptoService(registry=registry, backend=fake_backend)


@pytest.fixture
def interceptor(settings):
    """Interceptor using the real ciphers and test keys."""
    return FieldCryptoInterceptor(settings=settings, configure_logs=False)
