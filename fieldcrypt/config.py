"""Field encryption configuration and key material resolution."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fieldcrypt.directives import CryptoAlgorithm
from fieldcrypt.errors import CryptoError
from fieldcrypt.validator import adjust_iv_length, validate_rsa_key_format


@dataclass(frozen=True)
class KeyMaterial:
    """Keys and IV used for one algorithm during one call.

    For RSA, encrypt_key holds the private key and decrypt_key the public key.
    """
    encrypt_key: str | None
    decrypt_key: str | None
    iv: str | None = None

    def __repr__(self) -> str:
        return "KeyMaterial(encrypt_key=***, decrypt_key=***, iv=***)"


class SymmetricKeyConfig(BaseModel):
    """Key and IV for a symmetric algorithm."""

    key: Optional[str] = None
    iv: Optional[str] = None

    # Truncate or zero-pad the IV to the block size
    auto_adjust_iv: bool = True


class RsaKeyConfig(BaseModel):
    """Base64 DER key pair (PKCS#8 private, SubjectPublicKeyInfo public)."""

    private_key: Optional[str] = None
    public_key: Optional[str] = None


class CryptoSettings(BaseSettings):
    """Field encryption settings loaded from environment variables.

    Nested values use a double underscore, e.g. FIELD_CRYPTO_AES__KEY.
    """

    aes: SymmetricKeyConfig = Field(default_factory=SymmetricKeyConfig)
    des: SymmetricKeyConfig = Field(default_factory=SymmetricKeyConfig)
    rsa: RsaKeyConfig = Field(default_factory=RsaKeyConfig)

    # Containers with more elements than this are processed concurrently
    parallel_threshold: int = Field(default=50, ge=0)
    max_workers: Optional[int] = Field(default=None, ge=1)

    # Asymmetric containers above this size log a performance warning
    large_asymmetric_container: int = Field(default=100, ge=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    model_config = SettingsConfigDict(
        env_prefix="FIELD_CRYPTO_",
        env_nested_delimiter="__",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @model_validator(mode="after")
    def _check_rsa_keys(self) -> "CryptoSettings":
        """Reject malformed RSA keys at load time."""
        try:
            validate_rsa_key_format(self.rsa.private_key, self.rsa.public_key)
        except CryptoError as e:
            raise ValueError(e.message) from e
        return self

    def _symmetric(self, algorithm: CryptoAlgorithm) -> SymmetricKeyConfig:
        return self.des if algorithm == CryptoAlgorithm.DES else self.aes

    def get_encrypt_key(self, algorithm: CryptoAlgorithm) -> str | None:
        """Key used on the encrypt path (the private key for RSA)."""
        if algorithm == CryptoAlgorithm.RSA:
            return self.rsa.private_key
        return self._symmetric(algorithm).key

    def get_decrypt_key(self, algorithm: CryptoAlgorithm) -> str | None:
        """Key used on the decrypt path (the public key for RSA)."""
        if algorithm == CryptoAlgorithm.RSA:
            return self.rsa.public_key
        return self._symmetric(algorithm).key

    def get_iv(self, algorithm: CryptoAlgorithm) -> str | None:
        """IV for the algorithm, normalised when auto_adjust_iv is set."""
        if algorithm == CryptoAlgorithm.RSA:
            return None
        config = self._symmetric(algorithm)
        if config.auto_adjust_iv:
            return adjust_iv_length(config.iv, algorithm)
        return config.iv

    def resolve_key_material(self, algorithm: CryptoAlgorithm) -> KeyMaterial:
        """Resolve the effective keys and IV for an algorithm."""
        return KeyMaterial(
            encrypt_key=self.get_encrypt_key(algorithm),
            decrypt_key=self.get_decrypt_key(algorithm),
            iv=self.get_iv(algorithm),
        )


@lru_cache
def get_settings() -> CryptoSettings:
    """Get cached settings instance."""
    return CryptoSettings()
