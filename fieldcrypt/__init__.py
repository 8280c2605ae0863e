"""
fieldcrypt - Declarative field-level encryption.

Mark fields of response/request structures with FieldEncrypt or FieldDecrypt
directives and wrap boundary operations with a FieldCryptoInterceptor:

    from typing import Annotated
    from dataclasses import dataclass
    from fieldcrypt import FieldCryptoInterceptor, FieldEncrypt, BlockMode

    @dataclass
    class UserResponse:
        name: str
        email: Annotated[str, FieldEncrypt(mode=BlockMode.CBC)]

    interceptor = FieldCryptoInterceptor()

    @interceptor.encrypt_result
    def get_user() -> UserResponse:
        return UserResponse(name="Ada", email="ada@example.com")
"""

from fieldcrypt.backend import CryptoBackend, crypto_backend
from fieldcrypt.config import (
    CryptoSettings,
    KeyMaterial,
    RsaKeyConfig,
    SymmetricKeyConfig,
    get_settings,
)
from fieldcrypt.directives import (
    BlockMode,
    CryptoAlgorithm,
    CryptoDirection,
    CryptoDirective,
    FieldBinding,
    FieldDecrypt,
    FieldEncrypt,
    PaddingScheme,
    bind_fields,
    crypto_fields,
    declared_directives,
)
from fieldcrypt.dispatch import ContainerCryptoService
from fieldcrypt.errors import (
    ContainerCryptoError,
    CryptoError,
    EmptyDataError,
    ErrorKind,
    GeneralCryptoError,
    InvalidKeyFormatError,
    UnsupportedContainerTypeError,
    UnsupportedDataTypeError,
)
from fieldcrypt.interceptor import FieldCryptoInterceptor
from fieldcrypt.keys import RsaKeyPair, generate_rsa_key_pair, generate_symmetric_key
from fieldcrypt.logging import configure_logging, get_logger, setup_logging
from fieldcrypt.strategies import (
    ContainerCryptoStrategy,
    ContainerShape,
    StrategyRegistry,
)

__version__ = "0.1.0"

__all__ = [
    # Interception
    "FieldCryptoInterceptor",
    # Directives
    "CryptoAlgorithm",
    "BlockMode",
    "PaddingScheme",
    "CryptoDirection",
    "CryptoDirective",
    "FieldEncrypt",
    "FieldDecrypt",
    "FieldBinding",
    "bind_fields",
    "crypto_fields",
    "declared_directives",
    # Dispatch and strategies
    "ContainerCryptoService",
    "ContainerCryptoStrategy",
    "ContainerShape",
    "StrategyRegistry",
    # Backend
    "CryptoBackend",
    "crypto_backend",
    # Configuration
    "CryptoSettings",
    "SymmetricKeyConfig",
    "RsaKeyConfig",
    "KeyMaterial",
    "get_settings",
    # Keys
    "RsaKeyPair",
    "generate_rsa_key_pair",
    "generate_symmetric_key",
    # Logging
    "get_logger",
    "setup_logging",
    "configure_logging",
    # Errors
    "ErrorKind",
    "CryptoError",
    "EmptyDataError",
    "UnsupportedContainerTypeError",
    "UnsupportedDataTypeError",
    "ContainerCryptoError",
    "InvalidKeyFormatError",
    "GeneralCryptoError",
]
