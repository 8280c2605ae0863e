"""
Exception classes for field-level encryption.

Every failure raised by the engine is a CryptoError subclass carrying the
operation label, the offending data (field name, element position, key) and,
where relevant, the container being processed.
"""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Closed set of failure categories."""
    EMPTY_DATA = "empty_data"
    UNSUPPORTED_CONTAINER_TYPE = "unsupported_container_type"
    UNSUPPORTED_DATA_TYPE = "unsupported_data_type"
    CONTAINER_CRYPTO_ERROR = "container_crypto_error"
    INVALID_KEY_FORMAT = "invalid_key_format"
    GENERAL_ERROR = "general_error"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    ErrorKind.EMPTY_DATA: "data must not be None",
    ErrorKind.UNSUPPORTED_CONTAINER_TYPE: "unsupported container type",
    ErrorKind.UNSUPPORTED_DATA_TYPE: "unsupported data type",
    ErrorKind.CONTAINER_CRYPTO_ERROR: "container encryption/decryption error",
    ErrorKind.INVALID_KEY_FORMAT: "invalid key format",
    ErrorKind.GENERAL_ERROR: "general error",
}


class CryptoError(Exception):
    """Base exception for field encryption errors."""

    kind: ErrorKind = ErrorKind.GENERAL_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        operation: str,
        data: Any = None,
        container: Any = None,
    ):
        """
        Initialize crypto error.

        Args:
            message: Error message (defaults to "<operation> failed: <kind>")
            operation: Operation label, e.g. "encrypt" or "decrypt"
            data: Offending value or identity (field name, index, key)
            container: Container being processed when the error occurred
        """
        if message is None:
            message = f"{operation} failed: {self.kind.description}"
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.data = data
        self.container = container


class EmptyDataError(CryptoError):
    """A field, container or element value is None."""

    kind = ErrorKind.EMPTY_DATA


class UnsupportedContainerTypeError(CryptoError):
    """The runtime type of a value is not a string or a supported container."""

    kind = ErrorKind.UNSUPPORTED_CONTAINER_TYPE

    def __init__(self, operation: str, container_type: str, container: Any = None):
        super().__init__(
            f"{operation} failed: unsupported container type: {container_type}",
            operation=operation,
            data=container_type,
            container=container,
        )
        self.container_type = container_type


class UnsupportedDataTypeError(CryptoError):
    """An element inside a container is not a string."""

    kind = ErrorKind.UNSUPPORTED_DATA_TYPE

    def __init__(
        self,
        operation: str,
        data_type: str,
        data: Any = None,
        *,
        location: str | None = None,
        container: Any = None,
    ):
        where = f" at {location}" if location else ""
        super().__init__(
            f"{operation} failed: unsupported data type {data_type}{where}, only str is supported",
            operation=operation,
            data=data,
            container=container,
        )
        self.data_type = data_type
        self.location = location


class ContainerCryptoError(CryptoError):
    """The crypto backend failed while transforming a value."""

    kind = ErrorKind.CONTAINER_CRYPTO_ERROR


class InvalidKeyFormatError(CryptoError):
    """Key material is malformed."""

    kind = ErrorKind.INVALID_KEY_FORMAT


class GeneralCryptoError(CryptoError):
    """Configuration or parameter error (key length, missing strategy, ...)."""

    kind = ErrorKind.GENERAL_ERROR
