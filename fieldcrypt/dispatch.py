"""Container dispatch service.

Classifies a field value by shape, validates container elements and routes
the value to the backend (strings) or to the registered container strategy,
picking one of four pipelines:

    symmetric encrypt / symmetric decrypt / asymmetric encrypt / asymmetric decrypt
"""

import queue
from collections import deque
from collections.abc import Mapping
from typing import Any

from fieldcrypt.backend import CryptoBackend, crypto_backend
from fieldcrypt.config import KeyMaterial
from fieldcrypt.directives import CryptoDirection, CryptoDirective
from fieldcrypt.errors import (
    ContainerCryptoError,
    CryptoError,
    EmptyDataError,
    GeneralCryptoError,
    UnsupportedContainerTypeError,
    UnsupportedDataTypeError,
)
from fieldcrypt.logging import get_logger
from fieldcrypt.strategies import ContainerCryptoStrategy, ContainerShape, StrategyRegistry

logger = get_logger(__name__)

DEFAULT_PARALLEL_THRESHOLD = 50
DEFAULT_LARGE_ASYMMETRIC_CONTAINER = 100


class ContainerCryptoService:
    """Routes field values through the crypto pipelines.

    Usage:
        service = ContainerCryptoService(StrategyRegistry.with_defaults())
        encrypted = service.encrypt(["a", "b"], FieldEncrypt(), key_material, field_name="tags")
    """

    def __init__(
        self,
        registry: StrategyRegistry | None = None,
        backend: CryptoBackend | None = None,
        parallel_threshold: int = DEFAULT_PARALLEL_THRESHOLD,
        large_asymmetric_container: int = DEFAULT_LARGE_ASYMMETRIC_CONTAINER,
    ):
        self.registry = registry if registry is not None else StrategyRegistry.with_defaults()
        self.backend = backend if backend is not None else crypto_backend
        self.parallel_threshold = parallel_threshold
        self.large_asymmetric_container = large_asymmetric_container

    # ---------------------------------------------------------------------
    # Shape detection and validation
    # ---------------------------------------------------------------------

    @staticmethod
    def detect_shape(value: Any) -> ContainerShape | None:
        """Classify a value, or return None if it is not a supported shape."""
        if isinstance(value, str):
            return ContainerShape.SCALAR
        if isinstance(value, tuple):
            return ContainerShape.ARRAY
        if isinstance(value, list):
            return ContainerShape.LIST
        if isinstance(value, (set, frozenset)):
            return ContainerShape.SET
        if isinstance(value, Mapping):
            return ContainerShape.MAP
        if isinstance(value, (deque, queue.Queue)):
            return ContainerShape.QUEUE
        return None

    def is_supported_container(self, value: Any) -> bool:
        """True for any value with a registered container strategy."""
        shape = self.detect_shape(value)
        return shape is not None and shape != ContainerShape.SCALAR and shape in self.registry

    @staticmethod
    def container_type_name(value: Any) -> str:
        return type(value).__name__

    def validate_elements(
        self,
        value: Any,
        strategy: ContainerCryptoStrategy,
        operation: str,
        field_name: str | None = None,
    ) -> int:
        """Check every element (or map value) is None or a string.

        Runs before any element is transformed, so a rejected container is
        never partially processed.

        Returns:
            Number of elements

        Raises:
            UnsupportedDataTypeError: On the first non-string element
        """
        items = strategy.elements(value)
        for position, element in items:
            if element is not None and not isinstance(element, str):
                raise UnsupportedDataTypeError(
                    operation,
                    type(element).__name__,
                    element,
                    location=strategy.location(field_name, position),
                    container=value,
                )
        return len(items)

    # ---------------------------------------------------------------------
    # Dispatch
    # ---------------------------------------------------------------------

    def dispatch(
        self,
        value: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        direction: CryptoDirection,
        field_name: str | None = None,
    ) -> Any:
        """
        Encrypt or decrypt a field value according to its directive.

        Args:
            value: String or supported container of strings
            directive: Algorithm, mode and padding for the field
            key_material: Keys and IV for the directive's algorithm
            direction: ENCRYPT or DECRYPT
            field_name: Field name used in error messages

        Returns:
            Transformed value of the same shape

        Raises:
            EmptyDataError: If value (or an element) is None
            UnsupportedContainerTypeError: If value has an unsupported type
            UnsupportedDataTypeError: If a container element is not a string
            ContainerCryptoError: If the backend fails
            GeneralCryptoError: On configuration errors
        """
        operation = CryptoDirection(direction).value

        if value is None:
            raise EmptyDataError(
                f"{operation} failed: field {field_name or '<value>'} is None",
                operation=operation,
                data=field_name,
            )
        if not directive.is_recognized:
            raise GeneralCryptoError(
                f"Unsupported algorithm: {directive.algorithm}",
                operation=operation,
                data=directive.algorithm,
            )

        if directive.algorithm.is_asymmetric:
            return self._dispatch_asymmetric(value, directive, key_material, operation, field_name)
        return self._dispatch_symmetric(value, directive, key_material, operation, field_name)

    def encrypt(
        self,
        value: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        field_name: str | None = None,
    ) -> Any:
        return self.dispatch(value, directive, key_material, CryptoDirection.ENCRYPT, field_name)

    def decrypt(
        self,
        value: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        field_name: str | None = None,
    ) -> Any:
        return self.dispatch(value, directive, key_material, CryptoDirection.DECRYPT, field_name)

    def _dispatch_asymmetric(
        self,
        value: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        operation: str,
        field_name: str | None,
    ) -> Any:
        shape = self.detect_shape(value)
        if shape not in (None, ContainerShape.SCALAR):
            size = len(value.queue) if isinstance(value, queue.Queue) else len(value)
            if size > self.large_asymmetric_container:
                logger.warning(
                    "Large container with asymmetric algorithm, consider a symmetric one",
                    field=field_name,
                    shape=shape.value,
                    size=size,
                )
        return self._route(value, shape, directive, key_material, operation, field_name, asymmetric=True)

    def _dispatch_symmetric(
        self,
        value: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        operation: str,
        field_name: str | None,
    ) -> Any:
        shape = self.detect_shape(value)
        return self._route(value, shape, directive, key_material, operation, field_name, asymmetric=False)

    def _route(
        self,
        value: Any,
        shape: ContainerShape | None,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        operation: str,
        field_name: str | None,
        asymmetric: bool,
    ) -> Any:
        if shape is None:
            raise UnsupportedContainerTypeError(operation, self.container_type_name(value), container=value)

        if shape == ContainerShape.SCALAR:
            return self._transform_scalar(value, directive, key_material, operation, field_name, asymmetric)

        strategy = self.registry.get(shape)
        if strategy is None:
            raise GeneralCryptoError(
                f"No strategy registered for shape {shape.value}",
                operation=operation,
                data=shape,
                container=value,
            )

        size = self.validate_elements(value, strategy, operation, field_name)
        parallel = size > self.parallel_threshold
        pipeline = getattr(strategy, f"{operation}_{'asymmetric' if asymmetric else 'symmetric'}")

        logger.debug(
            "Dispatching container",
            field=field_name,
            shape=shape.value,
            size=size,
            algorithm=directive.algorithm.value,
            parallel=parallel,
        )
        try:
            return pipeline(
                value, self.backend, directive, key_material,
                field_name=field_name, parallel=parallel,
            )
        except CryptoError as e:
            logger.error(
                f"Container {operation} failed",
                field=field_name,
                shape=shape.value,
                kind=e.kind.value,
            )
            raise
        except Exception as e:
            logger.error(f"Container {operation} failed", field=field_name, shape=shape.value, error=str(e))
            raise ContainerCryptoError(
                f"{operation} failed for {shape.value} field {field_name}: {e}",
                operation=operation,
                data=field_name,
                container=value,
            ) from e

    def _transform_scalar(
        self,
        value: str,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        operation: str,
        field_name: str | None,
        asymmetric: bool,
    ) -> str:
        encrypting = operation == CryptoDirection.ENCRYPT.value
        try:
            if asymmetric and encrypting:
                return self.backend.encrypt_asymmetric(
                    value, key_material.encrypt_key, key_material.decrypt_key
                )
            if asymmetric:
                return self.backend.decrypt_asymmetric(
                    value, key_material.decrypt_key, key_material.encrypt_key
                )
            if encrypting:
                return self.backend.encrypt_symmetric(
                    directive.mode, directive.padding, directive.algorithm,
                    key_material.encrypt_key, key_material.iv, value,
                )
            return self.backend.decrypt_symmetric(
                directive.mode, directive.padding, directive.algorithm,
                key_material.decrypt_key, key_material.iv, value,
            )
        except CryptoError:
            raise
        except Exception as e:
            raise ContainerCryptoError(
                f"{operation} failed for field {field_name}: {e}",
                operation=operation,
                data=field_name,
            ) from e
