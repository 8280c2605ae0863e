"""Container strategy contract.

A strategy knows how to walk one container shape and rebuild it from
transformed elements. It never contains cipher logic: every element goes
through the crypto backend with the directive and key material it is given.
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from typing import Any, Callable

from fieldcrypt.config import KeyMaterial
from fieldcrypt.directives import CryptoDirective
from fieldcrypt.errors import (
    ContainerCryptoError,
    CryptoError,
    EmptyDataError,
    UnsupportedDataTypeError,
)
from fieldcrypt.logging import get_logger

logger = get_logger(__name__)


class ContainerShape(str, Enum):
    """Runtime classification of a field value."""
    SCALAR = "scalar"
    LIST = "list"
    SET = "set"
    MAP = "map"
    QUEUE = "queue"
    ARRAY = "array"


class ContainerCryptoStrategy(ABC):
    """Four-pipeline contract over one container shape.

    Subclasses implement ``elements`` (positions and values in traversal
    order) and ``_rebuild`` (a new container of the same shape). Output order
    always follows ``elements`` order, also when elements are processed on a
    thread pool.
    """

    shape: ContainerShape
    name: str

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers

    @abstractmethod
    def elements(self, container: Any) -> list[tuple[Any, Any]]:
        """Return (position, value) pairs; position is an index or map key."""

    @abstractmethod
    def _rebuild(self, container: Any, positions: list[Any], values: list[str]) -> Any:
        """Build the output container from transformed values."""

    def location(self, field_name: str | None, position: Any) -> str:
        """Human-readable identity of one element, e.g. ``tags[3]``."""
        return f"{field_name or self.name}[{position}]"

    def _transform(
        self,
        container: Any,
        operation: str,
        field_name: str | None,
        parallel: bool,
        transform: Callable[[str], str],
    ) -> Any:
        items = self.elements(container)
        if not items:
            return container

        def apply(item: tuple[Any, Any]) -> str:
            position, value = item
            where = self.location(field_name, position)
            if value is None:
                raise EmptyDataError(
                    f"{operation} failed: element {where} is None",
                    operation=operation,
                    data=where,
                    container=container,
                )
            if not isinstance(value, str):
                raise UnsupportedDataTypeError(
                    operation,
                    type(value).__name__,
                    value,
                    location=where,
                    container=container,
                )
            try:
                return transform(value)
            except CryptoError:
                raise
            except Exception as e:
                raise ContainerCryptoError(
                    f"{operation} failed for {where}: {e}",
                    operation=operation,
                    data=where,
                    container=container,
                ) from e

        if parallel and len(items) > 1:
            logger.debug(
                "Processing container in parallel",
                shape=self.shape.value,
                size=len(items),
                field=field_name,
            )
            executor = ThreadPoolExecutor(
                max_workers=self.max_workers, thread_name_prefix="fieldcrypt"
            )
            try:
                # map() yields results in submission order
                values = list(executor.map(apply, items))
            finally:
                executor.shutdown(wait=True, cancel_futures=True)
        else:
            values = [apply(item) for item in items]

        return self._rebuild(container, [position for position, _ in items], values)

    def encrypt_symmetric(
        self,
        container: Any,
        backend: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        *,
        field_name: str | None = None,
        parallel: bool = False,
    ) -> Any:
        return self._transform(
            container, "encrypt", field_name, parallel,
            lambda text: backend.encrypt_symmetric(
                directive.mode, directive.padding, directive.algorithm,
                key_material.encrypt_key, key_material.iv, text,
            ),
        )

    def decrypt_symmetric(
        self,
        container: Any,
        backend: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        *,
        field_name: str | None = None,
        parallel: bool = False,
    ) -> Any:
        return self._transform(
            container, "decrypt", field_name, parallel,
            lambda text: backend.decrypt_symmetric(
                directive.mode, directive.padding, directive.algorithm,
                key_material.decrypt_key, key_material.iv, text,
            ),
        )

    def encrypt_asymmetric(
        self,
        container: Any,
        backend: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        *,
        field_name: str | None = None,
        parallel: bool = False,
    ) -> Any:
        # encrypt_key is the private key, decrypt_key the public key
        return self._transform(
            container, "encrypt", field_name, parallel,
            lambda text: backend.encrypt_asymmetric(
                text, key_material.encrypt_key, key_material.decrypt_key,
            ),
        )

    def decrypt_asymmetric(
        self,
        container: Any,
        backend: Any,
        directive: CryptoDirective,
        key_material: KeyMaterial,
        *,
        field_name: str | None = None,
        parallel: bool = False,
    ) -> Any:
        return self._transform(
            container, "decrypt", field_name, parallel,
            lambda text: backend.decrypt_asymmetric(
                text, key_material.decrypt_key, key_material.encrypt_key,
            ),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(shape={self.shape.value})"
