"""
Boundary operation interception.

Wraps caller-designated operations so that directive-bearing fields are
encrypted on the way out and decrypted on the way in:

    interceptor = FieldCryptoInterceptor()

    @interceptor.encrypt_result
    def get_user(user_id: int) -> UserResponse:
        ...

    @interceptor.decrypt_arguments
    async def save_user(request: UserRequest) -> None:
        ...

Fields are mutated in place on the objects themselves. If any field fails,
every field already replaced during the call is restored before the error
propagates.
"""

import inspect
from functools import wraps
from typing import Any, Callable, TypeVar

from fieldcrypt.backend import CryptoBackend
from fieldcrypt.config import CryptoSettings, KeyMaterial, get_settings
from fieldcrypt.directives import CryptoAlgorithm, CryptoDirection, FieldBinding, bind_fields
from fieldcrypt.dispatch import ContainerCryptoService
from fieldcrypt.errors import EmptyDataError
from fieldcrypt.logging import configure_logging, get_logger, operation_context
from fieldcrypt.strategies import StrategyRegistry

logger = get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

KeyProvider = Callable[[CryptoAlgorithm], KeyMaterial]


def _operation_name(operation: Callable) -> str:
    return getattr(operation, "__qualname__", None) or getattr(operation, "__name__", repr(operation))


class FieldCryptoInterceptor:
    """Encrypt-on-exit and decrypt-on-entry handling for boundary operations.

    Args:
        settings: Settings supplying key material and tuning (defaults to get_settings())
        backend: Crypto backend (defaults to the shared CryptoBackend)
        registry: Strategy registry (defaults to the built-in strategies)
        key_provider: Callable resolving KeyMaterial for an algorithm
            (defaults to settings.resolve_key_material)
        configure_logs: Apply the log level and format from settings to the
            fieldcrypt logger (disable when the host application owns logging)
    """

    def __init__(
        self,
        settings: CryptoSettings | None = None,
        backend: CryptoBackend | None = None,
        registry: StrategyRegistry | None = None,
        key_provider: KeyProvider | None = None,
        configure_logs: bool = True,
    ):
        self.settings = settings if settings is not None else get_settings()
        if configure_logs:
            configure_logging(self.settings)
        self.registry = (
            registry
            if registry is not None
            else StrategyRegistry.with_defaults(max_workers=self.settings.max_workers)
        )
        self.service = ContainerCryptoService(
            registry=self.registry,
            backend=backend,
            parallel_threshold=self.settings.parallel_threshold,
            large_asymmetric_container=self.settings.large_asymmetric_container,
        )
        self.key_provider = key_provider if key_provider is not None else self.settings.resolve_key_material

    # ---------------------------------------------------------------------
    # Field processing
    # ---------------------------------------------------------------------

    def _apply(
        self,
        obj: Any,
        direction: CryptoDirection,
        journal: list[tuple[FieldBinding, Any]],
    ) -> None:
        """Process every directive field of obj, recording originals in journal."""
        operation = direction.value
        bindings = bind_fields(obj, direction)
        if not bindings:
            return

        for binding in bindings:
            value = binding.get()
            if value is None:
                raise EmptyDataError(
                    f"{operation} failed: field {binding.name} is None",
                    operation=operation,
                    data=binding.name,
                )

            directive = binding.directive
            if not directive.is_recognized:
                logger.warning(
                    "Unsupported algorithm on field, leaving it unchanged",
                    object=type(obj).__name__,
                    field=binding.name,
                    algorithm=str(directive.algorithm),
                )
                continue

            key_material = self.key_provider(directive.algorithm)
            result = self.service.dispatch(
                value, directive, key_material, direction, field_name=binding.name
            )
            binding.set(result, operation)
            journal.append((binding, value))

        logger.debug(
            f"Fields {operation}ed",
            object=type(obj).__name__,
            fields=len(bindings),
        )

    def _run(self, objects: list[Any], direction: CryptoDirection) -> None:
        journal: list[tuple[FieldBinding, Any]] = []
        seen: set[int] = set()
        try:
            for obj in objects:
                if obj is None or id(obj) in seen:
                    continue
                seen.add(id(obj))
                self._apply(obj, direction, journal)
        except Exception:
            for binding, original in reversed(journal):
                binding.set(original, direction.value)
            if journal:
                logger.warning(
                    f"Restored fields after failed {direction.value}",
                    restored=len(journal),
                )
            raise

    def encrypt_fields(self, obj: Any) -> Any:
        """Encrypt the encrypt-directive fields of obj in place and return it."""
        self._run([obj], CryptoDirection.ENCRYPT)
        return obj

    def decrypt_fields(self, obj: Any) -> Any:
        """Decrypt the decrypt-directive fields of obj in place and return it."""
        self._run([obj], CryptoDirection.DECRYPT)
        return obj

    # ---------------------------------------------------------------------
    # Interception entry points
    # ---------------------------------------------------------------------

    def on_exit(self, operation: Callable, *args, **kwargs) -> Any:
        """
        Run operation, then encrypt the fields of its result.

        A None result is returned unchanged. Any error aborts the call and
        the result is not returned.
        """
        with operation_context(_operation_name(operation)):
            result = operation(*args, **kwargs)
            if result is None:
                return None
            return self.encrypt_fields(result)

    def on_entry(self, operation: Callable, *args, **kwargs) -> Any:
        """
        Decrypt the fields of every argument, then run operation.

        Positional and keyword arguments are both scanned. On error the
        operation is not invoked.
        """
        with operation_context(_operation_name(operation)):
            self._run([*args, *kwargs.values()], CryptoDirection.DECRYPT)
            return operation(*args, **kwargs)

    # ---------------------------------------------------------------------
    # Decorators
    # ---------------------------------------------------------------------

    def encrypt_result(self, func: F) -> F:
        """Decorator encrypting the result of a sync or async operation."""
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with operation_context(_operation_name(func)):
                    result = await func(*args, **kwargs)
                    if result is None:
                        return None
                    return self.encrypt_fields(result)
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            return self.on_exit(func, *args, **kwargs)
        return sync_wrapper  # type: ignore[return-value]

    def decrypt_arguments(self, func: F) -> F:
        """Decorator decrypting the arguments of a sync or async operation."""
        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs):
                with operation_context(_operation_name(func)):
                    self._run([*args, *kwargs.values()], CryptoDirection.DECRYPT)
                    return await func(*args, **kwargs)
            return async_wrapper  # type: ignore[return-value]

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            return self.on_entry(func, *args, **kwargs)
        return sync_wrapper  # type: ignore[return-value]
