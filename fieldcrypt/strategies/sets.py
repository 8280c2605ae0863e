"""Set strategy."""

from typing import Any

from fieldcrypt.logging import get_logger
from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape

logger = get_logger(__name__)


class SetCryptoStrategy(ContainerCryptoStrategy):
    """Transform ``set``/``frozenset`` values into a new set of the same kind.

    Two elements that map to the same output collapse into one. This is
    accepted behaviour and only logged.
    """

    shape = ContainerShape.SET
    name = "set"

    def elements(self, container: set | frozenset) -> list[tuple[Any, Any]]:
        return list(enumerate(container))

    def _rebuild(
        self, container: set | frozenset, positions: list[Any], values: list[str]
    ) -> set[str] | frozenset[str]:
        result = frozenset(values) if isinstance(container, frozenset) else set(values)
        if len(result) < len(values):
            logger.warning(
                "Set elements collapsed after transform",
                input_size=len(values),
                output_size=len(result),
            )
        return result
