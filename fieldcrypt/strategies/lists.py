"""List strategy."""

from typing import Any

from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape


class ListCryptoStrategy(ContainerCryptoStrategy):
    """Order-preserving transform of a ``list`` into a new ``list``."""

    shape = ContainerShape.LIST
    name = "list"

    def elements(self, container: list) -> list[tuple[Any, Any]]:
        return list(enumerate(container))

    def _rebuild(self, container: list, positions: list[Any], values: list[str]) -> list[str]:
        return list(values)
