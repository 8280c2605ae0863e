"""Map strategy: values are transformed, keys pass through untouched."""

from collections.abc import Mapping
from typing import Any

from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape


class MapCryptoStrategy(ContainerCryptoStrategy):

    shape = ContainerShape.MAP
    name = "map"

    def elements(self, container: Mapping) -> list[tuple[Any, Any]]:
        return list(container.items())

    def location(self, field_name: str | None, position: Any) -> str:
        return f"{field_name or self.name}[{position!r}]"

    def _rebuild(self, container: Mapping, positions: list[Any], values: list[str]) -> dict[Any, str]:
        return dict(zip(positions, values))
