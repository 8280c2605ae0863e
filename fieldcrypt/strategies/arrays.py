"""Array strategy.

Tuples are the fixed-size, one-dimensional sequence shape. The output is
always a plain tuple of strings, also for named tuples.
"""

from typing import Any

from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape


class ArrayCryptoStrategy(ContainerCryptoStrategy):

    shape = ContainerShape.ARRAY
    name = "array"

    def elements(self, container: tuple) -> list[tuple[Any, Any]]:
        return list(enumerate(container))

    def _rebuild(self, container: tuple, positions: list[Any], values: list[str]) -> tuple[str, ...]:
        return tuple(values)
