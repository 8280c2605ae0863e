"""Strategy registry.

Maps a container shape to the strategy that handles it. A registry is built
once and handed to the dispatch service; there is no global instance.
"""

from fieldcrypt.errors import GeneralCryptoError
from fieldcrypt.logging import get_logger
from fieldcrypt.strategies.arrays import ArrayCryptoStrategy
from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape
from fieldcrypt.strategies.lists import ListCryptoStrategy
from fieldcrypt.strategies.maps import MapCryptoStrategy
from fieldcrypt.strategies.queues import QueueCryptoStrategy
from fieldcrypt.strategies.sets import SetCryptoStrategy

logger = get_logger(__name__)

DEFAULT_STRATEGIES: tuple[type[ContainerCryptoStrategy], ...] = (
    ListCryptoStrategy,
    SetCryptoStrategy,
    MapCryptoStrategy,
    QueueCryptoStrategy,
    ArrayCryptoStrategy,
)


class StrategyRegistry:
    """Registry of container strategies keyed by shape."""

    def __init__(self):
        self._strategies: dict[ContainerShape, ContainerCryptoStrategy] = {}

    @classmethod
    def with_defaults(cls, max_workers: int | None = None) -> "StrategyRegistry":
        """Create a registry holding the built-in List, Set, Map, Queue and Array strategies."""
        registry = cls()
        for strategy_cls in DEFAULT_STRATEGIES:
            registry.register(strategy_cls(max_workers=max_workers))
        return registry

    def register(self, strategy: ContainerCryptoStrategy, replace: bool = False) -> None:
        """Register a strategy for its shape.

        Args:
            strategy: Strategy instance
            replace: Allow overriding an existing registration

        Raises:
            GeneralCryptoError: If the shape is SCALAR or already registered
        """
        if strategy.shape == ContainerShape.SCALAR:
            raise GeneralCryptoError(
                "Scalar values are handled by the dispatch service, not a strategy",
                operation="register",
                data=strategy.shape,
            )
        if strategy.shape in self._strategies and not replace:
            raise GeneralCryptoError(
                f"A strategy is already registered for shape {strategy.shape.value}",
                operation="register",
                data=strategy.shape,
            )
        self._strategies[strategy.shape] = strategy
        logger.debug("Registered container strategy", shape=strategy.shape.value, strategy=strategy.name)

    def unregister(self, shape: ContainerShape) -> ContainerCryptoStrategy | None:
        """Remove and return the strategy for a shape, if any."""
        return self._strategies.pop(shape, None)

    def get(self, shape: ContainerShape) -> ContainerCryptoStrategy | None:
        """Get the strategy for a shape."""
        return self._strategies.get(shape)

    def all(self) -> list[ContainerCryptoStrategy]:
        """All registered strategies."""
        return list(self._strategies.values())

    def __contains__(self, shape: ContainerShape) -> bool:
        return shape in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
