"""Container strategies for field encryption."""

from fieldcrypt.strategies.arrays import ArrayCryptoStrategy
from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape
from fieldcrypt.strategies.lists import ListCryptoStrategy
from fieldcrypt.strategies.maps import MapCryptoStrategy
from fieldcrypt.strategies.queues import QueueCryptoStrategy
from fieldcrypt.strategies.registry import DEFAULT_STRATEGIES, StrategyRegistry
from fieldcrypt.strategies.sets import SetCryptoStrategy

__all__ = [
    "ContainerShape",
    "ContainerCryptoStrategy",
    "ListCryptoStrategy",
    "SetCryptoStrategy",
    "MapCryptoStrategy",
    "QueueCryptoStrategy",
    "ArrayCryptoStrategy",
    "StrategyRegistry",
    "DEFAULT_STRATEGIES",
]
