"""Queue strategy.

``collections.deque`` and ``queue.Queue`` (and its subclasses) are read in
their current internal order without consuming them. A deque comes back as
a deque with the same ``maxlen``; any ``queue.Queue`` comes back as a plain
FIFO ``queue.Queue``.
"""

import queue
from collections import deque
from typing import Any

from fieldcrypt.strategies.base import ContainerCryptoStrategy, ContainerShape


class QueueCryptoStrategy(ContainerCryptoStrategy):

    shape = ContainerShape.QUEUE
    name = "queue"

    def elements(self, container: deque | queue.Queue) -> list[tuple[Any, Any]]:
        if isinstance(container, queue.Queue):
            with container.mutex:
                snapshot = list(container.queue)
        else:
            snapshot = list(container)
        return list(enumerate(snapshot))

    def _rebuild(
        self, container: deque | queue.Queue, positions: list[Any], values: list[str]
    ) -> deque | queue.Queue:
        if isinstance(container, deque):
            return deque(values, maxlen=container.maxlen)

        result: queue.Queue = queue.Queue()
        for value in values:
            result.put_nowait(value)
        return result
