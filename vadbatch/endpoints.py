"""
vadbatch.endpoints - Round-robin endpoint selection shared by all workers.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence

from vadbatch.exceptions import ConfigError


class EndpointSelector:
    """Hands out endpoint addresses in round-robin order.

    The cursor is the only shared mutable state; it is advanced under a lock
    that is held for an increment and nothing else.
    """

    def __init__(self, addresses: Sequence[str]) -> None:
        if not addresses:
            raise ConfigError("At least one API address must be provided via --addr-api")
        self._addresses = tuple(addresses)
        self._cursor = 0
        self._lock = threading.Lock()

    @property
    def addresses(self) -> tuple[str, ...]:
        return self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

    def next(self) -> str:
        """Return the next address, wrapping after the last one."""
        with self._lock:
            index = self._cursor
            self._cursor += 1
        return self._addresses[index % len(self._addresses)]
