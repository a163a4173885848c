"""Explicit registry of live Chromy clients."""

import asyncio
from typing import Dict, List, Optional, TYPE_CHECKING

from ..utils.logger import ChromyLogger

if TYPE_CHECKING:
    from .chromy import Chromy


class ChromyRegistry:
    """
    Tracks started clients so they can be closed together.

    Create one, hand it to every Chromy you construct, and call ``cleanup()`` (or use it
    as an async context manager) when done. Clients add themselves on ``start()`` and
    remove themselves on ``close()``.
    """

    def __init__(self, logger: Optional[ChromyLogger] = None):
        self._logger = logger
        self._instances: Dict[str, 'Chromy'] = {}

    def register(self, chromy: 'Chromy') -> None:
        self._instances[chromy.session_id] = chromy

    def unregister(self, chromy: 'Chromy') -> None:
        self._instances.pop(chromy.session_id, None)

    @property
    def instances(self) -> List['Chromy']:
        return list(self._instances.values())

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, chromy: object) -> bool:
        return any(instance is chromy for instance in self._instances.values())

    async def cleanup(self) -> int:
        """Close every registered client concurrently. Returns how many were closed."""
        copy = self.instances
        results = await asyncio.gather(*(c.close() for c in copy), return_exceptions=True)

        closed = 0
        for chromy, result in zip(copy, results):
            if isinstance(result, BaseException):
                # A client that failed to close must not stay registered
                self.unregister(chromy)
                if self._logger is not None:
                    self._logger.error(
                        "registry:cleanup",
                        f"Error closing client: {result}",
                        session_id=chromy.session_id,
                        error=str(result),
                    )
            elif result:
                closed += 1
        return closed

    async def __aenter__(self) -> 'ChromyRegistry':
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.cleanup()

    def __repr__(self) -> str:
        return f"<ChromyRegistry instances={len(self)}>"
