"""
Coalesced persistence of the tracked channel list.

At most one write is in flight, plus at most one pending follow-up that
captures whatever the state is when it starts. Any number of concurrent
save requests therefore collapse into at most two physical writes, and
the last write always reflects the latest mutation.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Optional

from subtrack.exceptions import StorageError

logger = logging.getLogger(__name__)


class SaveCoalescer:
    """
    Serialize and coalesce save requests.

    Parameters
    ----------
    write : Callable[[], Awaitable[None]]
        Performs one full write of the *current* state each time it is
        called. It is the only writer of the tracked-list file.

    Attributes
    ----------
    requests : int
        Save requests received.
    writes : int
        Physical writes started.
    failed_writes : int
        Writes that raised ``StorageError``.

    Notes
    -----
    A request made while a write is in flight returns once the follow-up
    write has finished. Write failures are logged and swallowed; the
    in-memory state stays authoritative and the next request retries.
    """

    def __init__(self, write: Callable[[], Awaitable[None]]) -> None:
        self._write = write
        self._in_flight = False
        self._pending = False
        self._follow_up: Optional[asyncio.Future[None]] = None
        self.requests = 0
        self.writes = 0
        self.failed_writes = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def pending(self) -> bool:
        return self._pending

    async def request_save(self) -> None:
        """Persist the current state, coalescing with any write in flight."""
        self.requests += 1

        if self._in_flight:
            self._pending = True
            if self._follow_up is None:
                self._follow_up = asyncio.get_running_loop().create_future()
            await asyncio.shield(self._follow_up)
            return

        self._in_flight = True
        try:
            while True:
                self._pending = False
                waiters, self._follow_up = self._follow_up, None
                try:
                    await self._write_once()
                finally:
                    if waiters is not None and not waiters.done():
                        waiters.set_result(None)
                if not self._pending:
                    break
        finally:
            self._in_flight = False
            self._pending = False
            # Release waiters of a follow-up that will not run (exception path)
            if self._follow_up is not None:
                if not self._follow_up.done():
                    self._follow_up.set_result(None)
                self._follow_up = None

    async def _write_once(self) -> None:
        self.writes += 1
        try:
            await self._write()
        except StorageError as e:
            self.failed_writes += 1
            logger.error("Error saving channels: %s", e.message, exc_info=True)
