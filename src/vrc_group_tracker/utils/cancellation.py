from __future__ import annotations

import asyncio

from vrc_group_tracker.errors import OperationCancelledError


class CancellationToken:
    """
    Cooperative cancellation, passed explicitly to everything that waits.

    Waits go through `sleep()` so a cancel request ends them immediately.
    Remote calls check `raise_if_cancelled()` before they are sent.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    async def sleep(self, seconds: float) -> None:
        self.raise_if_cancelled()
        if seconds <= 0:
            return
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise OperationCancelledError()
