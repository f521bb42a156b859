"""Cooperative cancellation shared by every strategy running for one question."""
from __future__ import annotations

import asyncio

from utils.logger import get_logger

logger = get_logger(__name__)


class OperationCancelledError(Exception):
    """The run was cancelled by its owner. Never retried."""

    def __init__(self, message: str = "The operation was cancelled."):
        super().__init__(message)


class CancellationToken:
    """Single-writer cancellation flag awaited at every suspension point.

    The orchestrator owns the token and is the only caller of ``cancel``;
    engines, the LLM client and backoff waits only read it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        if self._event.is_set():
            return
        logger.info("cancellation_requested")
        self._event.set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise OperationCancelledError()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, delay: float) -> None:
        """Sleep for ``delay`` seconds, waking early (and raising) on cancellation."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise OperationCancelledError()
