"""Best-effort side-effect channel for notifications and recurrence cloning.

Effects are zero-argument coroutine factories. A failing effect is logged
and swallowed; the mutation that produced it has already been committed.
Without a running worker the channel awaits each effect inline. After
start() effects go onto a bounded queue drained by a background task,
and a full queue drops the effect with a warning.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

from taskflow.core.config import get_settings
from taskflow.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

Effect = Callable[[], Awaitable[object]]


class SideEffectChannel:
    """ISideEffectChannel implementation (inline or queued)."""

    def __init__(self, queue_size: int | None = None) -> None:
        self._queue_size = queue_size or get_settings().side_effect_queue_size
        self._queue: asyncio.Queue[tuple[str, Effect]] | None = None
        self._worker: asyncio.Task[None] | None = None
        self.failures = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    async def submit(self, name: str, effect: Effect) -> None:
        """Run the effect now, or enqueue it when the worker is running."""
        if not self.is_running or self._queue is None:
            await self._run(name, effect)
            return
        try:
            self._queue.put_nowait((name, effect))
        except asyncio.QueueFull:
            self.failures += 1
            logger.warning(
                "Side-effect queue full (size=%d); dropping %s", self._queue_size, name
            )

    async def _run(self, name: str, effect: Effect) -> None:
        try:
            await effect()
        except Exception:
            self.failures += 1
            logger.exception("Side effect %s failed; continuing", name)

    async def _drain(self) -> None:
        assert self._queue is not None
        while True:
            name, effect = await self._queue.get()
            try:
                await self._run(name, effect)
            finally:
                self._queue.task_done()

    async def start(self) -> None:
        """Start the background worker (idempotent)."""
        if self.is_running:
            return
        self._queue = asyncio.Queue(maxsize=self._queue_size)
        self._worker = asyncio.create_task(self._drain(), name="taskflow-side-effects")
        logger.info("Side-effect worker started (queue_size=%d)", self._queue_size)

    async def stop(self) -> None:
        """Run what is already queued, then stop the worker. Later submits run inline."""
        if self._worker is None:
            return
        if self._queue is not None:
            await self._queue.join()
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        self._queue = None
        logger.info("Side-effect worker stopped")
