import asyncio
import contextlib
import logging
from typing import Callable

from clinic_scheduler.core import config
from clinic_scheduler.domain.types import Snapshot

logger = logging.getLogger(__name__)


class SnapshotPoller:
    """Re-reads a snapshot on a fixed interval.

    A read that finishes after ``stop()`` is dropped rather than applied. A
    failed read only records ``error``; the next interval tries again.
    """

    def __init__(
        self,
        fetch_snapshot: Callable[[], Snapshot],
        interval_seconds: float | None = None,
        on_snapshot: Callable[[Snapshot], None] | None = None,
    ):
        self._fetch_snapshot = fetch_snapshot
        self.interval_seconds = interval_seconds or config.REFRESH_INTERVAL_SECONDS
        self._on_snapshot = on_snapshot
        self.snapshot: Snapshot | None = None
        self.error = ''
        self.loading = True
        self._active = False
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self._active

    async def tick(self) -> bool:
        """Run one read. Returns True if its result was applied."""
        try:
            snapshot = await asyncio.to_thread(self._fetch_snapshot)
        except Exception as exc:
            if not self._active:
                return False
            logger.warning('Snapshot refresh failed', exc_info=True)
            self.error = str(exc) or 'Failed to refresh appointments'
            self.loading = False
            return False

        if not self._active:
            logger.debug('Discarding snapshot version %d read after stop', snapshot.version)
            return False

        self.snapshot = snapshot
        self.error = ''
        self.loading = False
        if self._on_snapshot is not None:
            try:
                self._on_snapshot(snapshot)
            except Exception:
                logger.exception('Snapshot listener failed for version %d', snapshot.version)
        return True

    async def _run(self) -> None:
        while self._active:
            await self.tick()
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        self._active = True
        self._task = asyncio.create_task(self._run())

    async def refresh(self) -> None:
        """Read now and restart the interval from this read."""
        if not self._active:
            return
        await self._cancel_task()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._active = False
        await self._cancel_task()

    async def _cancel_task(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
