"""Background retention sweep for leaked artifacts."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from pathlib import Path

from dubline.storage.artifact_store import ArtifactStore

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Periodically deletes artifact files older than `retention_s`.

    Backstop for requests that crashed before their own cleanup ran. Errors are
    logged and swallowed; the loop keeps running until `stop()`.
    """

    def __init__(
        self,
        store: ArtifactStore,
        *,
        retention_s: float = 600.0,
        interval_s: float = 60.0,
    ) -> None:
        self.store = store
        self.retention_s = float(retention_s)
        self.interval_s = max(0.01, float(interval_s))
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _sweep_dir(self, directory: Path, cutoff: float) -> int:
        removed = 0
        try:
            entries = list(directory.iterdir())
        except FileNotFoundError:
            return 0
        except OSError as exc:
            logger.warning("sweep: cannot list %s: %s", directory, exc)
            return 0

        for entry in entries:
            try:
                st = entry.stat()
                if not entry.is_file() or st.st_mtime >= cutoff:
                    continue
                entry.unlink()
                removed += 1
            except FileNotFoundError:
                # Released by its request while we were looking at it.
                continue
            except OSError as exc:
                logger.warning("sweep: cannot remove %s: %s", entry, exc)
        return removed

    def _sweep_sync(self, now: float) -> int:
        cutoff = now - self.retention_s
        return sum(self._sweep_dir(d, cutoff) for d in self.store.directories())

    async def sweep_once(self, *, now: float | None = None) -> int:
        """Run one pass; returns the number of files removed."""
        ts = time.time() if now is None else float(now)
        try:
            removed = await asyncio.to_thread(self._sweep_sync, ts)
        except Exception:
            logger.exception("sweep pass failed")
            return 0
        if removed:
            logger.info("sweep removed %d stale artifacts", removed)
        return removed

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            await self.sweep_once()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="dubline-retention-sweep")
        logger.info(
            "retention sweep started (retention_s=%.0f, interval_s=%.0f)",
            self.retention_s,
            self.interval_s,
        )

    async def stop(self) -> None:
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("retention sweep stopped")
