"""
Continuous learning scheduler.

Invokes a retrain callback once per interval while enabled. The pending
run is held as a single asyncio task: start() replaces any running task
and stop() cancels it. Missed intervals are never caught up.
"""

import asyncio
from collections.abc import Awaitable, Callable

import structlog

from .models import ContinuousLearningConfig

logger = structlog.get_logger(__name__)


class ContinuousLearningScheduler:
    def __init__(
        self,
        config: ContinuousLearningConfig,
        retrain_callback: Callable[[], Awaitable[object]],
    ):
        self.config = config
        self.retrain_callback = retrain_callback
        self._task: asyncio.Task | None = None
        self.runs = 0

    @property
    def interval_seconds(self) -> float:
        return self.config.update_interval_minutes * 60

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task | None:
        """Start the periodic loop (must be called from a running event loop)

        Returns:
            The task driving the loop, or None when the scheduler is disabled
        """
        if not self.config.enabled:
            logger.info("Continuous learning disabled, not starting")
            return None

        if self.is_running:
            logger.warning("Continuous learning already running, restarting")
            self.stop()

        self._task = asyncio.get_running_loop().create_task(self._run())
        logger.info(
            "Continuous learning scheduled",
            interval_minutes=self.config.update_interval_minutes,
        )
        return self._task

    def stop(self) -> None:
        """Cancel the pending run (no-op when not running)"""
        if self._task is None:
            return

        self._task.cancel()
        self._task = None
        logger.info("Continuous learning stopped", runs=self.runs)

    def set_enabled(self, enabled: bool) -> None:
        """Toggle the schedule; re-enabling restarts the interval from zero"""
        self.config.enabled = enabled
        if enabled:
            self.start()
        else:
            self.stop()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            self.runs += 1
            logger.info("Starting scheduled retraining", iteration=self.runs)
            try:
                await self.retrain_callback()
            except Exception as e:
                logger.error("Scheduled retraining failed", iteration=self.runs, error=str(e))
