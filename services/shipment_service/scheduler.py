import asyncio

import structlog

from .reconciler import ShipmentReconciler

logger = structlog.get_logger(__name__)


class ReconcilerScheduler:
    """Runs the reconciler every ``interval`` seconds on the app's event loop."""

    def __init__(self, reconciler: ShipmentReconciler, interval: float):
        self.reconciler = reconciler
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="shipment-reconciler")
        logger.info("reconciler_scheduled", interval_seconds=self.interval)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("reconciler_stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            # run() never raises
            await self.reconciler.run()
