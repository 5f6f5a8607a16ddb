import asyncio
import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from faxagent.models import ScanName, ScanResult, ScanStatus


class PeriodicScan:
    """
    Auto-resetting fixed-interval trigger for one scan.

    The first run happens one interval after ``start()``. A per-scan lock keeps
    a manual ``run_once()`` from overlapping a timed run of the same scan.
    """

    def __init__(
        self,
        name: ScanName,
        interval: timedelta,
        scan: Callable[[], Awaitable[ScanResult]],
    ):
        self.name = name
        self.interval = interval
        self._scan = scan
        self._lock = asyncio.Lock()
        self._is_running = False
        self._trigger_task: Optional[asyncio.Task] = None

        self.run_count = 0
        self.last_run_at: Optional[datetime] = None
        self.last_result: Optional[ScanResult] = None

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        if self._is_running:
            logging.warning(f"{self.name.value} scan already running")
            return

        self._is_running = True
        self._trigger_task = asyncio.create_task(self._trigger_loop())
        logging.info(f"{self.name.value} scan started - every {self.interval}")

    async def stop(self) -> None:
        if not self._is_running:
            return

        self._is_running = False

        # Lad et igangværende scan gøre sin filoperation færdig
        async with self._lock:
            pass

        if self._trigger_task:
            self._trigger_task.cancel()
            try:
                await self._trigger_task
            except asyncio.CancelledError:
                pass
            self._trigger_task = None

        logging.info(f"{self.name.value} scan stopped")

    async def run_once(self, *, scheduled: bool = False) -> Optional[ScanResult]:
        async with self._lock:
            # En timer firing der ventede på låsen mens stop() blev kaldt springes over
            if scheduled and not self._is_running:
                return None
            self.last_run_at = datetime.now()
            result = await self._scan()

        self.run_count += 1
        self.last_result = result
        logging.info(result.summary())
        return result

    async def _trigger_loop(self) -> None:
        while self._is_running:
            await asyncio.sleep(self.interval.total_seconds())
            if not self._is_running:
                break
            try:
                await self.run_once(scheduled=True)
            except Exception as e:
                logging.error(f"Error in {self.name.value} scan: {e}", exc_info=True)

    def status(self) -> ScanStatus:
        return ScanStatus(
            name=self.name,
            interval_seconds=self.interval.total_seconds(),
            is_running=self._is_running,
            run_count=self.run_count,
            last_run_at=self.last_run_at,
            last_result=self.last_result,
        )
