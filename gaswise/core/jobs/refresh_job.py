from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from gaswise.core.structures.errors import GasOracleError
from gaswise.integrations.gas_oracle.gas_oracle_client import GasOracleClient
from gaswise.logging.logger import get_logger

log = get_logger(__name__)


class SnapshotRefreshJob:
    """Keeps the oracle cache warm by polling `get_snapshot()` at a fixed interval."""

    def __init__(self, client: GasOracleClient, interval_seconds: float) -> None:
        self._client = client
        self._interval_seconds = interval_seconds
        self._task: Optional[asyncio.Task] = None
        self._failures: int = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def ensure_started(self) -> None:
        if self.is_running:
            return
        self._task = asyncio.get_running_loop().create_task(self._loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        log.info("[GAS][JOB][REFRESH] Stopped.")

    async def run_once(self) -> bool:
        """Refresh once; returns False when the upstream oracles failed."""
        try:
            await self._client.get_snapshot()
        except GasOracleError as error:
            self._failures += 1
            log.warning("[GAS][JOB][REFRESH] Refresh failed (consecutive=%d): %s", self._failures, error)
            return False
        self._failures = 0
        return True

    def get_status(self) -> Dict[str, Any]:
        return {
            "running": self.is_running,
            "interval": self._interval_seconds,
            "consecutiveFailures": self._failures,
        }

    async def _loop(self) -> None:
        log.info("[GAS][JOB][REFRESH] Loop starting (interval=%ss)", self._interval_seconds)
        while True:
            await self.run_once()
            await asyncio.sleep(self._interval_seconds)
