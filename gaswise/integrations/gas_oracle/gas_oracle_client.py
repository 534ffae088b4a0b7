from __future__ import annotations

import asyncio
import dataclasses
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from gaswise.configuration.config import settings
from gaswise.core.structures.errors import GasOracleError, UpstreamUnavailable
from gaswise.core.structures.structures import FeeSnapshot
from gaswise.integrations.gas_oracle.gas_oracle_constants import JSON
from gaswise.integrations.gas_oracle.gas_oracle_helpers import _build_tracker_params, _http_get_json
from gaswise.integrations.gas_oracle.gas_oracle_normalizer import normalize_gas_station, normalize_gas_tracker
from gaswise.logging.logger import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class GasOracleConfig:
    primary_api_url: str
    fallback_api_url: str
    tracker_api_key: str = ""
    refresh_interval_seconds: float = 15.0
    max_retries: int = 3
    retry_backoff_seconds: float = 0.5
    http_timeout_seconds: float = 10.0


class GasOracleClient:
    """
    Serves a reasonably fresh FeeSnapshot from a primary gas-station oracle with a
    gas-tracker fallback.

    - A snapshot younger than the refresh interval is returned without I/O.
    - At most one upstream fetch is in flight; concurrent callers join it and get the
      same snapshot or the same error.
    - The primary is retried until `max_retries` is exceeded, then the fallback is
      used once and the retry counter resets.

    There is no internal timer: callers decide the polling cadence.
    """

    def __init__(
            self,
            config: GasOracleConfig,
            http_client: Optional[httpx.AsyncClient] = None,
            clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config
        self._http_client = http_client
        self._clock = clock
        self._last_snapshot: Optional[FeeSnapshot] = None
        self._last_fetch_time: Optional[float] = None
        self._inflight: Optional[asyncio.Task] = None
        self._retry_count: int = 0

    @property
    def config(self) -> GasOracleConfig:
        return self._config

    @property
    def last_snapshot(self) -> Optional[FeeSnapshot]:
        """Most recent successful snapshot, even if stale."""
        return self._last_snapshot

    @property
    def retry_count(self) -> int:
        return self._retry_count

    @property
    def is_fetching(self) -> bool:
        return self._inflight is not None

    def update_config(self, **changes: object) -> None:
        """Merge configuration changes; applies from the next fetch on."""
        self._config = dataclasses.replace(self._config, **changes)
        log.info("[GAS][ORACLE][CONFIG] Updated fields: %s", ", ".join(sorted(changes)))

    def _is_fresh(self) -> bool:
        if self._last_snapshot is None or self._last_fetch_time is None:
            return False
        return (self._clock() - self._last_fetch_time) < self._config.refresh_interval_seconds

    async def get_snapshot(self) -> FeeSnapshot:
        """
        Return the cached snapshot when fresh, otherwise join or start an upstream fetch.

        Raises:
            UpstreamUnavailable: primary retries and the fallback all failed.
        """
        if self._inflight is None and self._is_fresh():
            log.debug("[GAS][ORACLE][CACHE] Serving cached snapshot from %s.", self._last_snapshot.source)
            return self._last_snapshot

        if self._inflight is None:
            self._inflight = asyncio.get_running_loop().create_task(self._refresh())
            self._inflight.add_done_callback(_consume_task_exception)
        else:
            log.debug("[GAS][ORACLE][JOIN] Joining in-flight fetch.")

        # Shielded so a cancelled caller does not abort the fetch other callers share.
        return await asyncio.shield(self._inflight)

    async def fetch_snapshot(self) -> FeeSnapshot:
        return await self.get_snapshot()

    async def _refresh(self) -> FeeSnapshot:
        try:
            snapshot = await self._fetch_with_retries()
            self._last_snapshot = snapshot
            self._last_fetch_time = self._clock()
            log.info(
                "[GAS][ORACLE][REFRESH] source=%s base_fee=%s congestion=%.2f",
                snapshot.source,
                snapshot.base_fee,
                snapshot.network_congestion,
            )
            return snapshot
        finally:
            self._inflight = None

    async def _fetch_with_retries(self) -> FeeSnapshot:
        while True:
            try:
                snapshot = await self._fetch_from_primary()
                self._retry_count = 0
                return snapshot
            except (GasOracleError, httpx.HTTPError) as error:
                self._retry_count += 1
                log.warning(
                    "[GAS][ORACLE][PRIMARY] Fetch failed (attempt %d, max_retries=%d): %s",
                    self._retry_count,
                    self._config.max_retries,
                    error,
                )

            if self._retry_count > self._config.max_retries:
                self._retry_count = 0
                return await self._fetch_from_fallback()

            delay = self._config.retry_backoff_seconds * (2 ** (self._retry_count - 1))
            if delay > 0:
                await asyncio.sleep(delay)

    async def _get_json(self, url: str, params: Optional[dict] = None) -> JSON:
        if self._http_client is not None:
            return await _http_get_json(self._http_client, url, params)
        async with httpx.AsyncClient(timeout=self._config.http_timeout_seconds) as client:
            return await _http_get_json(client, url, params)

    async def _fetch_from_primary(self) -> FeeSnapshot:
        log.debug("[GAS][ORACLE][PRIMARY] GET %s", self._config.primary_api_url)
        payload = await self._get_json(self._config.primary_api_url)
        return normalize_gas_station(payload)

    async def _fetch_from_fallback(self) -> FeeSnapshot:
        log.info("[GAS][ORACLE][FALLBACK] Primary retries exhausted, using fallback oracle.")
        try:
            payload = await self._get_json(
                self._config.fallback_api_url,
                _build_tracker_params(self._config.tracker_api_key),
            )
            return normalize_gas_tracker(payload)
        except (GasOracleError, httpx.HTTPError) as error:
            log.error("[GAS][ORACLE][FALLBACK] Fallback fetch failed: %s", error)
            raise UpstreamUnavailable("Primary and fallback fee oracles are unavailable") from error


def _consume_task_exception(task: asyncio.Task) -> None:
    """Mark a fetch failure as retrieved even when every joined caller was cancelled."""
    if not task.cancelled():
        task.exception()


def build_default_gas_oracle_client(http_client: Optional[httpx.AsyncClient] = None) -> GasOracleClient:
    """Factory using Settings for convenience."""
    config = GasOracleConfig(
        primary_api_url=settings.GAS_PRIMARY_API_URL,
        fallback_api_url=settings.GAS_FALLBACK_API_URL,
        tracker_api_key=settings.GAS_TRACKER_API_KEY,
        refresh_interval_seconds=settings.GAS_REFRESH_INTERVAL_SECONDS,
        max_retries=settings.GAS_MAX_RETRIES,
        retry_backoff_seconds=settings.GAS_RETRY_BACKOFF_SECONDS,
        http_timeout_seconds=settings.GAS_HTTP_TIMEOUT_SECONDS,
    )
    return GasOracleClient(config, http_client=http_client)
