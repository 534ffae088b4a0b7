from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gaswise.api.http.http_api import router as http_router
from gaswise.configuration.config import settings
from gaswise.core.gas.policy_store import PolicyStore
from gaswise.core.jobs.refresh_job import SnapshotRefreshJob
from gaswise.core.structures.structures import Policy
from gaswise.integrations.gas_oracle.gas_oracle_client import GasOracleClient, build_default_gas_oracle_client
from gaswise.logging.logger import get_logger

log = get_logger(__name__)


def _parse_allowed_origins(env_value: str) -> List[str]:
    """Parse a comma-separated CORS origins string into a clean list."""
    return [origin.strip() for origin in env_value.split(",") if origin.strip()]


def create_app(
        oracle_client: Optional[GasOracleClient] = None,
        policy_store: Optional[PolicyStore] = None,
        enable_polling: Optional[bool] = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Components are constructed here (or injected by the caller) and attached to
    `app.state`; request handlers resolve them through dependencies.

    Returns:
        FastAPI: Configured gas optimizer API application.
    """
    app = FastAPI(title="Gaswise API")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=_parse_allowed_origins(settings.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    client = oracle_client or build_default_gas_oracle_client()
    app.state.oracle_client = client
    app.state.policy_store = policy_store or PolicyStore(Policy.from_settings())
    app.state.refresh_job = SnapshotRefreshJob(client, settings.GAS_POLL_INTERVAL_SECONDS)
    polling = settings.GAS_POLL_ENABLE if enable_polling is None else enable_polling

    @app.on_event("startup")
    async def on_startup() -> None:
        """Start the snapshot poller when enabled."""
        if polling:
            app.state.refresh_job.ensure_started()
        log.info("Gaswise startup: polling=%s", polling)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await app.state.refresh_job.stop()

    @app.get("/api/status")
    def api_status() -> Dict[str, Any]:
        """Return a minimal status payload for the UI."""
        return {"ok": True, "status": app.state.refresh_job.get_status()}

    app.include_router(http_router)

    return app
