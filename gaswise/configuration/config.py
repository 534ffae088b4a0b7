from __future__ import annotations

import os


def _as_bool(value: str | None, default: bool = False) -> bool:
    """Parse a truthy/falsey string into a boolean."""
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


class Settings:
    # API
    API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
    API_PORT: int = int(os.getenv("API_PORT", "8000"))
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200")

    # Fee oracles
    GAS_PRIMARY_API_URL: str = os.getenv("GAS_PRIMARY_API_URL", "https://gasstation.polygon.technology/v2")
    GAS_FALLBACK_API_URL: str = os.getenv(
        "GAS_FALLBACK_API_URL",
        "https://api.polygonscan.com/api?module=gastracker&action=gasoracle",
    )
    GAS_TRACKER_API_KEY: str = os.getenv("GAS_TRACKER_API_KEY", "")
    GAS_HTTP_TIMEOUT_SECONDS: float = float(os.getenv("GAS_HTTP_TIMEOUT_SECONDS", "10"))
    GAS_REFRESH_INTERVAL_SECONDS: float = float(os.getenv("GAS_REFRESH_INTERVAL_SECONDS", "15"))
    GAS_MAX_RETRIES: int = int(os.getenv("GAS_MAX_RETRIES", "3"))
    GAS_RETRY_BACKOFF_SECONDS: float = float(os.getenv("GAS_RETRY_BACKOFF_SECONDS", "0.5"))

    # Snapshot poller
    GAS_POLL_ENABLE: bool = _as_bool(os.getenv("GAS_POLL_ENABLE"), True)
    GAS_POLL_INTERVAL_SECONDS: float = float(os.getenv("GAS_POLL_INTERVAL_SECONDS", "15"))

    # Optimizer policy defaults
    POLICY_AGGRESSIVENESS: str = os.getenv("POLICY_AGGRESSIVENESS", "balanced").lower()
    POLICY_MAX_WAIT_TIME_SECONDS: float = float(os.getenv("POLICY_MAX_WAIT_TIME_SECONDS", "30"))
    POLICY_MIN_SAVINGS_PERCENT: float = float(os.getenv("POLICY_MIN_SAVINGS_PERCENT", "5"))
    POLICY_FEE_PERCENT: float = float(os.getenv("POLICY_FEE_PERCENT", "10"))

    # Display
    NATIVE_SYMBOL: str = os.getenv("NATIVE_SYMBOL", "MATIC")
    NATIVE_PRICE_USD: float = float(os.getenv("NATIVE_PRICE_USD", "1.40"))

    # Debug / logging
    NO_COLOR: bool = _as_bool(os.getenv("NO_COLOR"), False)
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "WARNING").upper()
    LOG_LEVEL_GASWISE: str = os.getenv("LOG_LEVEL_GASWISE", "DEBUG").upper()
    LOG_LEVEL_LIB_HTTPX: str = os.getenv("LOG_LEVEL_LIB_HTTPX", "WARNING").upper()
    LOG_LEVEL_LIB_HTTPCORE: str = os.getenv("LOG_LEVEL_LIB_HTTPCORE", "WARNING").upper()
    LOG_LEVEL_LIB_ASYNCIO: str = os.getenv("LOG_LEVEL_LIB_ASYNCIO", "WARNING").upper()
    LOG_LEVEL_LIB_ANYIO: str = os.getenv("LOG_LEVEL_LIB_ANYIO", "WARNING").upper()
    LOG_LEVEL_LIB_WEB3: str = os.getenv("LOG_LEVEL_LIB_WEB3", "WARNING").upper()


settings = Settings()
