from __future__ import annotations

from typing import Dict, Mapping, Optional

import httpx

from gaswise.core.structures.errors import MalformedUpstreamData
from gaswise.integrations.gas_oracle.gas_oracle_constants import JSON, GAS_TRACKER_API_KEY_PARAM
from gaswise.logging.logger import get_logger

log = get_logger(__name__)


def _build_tracker_params(api_key: Optional[str]) -> Dict[str, str]:
    """Query parameters for the gas tracker, adding the API key only when configured."""
    params: Dict[str, str] = {}
    if isinstance(api_key, str) and api_key.strip():
        params[GAS_TRACKER_API_KEY_PARAM] = api_key.strip()
    return params


async def _http_get_json(client: httpx.AsyncClient, url: str, params: Optional[Mapping[str, str]] = None) -> JSON:
    """
    Perform an HTTP GET request and parse the response as JSON.

    Raises:
        httpx.HTTPStatusError on non-2xx responses.
        httpx.RequestError on connection/timeout errors.
        MalformedUpstreamData when the body is not valid JSON.
    """
    # Merged into the URL: a `params=` argument would replace its existing query.
    request_url = httpx.URL(url).copy_merge_params(params) if params else httpx.URL(url)
    try:
        response = await client.get(request_url)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        log.warning("[GAS][HTTP] GET failed: url=%s status=%s", url, exc.response.status_code)
        raise
    except httpx.RequestError as exc:
        log.warning("[GAS][HTTP] GET request error: url=%s error=%s", url, str(exc))
        raise

    try:
        return response.json()
    except ValueError as exc:
        log.debug("[GAS][HTTP] JSON parse failed for URL '%s'.", url)
        raise MalformedUpstreamData(f"Response from {url} is not valid JSON") from exc
