from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence, Union

from gaswise.core.structures.errors import MalformedUpstreamData
from gaswise.core.utils.dict_utils import _read_path
from gaswise.integrations.gas_oracle.gas_oracle_constants import JSON, GAS_TRACKER_SUCCESS_STATUS


def _parse_fee_value(value: JSON, path: Sequence[Union[str, int]]) -> int:
    """
    Parse a fee field published either as a number or a numeric string.

    Fractional values are truncated toward zero ("30.9" -> 30). Booleans, non-numeric
    strings, non-finite and negative values are rejected.
    """
    location = ".".join(str(part) for part in path)
    if value is None:
        raise MalformedUpstreamData(f"Missing field '{location}'")
    if isinstance(value, bool):
        raise MalformedUpstreamData(f"Field '{location}' is not numeric: {value!r}")

    if isinstance(value, int):
        parsed = value
    elif isinstance(value, (float, str)):
        try:
            as_float = float(value.strip()) if isinstance(value, str) else value
            if not math.isfinite(as_float):
                raise ValueError(value)
            parsed = int(as_float)
        except ValueError:
            raise MalformedUpstreamData(f"Field '{location}' is not numeric: {value!r}") from None
    else:
        raise MalformedUpstreamData(f"Field '{location}' is not numeric: {value!r}")

    if parsed < 0:
        raise MalformedUpstreamData(f"Field '{location}' is negative: {value!r}")
    return parsed


def _read_fee(payload: JSON, path: Sequence[Union[str, int]]) -> int:
    return _parse_fee_value(_read_path(payload, path), path)


@dataclass(frozen=True)
class GasStationTier:
    max_fee: int
    max_priority_fee: int

    @staticmethod
    def from_json(payload: JSON, tier_key: str) -> "GasStationTier":
        return GasStationTier(
            max_fee=_read_fee(payload, (tier_key, "maxFee")),
            max_priority_fee=_read_fee(payload, (tier_key, "maxPriorityFee")),
        )


@dataclass(frozen=True)
class GasStationPayload:
    """
    Tiered gas-station response:
      {"safeLow": {"maxPriorityFee": "30", "maxFee": "80"}, "standard": {...}, "fast": {...}, "fastest": {...}}
    """
    safe_low: GasStationTier
    standard: GasStationTier
    fast: GasStationTier
    fastest: GasStationTier

    @staticmethod
    def matches(payload: JSON) -> bool:
        return isinstance(payload, Mapping) and "standard" in payload and "safeLow" in payload

    @staticmethod
    def from_json(payload: JSON) -> "GasStationPayload":
        if not isinstance(payload, Mapping):
            raise MalformedUpstreamData("Gas station payload is not a JSON object")
        return GasStationPayload(
            safe_low=GasStationTier.from_json(payload, "safeLow"),
            standard=GasStationTier.from_json(payload, "standard"),
            fast=GasStationTier.from_json(payload, "fast"),
            fastest=GasStationTier.from_json(payload, "fastest"),
        )


@dataclass(frozen=True)
class GasTrackerPayload:
    """
    Single-price gas-tracker response:
      {"status": "1", "message": "OK", "result": {"SafeGasPrice": "30", "ProposeGasPrice": "35", "FastGasPrice": "40"}}
    """
    safe_gas_price: int
    propose_gas_price: int
    fast_gas_price: int

    @staticmethod
    def matches(payload: JSON) -> bool:
        return isinstance(payload, Mapping) and "status" in payload

    @staticmethod
    def from_json(payload: JSON) -> "GasTrackerPayload":
        if not isinstance(payload, Mapping):
            raise MalformedUpstreamData("Gas tracker payload is not a JSON object")

        status = payload.get("status")
        result = payload.get("result")
        if status != GAS_TRACKER_SUCCESS_STATUS or not isinstance(result, Mapping):
            message = payload.get("message") or payload.get("result") or "unknown error"
            raise MalformedUpstreamData(f"Gas tracker reported failure: status={status!r} message={message!r}")

        return GasTrackerPayload(
            safe_gas_price=_read_fee(payload, ("result", "SafeGasPrice")),
            propose_gas_price=_read_fee(payload, ("result", "ProposeGasPrice")),
            fast_gas_price=_read_fee(payload, ("result", "FastGasPrice")),
        )
