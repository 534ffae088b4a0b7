from __future__ import annotations

import math
from typing import List

from gaswise.core.structures.errors import MalformedUpstreamData
from gaswise.core.structures.structures import EstimatedPrices, FeeSnapshot, TierPrice
from gaswise.core.utils.math_utils import _clamp
from gaswise.integrations.gas_oracle.gas_oracle_constants import (
    JSON,
    CONGESTION_REFERENCE_BASE_FEE,
    GAS_STATION_SOURCE,
    GAS_TRACKER_BASE_FEE_RATIO,
    GAS_TRACKER_FASTEST_MULTIPLIER,
    GAS_TRACKER_SOURCE,
    MIN_PRIORITY_FEE,
)
from gaswise.integrations.gas_oracle.gas_oracle_structures import GasStationPayload, GasTrackerPayload
from gaswise.logging.logger import get_logger

log = get_logger(__name__)


def compute_network_congestion(base_fee: float) -> float:
    """Saturating congestion score in [0, 1]; reaches 1 at the reference base fee."""
    return _clamp(base_fee / CONGESTION_REFERENCE_BASE_FEE, 0.0, 1.0)


def _build_snapshot(
        *,
        base_fee: int,
        priority_fee_range: List[int],
        estimated_prices: EstimatedPrices,
        source: str,
) -> FeeSnapshot:
    try:
        return FeeSnapshot(
            base_fee=base_fee,
            priority_fee_range=tuple(priority_fee_range),
            network_congestion=compute_network_congestion(base_fee),
            estimated_prices=estimated_prices,
            source=source,
        )
    except ValueError as error:
        raise MalformedUpstreamData(f"{source} payload violates fee invariants: {error}") from error


def normalize_gas_station(payload: JSON) -> FeeSnapshot:
    """
    Normalize a tiered gas-station response.

    The base fee is the standard tier's max fee minus its priority fee; the priority
    fee range keeps tier order (safeLow, standard, fast, fastest) and is not sorted.
    """
    parsed = GasStationPayload.from_json(payload)

    base_fee = parsed.standard.max_fee - parsed.standard.max_priority_fee
    if base_fee < 0:
        raise MalformedUpstreamData(
            f"Gas station standard tier priority fee {parsed.standard.max_priority_fee} "
            f"exceeds its max fee {parsed.standard.max_fee}"
        )

    tiers = (parsed.safe_low, parsed.standard, parsed.fast, parsed.fastest)
    estimated_prices = EstimatedPrices(*(TierPrice(tier.max_fee, tier.max_priority_fee) for tier in tiers))

    snapshot = _build_snapshot(
        base_fee=base_fee,
        priority_fee_range=[tier.max_priority_fee for tier in tiers],
        estimated_prices=estimated_prices,
        source=GAS_STATION_SOURCE,
    )
    log.debug("[GAS][NORMALIZE][STATION] base_fee=%s congestion=%.2f priority_range=%s",
              snapshot.base_fee, snapshot.network_congestion, list(snapshot.priority_fee_range))
    return snapshot


def normalize_gas_tracker(payload: JSON) -> FeeSnapshot:
    """
    Normalize a single-price gas-tracker response.

    This source does not split base and priority fee, so the base fee is estimated as
    80% of the propose price and each tier's priority fee is the remainder. The
    missing "fastest" tier is synthesized as 1.2x the fast tier.
    """
    parsed = GasTrackerPayload.from_json(payload)

    base_fee = math.floor(parsed.propose_gas_price * GAS_TRACKER_BASE_FEE_RATIO)

    safe_low_priority = max(MIN_PRIORITY_FEE, parsed.safe_gas_price - base_fee)
    standard_priority = parsed.propose_gas_price - base_fee
    fast_priority = parsed.fast_gas_price - base_fee
    if fast_priority < 0:
        fast_priority = MIN_PRIORITY_FEE
    fastest_priority = math.ceil(fast_priority * GAS_TRACKER_FASTEST_MULTIPLIER)
    fastest_max_fee = math.ceil(parsed.fast_gas_price * GAS_TRACKER_FASTEST_MULTIPLIER)

    estimated_prices = EstimatedPrices(
        safe_low=TierPrice(parsed.safe_gas_price, safe_low_priority),
        standard=TierPrice(parsed.propose_gas_price, standard_priority),
        fast=TierPrice(parsed.fast_gas_price, fast_priority),
        fastest=TierPrice(fastest_max_fee, fastest_priority),
    )

    snapshot = _build_snapshot(
        base_fee=base_fee,
        priority_fee_range=[safe_low_priority, standard_priority, fast_priority, fastest_priority],
        estimated_prices=estimated_prices,
        source=GAS_TRACKER_SOURCE,
    )
    log.debug("[GAS][NORMALIZE][TRACKER] base_fee=%s congestion=%.2f priority_range=%s",
              snapshot.base_fee, snapshot.network_congestion, list(snapshot.priority_fee_range))
    return snapshot


def normalize_payload(payload: JSON) -> FeeSnapshot:
    """Detect which known provider shape `payload` has and normalize it."""
    if GasStationPayload.matches(payload):
        return normalize_gas_station(payload)
    if GasTrackerPayload.matches(payload):
        return normalize_gas_tracker(payload)
    raise MalformedUpstreamData("Payload does not match any known fee oracle shape")
