from __future__ import annotations

import pytest

from conftest import gas_station_payload, gas_tracker_payload
from gaswise.core.structures.errors import MalformedUpstreamData
from gaswise.integrations.gas_oracle.gas_oracle_constants import GAS_STATION_SOURCE, GAS_TRACKER_SOURCE
from gaswise.integrations.gas_oracle.gas_oracle_normalizer import (
    compute_network_congestion,
    normalize_gas_station,
    normalize_gas_tracker,
    normalize_payload,
)


def test_gas_station_base_fee_and_congestion() -> None:
    snapshot = normalize_gas_station(gas_station_payload(base_fee=55, priority_fees=(30, 32, 35, 40)))

    assert snapshot.base_fee == 55
    assert snapshot.network_congestion == pytest.approx(0.55)
    assert snapshot.priority_fee_range == (30, 32, 35, 40)
    assert snapshot.source == GAS_STATION_SOURCE
    assert snapshot.estimated_prices.standard.max_fee_per_gas == 87
    assert snapshot.estimated_prices.fastest.max_priority_fee_per_gas == 40


def test_gas_station_keeps_tier_order_in_priority_range() -> None:
    payload = {
        "safeLow": {"maxPriorityFee": 5, "maxFee": 50},
        "standard": {"maxPriorityFee": 2, "maxFee": 52},
        "fast": {"maxPriorityFee": 9, "maxFee": 60},
        "fastest": {"maxPriorityFee": 7, "maxFee": 70},
    }

    snapshot = normalize_gas_station(payload)

    assert snapshot.priority_fee_range == (5, 2, 9, 7)
    assert snapshot.base_fee == 50


def test_gas_station_truncates_fractional_strings() -> None:
    payload = gas_station_payload()
    payload["standard"] = {"maxPriorityFee": "2.9", "maxFee": "52.7"}

    snapshot = normalize_gas_station(payload)

    assert snapshot.base_fee == 50
    assert snapshot.estimated_prices.standard.max_priority_fee_per_gas == 2


def test_gas_tracker_derivation() -> None:
    snapshot = normalize_gas_tracker(gas_tracker_payload(safe="30", propose="35", fast="40"))

    assert snapshot.base_fee == 28
    assert snapshot.priority_fee_range == (2, 7, 12, 15)
    assert snapshot.network_congestion == pytest.approx(0.28)
    assert snapshot.estimated_prices.fastest.max_fee_per_gas == 48
    assert snapshot.estimated_prices.safe_low.max_fee_per_gas == 30
    assert snapshot.source == GAS_TRACKER_SOURCE


def test_gas_tracker_safe_low_priority_never_below_one() -> None:
    snapshot = normalize_gas_tracker(gas_tracker_payload(safe="20", propose="35", fast="40"))

    assert snapshot.priority_fee_range[0] == 1
    assert snapshot.estimated_prices.safe_low.max_priority_fee_per_gas == 1


def test_gas_tracker_error_status_is_malformed() -> None:
    payload = {"status": "0", "message": "NOTOK", "result": "Invalid API Key"}
    with pytest.raises(MalformedUpstreamData, match="NOTOK"):
        normalize_gas_tracker(payload)


def test_gas_tracker_fast_below_propose_breaks_tier_order() -> None:
    with pytest.raises(MalformedUpstreamData, match="tier"):
        normalize_gas_tracker(gas_tracker_payload(safe="30", propose="35", fast="25"))


@pytest.mark.parametrize(
    "tier, field, value",
    [
        ("fastest", "maxFee", None),
        ("standard", "maxPriorityFee", "abc"),
        ("fast", "maxFee", "-3"),
        ("safeLow", "maxFee", True),
        ("fast", "maxPriorityFee", "nan"),
        ("standard", "maxFee", {"value": 1}),
    ],
)
def test_gas_station_rejects_bad_fields(tier, field, value) -> None:
    payload = gas_station_payload()
    if value is None:
        del payload[tier][field]
    else:
        payload[tier][field] = value

    with pytest.raises(MalformedUpstreamData):
        normalize_gas_station(payload)


def test_gas_station_rejects_priority_above_max_fee() -> None:
    payload = gas_station_payload()
    payload["standard"] = {"maxPriorityFee": "60", "maxFee": "52"}

    with pytest.raises(MalformedUpstreamData, match="exceeds"):
        normalize_gas_station(payload)


def test_gas_station_rejects_non_monotonic_tiers() -> None:
    payload = gas_station_payload()
    payload["safeLow"]["maxFee"] = "500"

    with pytest.raises(MalformedUpstreamData, match="safeLow|standard"):
        normalize_gas_station(payload)


def test_gas_station_rejects_non_object() -> None:
    with pytest.raises(MalformedUpstreamData):
        normalize_gas_station(["standard", "safeLow"])


@pytest.mark.parametrize("base_fee, expected", [(0, 0.0), (50, 0.5), (100, 1.0), (250, 1.0)])
def test_congestion_saturates(base_fee, expected) -> None:
    assert compute_network_congestion(base_fee) == pytest.approx(expected)


def test_high_base_fee_snapshot_has_full_congestion() -> None:
    snapshot = normalize_gas_station(gas_station_payload(base_fee=180))
    assert snapshot.network_congestion == 1.0


def test_normalized_tiers_never_decrease() -> None:
    for snapshot in (
            normalize_gas_station(gas_station_payload(base_fee=40, priority_fees=(1, 3, 3, 9))),
            normalize_gas_tracker(gas_tracker_payload(safe="31", propose="31", fast="90")),
    ):
        fees = [tier.max_fee_per_gas for tier in snapshot.estimated_prices.ordered()]
        assert fees == sorted(fees)
        assert all(fee >= 0 for fee in snapshot.priority_fee_range)


def test_normalize_payload_detects_shape() -> None:
    assert normalize_payload(gas_station_payload()).source == GAS_STATION_SOURCE
    assert normalize_payload(gas_tracker_payload()).source == GAS_TRACKER_SOURCE

    with pytest.raises(MalformedUpstreamData, match="known"):
        normalize_payload({"gasPrice": "30"})
