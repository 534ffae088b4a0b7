from __future__ import annotations

from typing import Any, Callable, Dict, Sequence

import pytest

from gaswise.core.structures.structures import EstimatedPrices, FeeSnapshot, TierPrice


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def __call__(self) -> float:
        return self.now


def gas_station_payload(base_fee: int = 50, priority_fees: Sequence[int] = (1, 2, 3, 4)) -> Dict[str, Any]:
    """Tiered payload whose standard tier yields `base_fee`."""
    tiers = ("safeLow", "standard", "fast", "fastest")
    return {
        tier: {"maxPriorityFee": str(priority), "maxFee": str(base_fee + priority)}
        for tier, priority in zip(tiers, priority_fees)
    }


def gas_tracker_payload(safe: str = "30", propose: str = "35", fast: str = "40") -> Dict[str, Any]:
    return {
        "status": "1",
        "message": "OK",
        "result": {"LastBlock": "50000000", "SafeGasPrice": safe, "ProposeGasPrice": propose, "FastGasPrice": fast},
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_snapshot() -> Callable[..., FeeSnapshot]:
    def _make(
            base_fee: float = 50,
            priority_fee_range: Sequence[float] = (1, 2, 3, 4),
            network_congestion: float = 0.5,
            source: str = "test",
    ) -> FeeSnapshot:
        ordered = sorted(priority_fee_range)
        tiers = [TierPrice(base_fee + fee, fee) for fee in ordered[:4]]
        while len(tiers) < 4:
            tiers.append(tiers[-1])
        return FeeSnapshot(
            base_fee=base_fee,
            priority_fee_range=tuple(priority_fee_range),
            network_congestion=network_congestion,
            estimated_prices=EstimatedPrices(*tiers),
            source=source,
        )

    return _make
