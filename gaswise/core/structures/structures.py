from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from gaswise.configuration.config import settings
from gaswise.core.structures.errors import InvalidTransactionIntent
from gaswise.core.utils.date_utils import timezone_now

Number = Union[int, float]


class SpeedTier(Enum):
    """Named service levels published by fee oracles, slowest first."""
    SAFE_LOW = "safeLow"
    STANDARD = "standard"
    FAST = "fast"
    FASTEST = "fastest"


class TransactionType(Enum):
    TRANSFER = "transfer"
    ERC20_TRANSFER = "erc20Transfer"
    SWAP = "swap"
    NFT_MINT = "nftMint"
    NFT_TRANSFER = "nftTransfer"
    CONTRACT_INTERACTION = "contractInteraction"


class Aggressiveness(Enum):
    """How far the optimizer trades confirmation speed for a lower fee."""
    CONSERVATIVE = "conservative"
    BALANCED = "balanced"
    AGGRESSIVE = "aggressive"


class SavingsLevel(Enum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


def _is_non_negative_number(value: object) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value) and value >= 0


@dataclass(frozen=True)
class TierPrice:
    """EIP-1559 fee pair for one speed tier, in gwei."""
    max_fee_per_gas: Number
    max_priority_fee_per_gas: Number

    def to_plain_dict(self) -> Dict[str, Number]:
        return {
            "maxFeePerGas": self.max_fee_per_gas,
            "maxPriorityFeePerGas": self.max_priority_fee_per_gas,
        }


@dataclass(frozen=True)
class EstimatedPrices:
    """All four speed tiers; `max_fee_per_gas` never decreases from safe_low to fastest."""
    safe_low: TierPrice
    standard: TierPrice
    fast: TierPrice
    fastest: TierPrice

    def tier(self, speed: SpeedTier) -> TierPrice:
        return {
            SpeedTier.SAFE_LOW: self.safe_low,
            SpeedTier.STANDARD: self.standard,
            SpeedTier.FAST: self.fast,
            SpeedTier.FASTEST: self.fastest,
        }[speed]

    def ordered(self) -> Tuple[TierPrice, ...]:
        return tuple(self.tier(speed) for speed in SpeedTier)

    def to_plain_dict(self) -> Dict[str, Dict[str, Number]]:
        return {speed.value: self.tier(speed).to_plain_dict() for speed in SpeedTier}


@dataclass(frozen=True)
class FeeSnapshot:
    """
    Canonical fee data produced by one successful fetch cycle.

    Construction enforces the normalization invariants and raises ValueError when
    they do not hold; a snapshot is never partially populated.
    """
    base_fee: Number
    priority_fee_range: Tuple[Number, ...]
    network_congestion: float
    estimated_prices: EstimatedPrices
    source: str
    timestamp: datetime = field(default_factory=timezone_now)

    def __post_init__(self) -> None:
        object.__setattr__(self, "priority_fee_range", tuple(self.priority_fee_range))

        if not _is_non_negative_number(self.base_fee):
            raise ValueError(f"base_fee must be a non-negative number, got {self.base_fee!r}")
        if not self.priority_fee_range:
            raise ValueError("priority_fee_range must not be empty")
        for fee in self.priority_fee_range:
            if not _is_non_negative_number(fee):
                raise ValueError(f"priority fees must be non-negative numbers, got {fee!r}")
        if not _is_non_negative_number(self.network_congestion) or self.network_congestion > 1:
            raise ValueError(f"network_congestion must be within [0, 1], got {self.network_congestion!r}")

        previous_max_fee: Number = 0
        for speed, tier in zip(SpeedTier, self.estimated_prices.ordered()):
            if not _is_non_negative_number(tier.max_fee_per_gas) or not _is_non_negative_number(
                    tier.max_priority_fee_per_gas):
                raise ValueError(f"tier '{speed.value}' carries a negative or non-numeric fee")
            if tier.max_fee_per_gas < previous_max_fee:
                raise ValueError(f"tier '{speed.value}' max fee {tier.max_fee_per_gas} is below the slower tier")
            previous_max_fee = tier.max_fee_per_gas

    def age_seconds(self, now: Optional[datetime] = None) -> float:
        reference = now or timezone_now()
        return max(0.0, (reference - self.timestamp).total_seconds())

    def to_plain_dict(self) -> Dict[str, Any]:
        return {
            "baseFee": self.base_fee,
            "priorityFeeRange": list(self.priority_fee_range),
            "networkCongestion": self.network_congestion,
            "estimatedPrices": self.estimated_prices.to_plain_dict(),
            "source": self.source,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass(frozen=True)
class TransactionIntent:
    """
    Caller-supplied transaction description. The optional fee fields are the
    caller's current settings and act as the baseline for savings.
    """
    type: TransactionType
    gas_limit: Optional[int] = None
    max_fee_per_gas: Optional[Number] = None
    max_priority_fee_per_gas: Optional[Number] = None


def _parse_transaction_type(raw: Union[str, TransactionType]) -> TransactionType:
    if isinstance(raw, TransactionType):
        return raw
    try:
        return TransactionType(raw)
    except ValueError:
        raise InvalidTransactionIntent(f"Unknown transaction type: {raw!r}") from None


def build_transaction_intent(
        transaction_type: Union[str, TransactionType],
        gas_limit: Optional[int] = None,
        max_fee_per_gas: Optional[Number] = None,
        max_priority_fee_per_gas: Optional[Number] = None,
) -> TransactionIntent:
    """
    Validate raw caller input and build a TransactionIntent.

    Raises:
        InvalidTransactionIntent: unknown type, negative or non-numeric fee values,
            or a gas limit that is not a non-negative integer.
    """
    parsed_type = _parse_transaction_type(transaction_type)

    if gas_limit is not None:
        if isinstance(gas_limit, bool) or not isinstance(gas_limit, int) or gas_limit < 0:
            raise InvalidTransactionIntent(f"gas_limit must be a non-negative integer, got {gas_limit!r}")

    for name, value in (("max_fee_per_gas", max_fee_per_gas), ("max_priority_fee_per_gas", max_priority_fee_per_gas)):
        if value is not None and not _is_non_negative_number(value):
            raise InvalidTransactionIntent(f"{name} must be a non-negative number, got {value!r}")

    return TransactionIntent(
        type=parsed_type,
        gas_limit=gas_limit,
        max_fee_per_gas=max_fee_per_gas,
        max_priority_fee_per_gas=max_priority_fee_per_gas,
    )


@dataclass(frozen=True)
class Policy:
    """Optimizer policy. Passed by value into every evaluation."""
    aggressiveness: Aggressiveness = Aggressiveness.BALANCED
    max_wait_time_seconds: Number = 30
    min_savings_percent: Number = 5
    fee_percent: Number = 10

    @classmethod
    def from_settings(cls) -> "Policy":
        return cls(
            aggressiveness=Aggressiveness(settings.POLICY_AGGRESSIVENESS),
            max_wait_time_seconds=settings.POLICY_MAX_WAIT_TIME_SECONDS,
            min_savings_percent=settings.POLICY_MIN_SAVINGS_PERCENT,
            fee_percent=settings.POLICY_FEE_PERCENT,
        )

    def to_plain_dict(self) -> Dict[str, Any]:
        return {
            "aggressiveness": self.aggressiveness.value,
            "maxWaitTime": self.max_wait_time_seconds,
            "minSavingsPercent": self.min_savings_percent,
            "feePercent": self.fee_percent,
        }


@dataclass(frozen=True)
class OriginalGasSettings:
    max_fee_per_gas: Number
    max_priority_fee_per_gas: Number
    gas_limit: int
    estimated_cost_in_matic: float


@dataclass(frozen=True)
class OptimizedGasSettings:
    max_fee_per_gas: Number
    max_priority_fee_per_gas: Number
    gas_limit: int
    estimated_cost_in_matic: float
    estimated_wait_time: int


@dataclass(frozen=True)
class SavingsBreakdown:
    savings_in_matic: float
    savings_percent: float
    savings_level: SavingsLevel


@dataclass(frozen=True)
class ServiceFee:
    fee_in_matic: float
    fee_percent: Number


@dataclass(frozen=True)
class OptimizationResult:
    original: OriginalGasSettings
    optimized: OptimizedGasSettings
    savings: SavingsBreakdown
    fee: ServiceFee
    net_savings: float
    should_optimize: bool

    def to_plain_dict(self) -> Dict[str, Any]:
        return {
            "original": {
                "maxFeePerGas": self.original.max_fee_per_gas,
                "maxPriorityFeePerGas": self.original.max_priority_fee_per_gas,
                "gasLimit": self.original.gas_limit,
                "estimatedCostInMatic": self.original.estimated_cost_in_matic,
            },
            "optimized": {
                "maxFeePerGas": self.optimized.max_fee_per_gas,
                "maxPriorityFeePerGas": self.optimized.max_priority_fee_per_gas,
                "gasLimit": self.optimized.gas_limit,
                "estimatedCostInMatic": self.optimized.estimated_cost_in_matic,
                "estimatedWaitTime": self.optimized.estimated_wait_time,
            },
            "savings": {
                "savingsInMatic": self.savings.savings_in_matic,
                "savingsPercent": self.savings.savings_percent,
                "savingsLevel": self.savings.savings_level.value,
            },
            "fee": {
                "feeInMatic": self.fee.fee_in_matic,
                "feePercent": self.fee.fee_percent,
            },
            "netSavings": self.net_savings,
            "shouldOptimize": self.should_optimize,
        }
