"""
Gas optimization engine.

Pure functions mapping (FeeSnapshot, TransactionIntent, Policy) to an
OptimizationResult. Fees are gwei per gas; costs are in native units (MATIC).
No I/O and no hidden state: the policy is an explicit argument.
"""
from __future__ import annotations

import dataclasses
import math
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple, Union

from gaswise.core.structures.structures import (
    Aggressiveness,
    FeeSnapshot,
    OptimizationResult,
    OptimizedGasSettings,
    OriginalGasSettings,
    Policy,
    SavingsBreakdown,
    SavingsLevel,
    ServiceFee,
    TransactionIntent,
    TransactionType,
)
from gaswise.core.utils.math_utils import _clamp
from gaswise.logging.logger import get_logger

log = get_logger(__name__)

PROTOCOL_MIN_GAS_LIMIT: int = 21000
DEFAULT_GAS_LIMIT: int = 100000
UNDERESTIMATE_RATIO: float = 0.8
GWEI_PER_NATIVE: float = 1e9

GAS_LIMIT_BY_TRANSACTION_TYPE: Dict[TransactionType, int] = {
    TransactionType.TRANSFER: 21000,
    TransactionType.ERC20_TRANSFER: 65000,
    TransactionType.SWAP: 200000,
    TransactionType.NFT_MINT: 250000,
    TransactionType.NFT_TRANSFER: 100000,
    TransactionType.CONTRACT_INTERACTION: 150000,
}

HIGH_CONGESTION: float = 0.7
SEVERE_CONGESTION: float = 0.8


@dataclass(frozen=True)
class FeeStrategy:
    """Priority-fee percentile, max-fee padding and expected wait for one evaluation."""
    priority_fee_percentile: float
    max_fee_padding: float
    estimated_wait_time: int


@dataclass(frozen=True)
class OptimalGasSettings:
    max_fee_per_gas: int
    max_priority_fee_per_gas: float
    estimated_wait_time: int


def derive_fee_strategy(aggressiveness: Aggressiveness, network_congestion: float) -> FeeStrategy:
    """
    Pick the strategy for the requested aggressiveness.

    Conservative targets a high percentile with wide padding, aggressive a low one
    with tight padding and a longer expected wait.
    """
    if aggressiveness is Aggressiveness.CONSERVATIVE:
        return FeeStrategy(
            priority_fee_percentile=0.8 if network_congestion > HIGH_CONGESTION else 0.6,
            max_fee_padding=1.3,
            estimated_wait_time=15,
        )
    if aggressiveness is Aggressiveness.AGGRESSIVE:
        severe = network_congestion > SEVERE_CONGESTION
        return FeeStrategy(
            priority_fee_percentile=0.4 if severe else 0.2,
            max_fee_padding=1.1,
            estimated_wait_time=60 if severe else 30,
        )
    congested = network_congestion > HIGH_CONGESTION
    return FeeStrategy(
        priority_fee_percentile=0.6 if congested else 0.4,
        max_fee_padding=1.2,
        estimated_wait_time=30 if congested else 20,
    )


def select_priority_fee(priority_fee_range: Sequence[float], percentile: float) -> float:
    """Priority fee at `percentile` of the ascending range; lowest value when the index is out of range."""
    ordered = sorted(priority_fee_range)
    index = math.floor(len(ordered) * percentile)
    if 0 <= index < len(ordered):
        return ordered[index]
    return ordered[0]


def calculate_optimal_gas_settings(snapshot: FeeSnapshot, aggressiveness: Aggressiveness) -> OptimalGasSettings:
    strategy = derive_fee_strategy(aggressiveness, snapshot.network_congestion)
    priority_fee = select_priority_fee(snapshot.priority_fee_range, strategy.priority_fee_percentile)
    # Padding absorbs base fee drift between estimation and inclusion.
    max_fee = math.ceil((snapshot.base_fee + priority_fee) * strategy.max_fee_padding)
    return OptimalGasSettings(
        max_fee_per_gas=max_fee,
        max_priority_fee_per_gas=priority_fee,
        estimated_wait_time=strategy.estimated_wait_time,
    )


def recommend_gas_limit(transaction_type: Union[TransactionType, str], caller_gas_limit: Optional[int]) -> int:
    """
    Recommend a gas limit for the transaction.

    Missing limits or limits under the protocol minimum get the per-type default.
    A limit below 80% of the type default is treated as an underestimate.
    """
    if isinstance(transaction_type, str):
        known = {member.value: member for member in TransactionType}
        transaction_type = known.get(transaction_type, transaction_type)
    recommended = GAS_LIMIT_BY_TRANSACTION_TYPE.get(transaction_type)

    if not caller_gas_limit or caller_gas_limit < PROTOCOL_MIN_GAS_LIMIT:
        return recommended if recommended is not None else DEFAULT_GAS_LIMIT

    if recommended is None:
        return caller_gas_limit

    if caller_gas_limit < recommended * UNDERESTIMATE_RATIO:
        return recommended

    return caller_gas_limit


def estimate_cost(max_fee_per_gas: float, gas_limit: int) -> float:
    """Worst-case cost in native units for a gwei fee and a gas limit."""
    return max_fee_per_gas * gas_limit / GWEI_PER_NATIVE


def calculate_savings(original_max_fee: float, optimized_max_fee: float, gas_limit: int) -> Tuple[float, float]:
    """Return (absolute savings, savings percent) comparing both fees at the same gas limit."""
    original_cost = estimate_cost(original_max_fee, gas_limit)
    optimized_cost = estimate_cost(optimized_max_fee, gas_limit)
    savings = max(0.0, original_cost - optimized_cost)
    savings_percent = savings / original_cost * 100 if original_cost > 0 else 0.0
    return savings, savings_percent


def calculate_service_fee(savings: float, fee_percent: float) -> float:
    """Service fee is only charged on strictly positive savings."""
    if savings > 0:
        return savings * fee_percent / 100
    return 0.0


def should_optimize(savings_percent: float, estimated_wait_time: float, policy: Policy) -> bool:
    return savings_percent >= policy.min_savings_percent and estimated_wait_time <= policy.max_wait_time_seconds


def determine_savings_level(savings_percent: float, network_congestion: float) -> SavingsLevel:
    """Presentation tier; does not influence the verdict."""
    if savings_percent > 20 or (network_congestion > HIGH_CONGESTION and savings_percent > 10):
        return SavingsLevel.HIGH
    if savings_percent >= 10:
        return SavingsLevel.MEDIUM
    if savings_percent >= 5:
        return SavingsLevel.LOW
    return SavingsLevel.NONE


def sanitize_policy(policy: Policy) -> Policy:
    """Clamp out-of-range values: percents into [0, 100], max wait to >= 0."""
    sanitized = dataclasses.replace(
        policy,
        max_wait_time_seconds=max(0, policy.max_wait_time_seconds),
        min_savings_percent=_clamp(policy.min_savings_percent, 0, 100),
        fee_percent=_clamp(policy.fee_percent, 0, 100),
    )
    if sanitized != policy:
        log.debug("[GAS][OPTIMIZER][POLICY] Clamped out-of-range policy %s -> %s", policy, sanitized)
    return sanitized


def optimize(snapshot: FeeSnapshot, intent: TransactionIntent, policy: Policy) -> OptimizationResult:
    """
    Evaluate the optimized fee parameters for `intent` under `policy`.

    Savings compare the caller's max fee with the optimized one at the recommended
    gas limit; the `original` block reports the caller's own limit and cost.
    """
    effective_policy = sanitize_policy(policy)

    user_gas_limit = PROTOCOL_MIN_GAS_LIMIT if intent.gas_limit is None else intent.gas_limit
    user_max_fee = intent.max_fee_per_gas or 0
    user_priority_fee = intent.max_priority_fee_per_gas or 0

    optimal = calculate_optimal_gas_settings(snapshot, effective_policy.aggressiveness)
    recommended_gas_limit = recommend_gas_limit(intent.type, intent.gas_limit)

    savings, savings_percent = calculate_savings(user_max_fee, optimal.max_fee_per_gas, recommended_gas_limit)
    service_fee = calculate_service_fee(savings, effective_policy.fee_percent)
    verdict = should_optimize(savings_percent, optimal.estimated_wait_time, effective_policy)
    savings_level = determine_savings_level(savings_percent, snapshot.network_congestion)

    log.debug(
        "[GAS][OPTIMIZER] type=%s aggressiveness=%s max_fee=%s->%s gas_limit=%s savings=%.2f%% verdict=%s",
        intent.type.value,
        effective_policy.aggressiveness.value,
        user_max_fee,
        optimal.max_fee_per_gas,
        recommended_gas_limit,
        savings_percent,
        verdict,
    )

    return OptimizationResult(
        original=OriginalGasSettings(
            max_fee_per_gas=user_max_fee,
            max_priority_fee_per_gas=user_priority_fee,
            gas_limit=user_gas_limit,
            estimated_cost_in_matic=estimate_cost(user_max_fee, user_gas_limit),
        ),
        optimized=OptimizedGasSettings(
            max_fee_per_gas=optimal.max_fee_per_gas,
            max_priority_fee_per_gas=optimal.max_priority_fee_per_gas,
            gas_limit=recommended_gas_limit,
            estimated_cost_in_matic=estimate_cost(optimal.max_fee_per_gas, recommended_gas_limit),
            estimated_wait_time=optimal.estimated_wait_time,
        ),
        savings=SavingsBreakdown(
            savings_in_matic=savings,
            savings_percent=savings_percent,
            savings_level=savings_level,
        ),
        fee=ServiceFee(fee_in_matic=service_fee, fee_percent=effective_policy.fee_percent),
        net_savings=savings - service_fee,
        should_optimize=verdict,
    )
