from __future__ import annotations

import dataclasses
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Depends, HTTPException, Request

from gaswise.api.models import OptimizeRequest, PolicyUpdateRequest, PrepareTransactionRequest
from gaswise.core.gas.optimizer import optimize
from gaswise.core.gas.policy_store import PolicyStore
from gaswise.core.gas.transaction_params import apply_gas_settings, classify_transaction
from gaswise.core.structures.errors import InvalidTransactionIntent, UpstreamUnavailable
from gaswise.core.structures.structures import FeeSnapshot, OptimizationResult, TransactionIntent, build_transaction_intent
from gaswise.core.utils.date_utils import timezone_now
from gaswise.core.utils.format_utils import describe_savings, format_native_amount
from gaswise.integrations.gas_oracle.gas_oracle_client import GasOracleClient
from gaswise.logging.logger import get_logger

router = APIRouter()
log = get_logger(__name__)


def get_oracle_client(request: Request) -> GasOracleClient:
    return request.app.state.oracle_client


def get_policy_store(request: Request) -> PolicyStore:
    return request.app.state.policy_store


async def _snapshot_for_evaluation(client: GasOracleClient) -> Tuple[FeeSnapshot, bool]:
    """Latest snapshot, or the last known one flagged stale when the oracles are down."""
    try:
        return await client.get_snapshot(), False
    except UpstreamUnavailable as error:
        stale = client.last_snapshot
        if stale is None:
            log.error("[HTTP][GAS] No fee data available: %s", error)
            raise HTTPException(status_code=503, detail="Fee oracles are unavailable") from error
        log.warning("[HTTP][GAS] Oracles unavailable, evaluating on stale snapshot from %s", stale.source)
        return stale, True


def _build_intent(**fields: Any) -> TransactionIntent:
    try:
        return build_transaction_intent(**fields)
    except InvalidTransactionIntent as error:
        raise HTTPException(status_code=422, detail=str(error)) from error


def _serialize_result(result: OptimizationResult, snapshot: FeeSnapshot, stale: bool) -> Dict[str, Any]:
    return {
        "result": result.to_plain_dict(),
        "summary": describe_savings(result),
        "netSavingsDisplay": format_native_amount(result.net_savings),
        "snapshot": {"source": snapshot.source, "timestamp": snapshot.timestamp.isoformat(), "stale": stale},
    }


@router.get("/api/health", tags=["health"])  # type: ignore[misc]
async def get_health(client: GasOracleClient = Depends(get_oracle_client)) -> Dict[str, Any]:
    """
    Report service health based on the age of the last fee snapshot.

    Returns:
        A payload with status "ok" when a snapshot is cached, "degraded" otherwise.
    """
    snapshot = client.last_snapshot
    return {
        "status": "ok" if snapshot is not None else "degraded",
        "timestamp": timezone_now().isoformat(),
        "components": {
            "oracle": {
                "hasSnapshot": snapshot is not None,
                "snapshotAgeSeconds": snapshot.age_seconds() if snapshot is not None else None,
                "fetching": client.is_fetching,
            }
        },
    }


@router.get("/api/gas/snapshot", tags=["gas"])  # type: ignore[misc]
async def get_snapshot(client: GasOracleClient = Depends(get_oracle_client)) -> Dict[str, Any]:
    """Return the current normalized fee snapshot (cached when fresh)."""
    try:
        snapshot = await client.get_snapshot()
    except UpstreamUnavailable as error:
        raise HTTPException(status_code=503, detail="Fee oracles are unavailable") from error
    return {"snapshot": snapshot.to_plain_dict()}


@router.post("/api/gas/optimize", tags=["gas"])  # type: ignore[misc]
async def post_optimize(
        body: OptimizeRequest,
        client: GasOracleClient = Depends(get_oracle_client),
        store: PolicyStore = Depends(get_policy_store),
) -> Dict[str, Any]:
    """
    Evaluate optimized fee parameters for a transaction intent under the current policy.

    An `aggressiveness` in the body overrides the stored policy for this call only.
    """
    intent = _build_intent(
        transaction_type=body.type,
        gas_limit=body.gasLimit,
        max_fee_per_gas=body.maxFeePerGas,
        max_priority_fee_per_gas=body.maxPriorityFeePerGas,
    )
    policy = store.get()
    if body.aggressiveness is not None:
        policy = dataclasses.replace(policy, aggressiveness=body.aggressiveness)

    snapshot, stale = await _snapshot_for_evaluation(client)
    result = optimize(snapshot, intent, policy)
    log.info(
        "[HTTP][GAS][OPTIMIZE] type=%s savings=%.2f%% level=%s should_optimize=%s",
        intent.type.value,
        result.savings.savings_percent,
        result.savings.savings_level.value,
        result.should_optimize,
    )
    return _serialize_result(result, snapshot, stale)


@router.post("/api/gas/prepare", tags=["gas"])  # type: ignore[misc]
async def post_prepare_transaction(
        body: PrepareTransactionRequest,
        client: GasOracleClient = Depends(get_oracle_client),
        store: PolicyStore = Depends(get_policy_store),
) -> Dict[str, Any]:
    """
    Classify an unsigned transaction, optimize its fees and, when worthwhile, return
    the params with optimized gas fields applied. Signing stays with the wallet.
    """
    data = body.tx.get("data")
    transaction_type = classify_transaction(data if isinstance(data, str) else None)
    intent = _build_intent(
        transaction_type=transaction_type,
        gas_limit=body.gasLimit,
        max_fee_per_gas=body.maxFeePerGas,
        max_priority_fee_per_gas=body.maxPriorityFeePerGas,
    )

    snapshot, stale = await _snapshot_for_evaluation(client)
    result = optimize(snapshot, intent, store.get())
    tx = apply_gas_settings(body.tx, result) if result.should_optimize else dict(body.tx)

    payload = _serialize_result(result, snapshot, stale)
    payload["transactionType"] = transaction_type.value
    payload["tx"] = tx
    return payload


@router.get("/api/policy", tags=["policy"])  # type: ignore[misc]
def get_policy(store: PolicyStore = Depends(get_policy_store)) -> Dict[str, Any]:
    return {"policy": store.get().to_plain_dict()}


@router.patch("/api/policy", tags=["policy"])  # type: ignore[misc]
def patch_policy(body: PolicyUpdateRequest, store: PolicyStore = Depends(get_policy_store)) -> Dict[str, Any]:
    """Merge the supplied fields over the current policy; applies from the next evaluation."""
    policy = store.update(
        aggressiveness=body.aggressiveness,
        max_wait_time_seconds=body.maxWaitTime,
        min_savings_percent=body.minSavingsPercent,
        fee_percent=body.feePercent,
    )
    return {"policy": policy.to_plain_dict()}
