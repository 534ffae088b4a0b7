from __future__ import annotations

from decimal import Decimal
from typing import Dict, Mapping, Optional

from web3 import Web3
from web3.types import TxParams

from gaswise.core.structures.structures import OptimizationResult, TransactionType
from gaswise.logging.logger import get_logger

log = get_logger(__name__)

ERC20_TRANSFER_SELECTOR: str = "0xa9059cbb"
ERC721_TRANSFER_FROM_SELECTOR: str = "0x23b872dd"

# Uniswap V2 style router entry points.
SWAP_SELECTORS = (
    "0x38ed1739",  # swapExactTokensForTokens
    "0x8803dbee",  # swapTokensForExactTokens
    "0x7ff36ab5",  # swapExactETHForTokens
    "0x4a25d94a",  # swapTokensForExactETH
    "0x18cbafe5",  # swapExactTokensForETH
    "0xfb3bdb41",  # swapETHForExactTokens
    "0x5c11d795",  # swapExactTokensForTokensSupportingFeeOnTransferTokens
)


def classify_transaction(data: Optional[str]) -> TransactionType:
    """Infer the transaction type from its calldata."""
    if not data or data == "0x":
        return TransactionType.TRANSFER

    calldata = data.lower()
    if calldata.startswith(ERC20_TRANSFER_SELECTOR):
        return TransactionType.ERC20_TRANSFER
    if calldata.startswith(ERC721_TRANSFER_FROM_SELECTOR):
        return TransactionType.NFT_TRANSFER
    if "mint" in calldata:
        return TransactionType.NFT_MINT
    if calldata.startswith(SWAP_SELECTORS):
        return TransactionType.SWAP
    return TransactionType.CONTRACT_INTERACTION


def _gwei_to_hex_wei(value: float) -> str:
    return Web3.to_hex(int(Web3.to_wei(Decimal(str(value)), "gwei")))


def apply_gas_settings(tx_params: Mapping[str, object], result: OptimizationResult) -> TxParams:
    """
    Return a copy of `tx_params` carrying the optimized EIP-1559 fees (as hex wei)
    and gas limit. Zero values leave the caller's field untouched.
    """
    optimized = result.optimized
    updated: Dict[str, object] = dict(tx_params)

    if optimized.max_fee_per_gas:
        updated["maxFeePerGas"] = _gwei_to_hex_wei(optimized.max_fee_per_gas)
    if optimized.max_priority_fee_per_gas:
        updated["maxPriorityFeePerGas"] = _gwei_to_hex_wei(optimized.max_priority_fee_per_gas)
    if optimized.gas_limit:
        updated["gas"] = Web3.to_hex(int(optimized.gas_limit))

    log.debug(
        "[GAS][TX][APPLY] maxFeePerGas=%s maxPriorityFeePerGas=%s gas=%s",
        updated.get("maxFeePerGas"),
        updated.get("maxPriorityFeePerGas"),
        updated.get("gas"),
    )
    return updated  # type: ignore[return-value]
