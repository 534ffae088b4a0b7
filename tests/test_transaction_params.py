from __future__ import annotations

import pytest

from gaswise.core.gas.optimizer import optimize
from gaswise.core.gas.transaction_params import apply_gas_settings, classify_transaction
from gaswise.core.structures.structures import Policy, TransactionIntent, TransactionType

RECIPIENT = "0x000000000000000000000000000000000000dEaD"


@pytest.mark.parametrize(
    "data, expected",
    [
        (None, TransactionType.TRANSFER),
        ("", TransactionType.TRANSFER),
        ("0x", TransactionType.TRANSFER),
        ("0xa9059cbb" + "00" * 64, TransactionType.ERC20_TRANSFER),
        ("0xA9059CBB" + "00" * 64, TransactionType.ERC20_TRANSFER),
        ("0x23b872dd" + "00" * 96, TransactionType.NFT_TRANSFER),
        ("0x38ed1739" + "00" * 160, TransactionType.SWAP),
        ("0x7ff36ab5" + "00" * 128, TransactionType.SWAP),
        ("0x40c10f19mint", TransactionType.NFT_MINT),
        ("0x095ea7b3" + "00" * 64, TransactionType.CONTRACT_INTERACTION),
    ],
)
def test_classify_transaction(data, expected) -> None:
    assert classify_transaction(data) is expected


def test_apply_gas_settings_writes_hex_wei(make_snapshot) -> None:
    intent = TransactionIntent(type=TransactionType.TRANSFER, gas_limit=21000, max_fee_per_gas=80)
    result = optimize(make_snapshot(), intent, Policy())
    tx = {"to": RECIPIENT, "value": 1, "maxFeePerGas": hex(80 * 10 ** 9)}

    updated = apply_gas_settings(tx, result)

    assert updated["maxFeePerGas"] == hex(63 * 10 ** 9)
    assert updated["maxPriorityFeePerGas"] == hex(2 * 10 ** 9)
    assert updated["gas"] == "0x5208"
    assert updated["to"] == RECIPIENT
    assert tx["maxFeePerGas"] == hex(80 * 10 ** 9)
    assert "gas" not in tx


def test_apply_gas_settings_handles_fractional_gwei(make_snapshot) -> None:
    snapshot = make_snapshot(base_fee=30, priority_fee_range=(1.5, 2.5, 3.5, 4.5))
    intent = TransactionIntent(type=TransactionType.ERC20_TRANSFER, gas_limit=70000, max_fee_per_gas=80)
    result = optimize(snapshot, intent, Policy())

    updated = apply_gas_settings({}, result)

    assert updated["maxPriorityFeePerGas"] == hex(2_500_000_000)
    assert updated["gas"] == hex(70000)
