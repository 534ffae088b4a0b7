from typing import Optional

from gaswise.configuration.config import settings
from gaswise.core.structures.structures import OptimizationResult, SavingsLevel


def format_native_amount(value: float, price_usd: Optional[float] = None) -> str:
    """Format a native-unit amount with its USD equivalent, e.g. '0.000357 MATIC ($0.0005)'."""
    price = settings.NATIVE_PRICE_USD if price_usd is None else price_usd
    return f"{value:.6f} {settings.NATIVE_SYMBOL} (${value * price:.4f})"


_SAVINGS_LABELS = {
    SavingsLevel.HIGH: "Optimal",
    SavingsLevel.MEDIUM: "Good",
    SavingsLevel.LOW: "Fair",
}


def describe_savings(result: OptimizationResult) -> str:
    """Short UI label for a result's savings tier."""
    label = _SAVINGS_LABELS.get(result.savings.savings_level)
    if label is None:
        return "Standard gas price"
    return f"{label} (Save {result.savings.savings_percent:.1f}%)"
