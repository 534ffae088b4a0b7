from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from gaswise.core.structures.structures import Aggressiveness, TransactionType


class OptimizeRequest(BaseModel):
    """Transaction intent submitted for optimization; fees in gwei."""
    type: TransactionType = Field(..., description="Transaction type.")
    gasLimit: Optional[int] = Field(None, ge=0, description="Caller's proposed gas limit.")
    maxFeePerGas: Optional[float] = Field(None, ge=0, description="Caller's current max fee per gas.")
    maxPriorityFeePerGas: Optional[float] = Field(None, ge=0, description="Caller's current priority fee.")
    aggressiveness: Optional[Aggressiveness] = Field(None, description="One-off override of the stored policy.")


class PolicyUpdateRequest(BaseModel):
    """Partial policy update; omitted fields keep their current value."""
    aggressiveness: Optional[Aggressiveness] = None
    maxWaitTime: Optional[float] = Field(None, description="Maximum acceptable wait, seconds.")
    minSavingsPercent: Optional[float] = None
    feePercent: Optional[float] = None


class PrepareTransactionRequest(BaseModel):
    """Unsigned transaction params plus the caller's current fee settings (gwei)."""
    tx: Dict[str, Any] = Field(..., description="Unsigned EVM transaction params (from, to, value, data, ...).")
    gasLimit: Optional[int] = Field(None, ge=0)
    maxFeePerGas: Optional[float] = Field(None, ge=0)
    maxPriorityFeePerGas: Optional[float] = Field(None, ge=0)
