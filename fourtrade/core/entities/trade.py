from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class TradeType(str, Enum):
    BUY = "buy"
    SELL = "sell"


class TradeStage(str, Enum):
    """Stages a single trade moves through. CONFIRMED and FAILED are terminal."""
    QUOTING = "quoting"
    AMOUNT_BOUNDING = "amount_bounding"
    SUBMITTING = "submitting"
    AWAITING_CONFIRMATION = "awaiting_confirmation"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class TradeResult(BaseModel):
    """
    Record of one confirmed trade. Only built from a successful receipt.
    """
    tx_hash: str
    trade_type: TradeType
    token: str
    amount: int = Field(..., ge=0)
    cost: int = Field(..., ge=0)
    price: int = Field(..., ge=0)
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    model_config = {"frozen": True}
