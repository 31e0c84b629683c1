from typing import Any, Literal, Optional, Tuple

from pydantic import BaseModel, Field


class ContractCall(BaseModel):
    """
    One invocation of a registered entry point.
    `signature` must be one of the constants in fourtrade.core.abi.
    """
    to: str
    abi: Literal["trading", "erc20"]
    signature: str
    args: Tuple[Any, ...] = ()
    value: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @property
    def function_name(self) -> str:
        return self.signature.split("(", 1)[0]


class TransactionReceipt(BaseModel):
    tx_hash: str
    status: int  # 1 success, 0 reverted
    block_number: Optional[int] = None
    gas_used: Optional[int] = None

    @property
    def succeeded(self) -> bool:
        return self.status == 1


class GasOptions(BaseModel):
    """
    Optional fee pricing for a submission. Use either legacy `gas_price`
    or the EIP-1559 pair, never both. Values are in wei.
    """
    gas_price: Optional[int] = None
    max_fee_per_gas: Optional[int] = None
    max_priority_fee_per_gas: Optional[int] = None

    model_config = {"frozen": True}

    def as_tx_params(self) -> dict:
        params = {}
        if self.gas_price is not None:
            params["gasPrice"] = self.gas_price
        if self.max_fee_per_gas is not None:
            params["maxFeePerGas"] = self.max_fee_per_gas
        if self.max_priority_fee_per_gas is not None:
            params["maxPriorityFeePerGas"] = self.max_priority_fee_per_gas
        return params
