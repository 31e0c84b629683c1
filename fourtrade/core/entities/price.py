from pydantic import BaseModel, Field, model_validator

from fourtrade.core.entities.trade import TradeType

# price_per_token is quoted per whole 18-decimal token
ONE_TOKEN = 10**18


def price_per_token(cost: int, token_amount: int) -> int:
    """Quote-currency base units per whole token, rounded toward zero."""
    if token_amount <= 0:
        return 0
    return cost * ONE_TOKEN // token_amount


class PriceInfo(BaseModel):
    """
    Point-in-time quote. `cost` is what is paid (buys) or received (sells)
    in quote currency, fee included.
    """
    token_amount: int = Field(..., ge=0)
    cost: int = Field(..., ge=0)
    price_per_token: int = Field(..., ge=0)
    fee: int = Field(0, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def check_price(self) -> "PriceInfo":
        expected = price_per_token(self.cost, self.token_amount)
        if self.price_per_token != expected:
            raise ValueError(f"price_per_token {self.price_per_token} != {expected} for cost/amount")
        return self

    @classmethod
    def build(cls, token_amount: int, cost: int, fee: int) -> "PriceInfo":
        return cls(
            token_amount=token_amount,
            cost=cost,
            price_per_token=price_per_token(cost, token_amount),
            fee=fee,
        )


class SlippageQuote(BaseModel):
    """
    Quote plus its slippage bound. `limit` is the minimum acceptable
    output/proceeds, or for exact-output buys the maximum acceptable cost.
    """
    token: str
    trade_type: TradeType
    exact_output: bool = False
    price: PriceInfo
    slippage_pct: float
    limit: int = Field(..., ge=0)

    model_config = {"frozen": True}
