from pydantic import BaseModel

from fourtrade.core.abi import STATUS_TRADING


class TokenInfo(BaseModel):
    """
    Snapshot of the trading contract's record for one token.
    Read fresh on every query; never cached.
    """
    address: str
    base: str
    quote: str
    template: int
    total_supply: int
    max_offers: int
    max_raising: int
    launch_time: int
    offers: int  # tokens still on the curve
    funds: int  # quote currency raised so far
    last_price: int
    k: int
    t: int
    status: int

    model_config = {"frozen": True}

    @property
    def trading_enabled(self) -> bool:
        return self.status == STATUS_TRADING

    @classmethod
    def from_record(cls, address: str, record) -> "TokenInfo":
        (base, quote, template, total_supply, max_offers, max_raising,
         launch_time, offers, funds, last_price, k, t, status) = record
        return cls(
            address=address,
            base=base,
            quote=quote,
            template=template,
            total_supply=total_supply,
            max_offers=max_offers,
            max_raising=max_raising,
            launch_time=launch_time,
            offers=offers,
            funds=funds,
            last_price=last_price,
            k=k,
            t=t,
            status=status,
        )

    def as_struct(self) -> tuple:
        """The struct as the calc* view functions expect it, in ABI field order."""
        return (
            self.base,
            self.quote,
            self.template,
            self.total_supply,
            self.max_offers,
            self.max_raising,
            self.launch_time,
            self.offers,
            self.funds,
            self.last_price,
            self.k,
            self.t,
            self.status,
        )
