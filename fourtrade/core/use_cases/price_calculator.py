import logging
from typing import Any, Tuple

from fourtrade.core import abi
from fourtrade.core.entities.price import PriceInfo
from fourtrade.core.entities.token import TokenInfo
from fourtrade.core.entities.transaction import ContractCall
from fourtrade.core.errors import FeeExceedsAmountError, FourTradeError, QueryError
from fourtrade.core.interfaces.chain import IChainReader
from fourtrade.core.validation import validate_address, validate_amount

logger = logging.getLogger(__name__)

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class PriceCalculator:
    """
    Read-only quoting against the trading contract's pricing curve.
    Quotes are point-in-time estimates; state can move before a trade lands.
    """

    def __init__(self, reader: IChainReader, contract_address: str):
        self.reader = reader
        self.contract_address = validate_address(contract_address, "contract_address")

    async def _read(self, signature: str, args: Tuple[Any, ...]) -> Any:
        call = ContractCall(to=self.contract_address, abi=abi.TRADING, signature=signature, args=args)
        try:
            return await self.reader.call(call)
        except FourTradeError:
            raise
        except Exception as e:
            raise QueryError(f"{call.function_name} failed: {e}", {"signature": signature}) from e

    async def _read_uint(self, signature: str, args: Tuple[Any, ...]) -> int:
        value = await self._read(signature, args)
        # bool is an int subclass
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise QueryError(
                f"{signature.split('(', 1)[0]} returned a malformed value: {value!r}",
                {"signature": signature},
            )
        return value

    async def get_token_info(self, token: str) -> TokenInfo:
        token = validate_address(token, "token")
        record = await self._read(abi.TOKEN_INFOS, (token,))
        try:
            info = TokenInfo.from_record(token, record)
        except (TypeError, ValueError) as e:
            # pydantic's ValidationError is a ValueError
            raise QueryError(f"Malformed token record for {token}: {e}", {"token": token}) from e

        if info.base.lower() == ZERO_ADDRESS:
            raise QueryError(f"Token {token} is not listed on the trading contract", {"token": token})
        return info

    async def quote_buy(self, token: str, input_cost: int) -> PriceInfo:
        """Tokens receivable for spending `input_cost` of quote currency."""
        token = validate_address(token, "token")
        validate_amount(input_cost, "input_cost")

        info = await self.get_token_info(token)
        fee = await self._read_uint(abi.CALC_TRADING_FEE, (info.as_struct(), input_cost))
        if fee >= input_cost:
            raise FeeExceedsAmountError(fee, input_cost)

        token_amount = await self._read_uint(abi.CALC_BUY_AMOUNT, (info.as_struct(), input_cost - fee))
        return PriceInfo.build(token_amount=token_amount, cost=input_cost, fee=fee)

    async def quote_sell(self, token: str, input_amount: int) -> PriceInfo:
        """Quote currency received, net of fee, for selling `input_amount` tokens."""
        token = validate_address(token, "token")
        validate_amount(input_amount, "input_amount")

        info = await self.get_token_info(token)
        gross = await self._read_uint(abi.CALC_SELL_COST, (info.as_struct(), input_amount))
        fee = await self._read_uint(abi.CALC_TRADING_FEE, (info.as_struct(), gross))
        if fee >= gross:
            raise FeeExceedsAmountError(fee, gross)

        return PriceInfo.build(token_amount=input_amount, cost=gross - fee, fee=fee)

    async def calc_buy_cost(self, token_info: TokenInfo, desired_token_amount: int) -> PriceInfo:
        """Quote currency needed, fee included, to buy exactly `desired_token_amount`."""
        validate_amount(desired_token_amount, "desired_token_amount")

        gross = await self._read_uint(abi.CALC_BUY_COST, (token_info.as_struct(), desired_token_amount))
        fee = await self._read_uint(abi.CALC_TRADING_FEE, (token_info.as_struct(), gross))
        return PriceInfo.build(token_amount=desired_token_amount, cost=gross + fee, fee=fee)

    async def get_current_price(self, token: str) -> int:
        info = await self.get_token_info(token)
        return await self._read_uint(abi.CALC_LAST_PRICE, (info.as_struct(),))

    async def is_trading_halted(self) -> bool:
        return bool(await self._read(abi.TRADING_HALT, ()))
