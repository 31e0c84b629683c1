import logging
from contextlib import contextmanager
from typing import Optional, Type

from fourtrade.core import abi
from fourtrade.core.entities.price import PriceInfo, SlippageQuote
from fourtrade.core.entities.token import TokenInfo
from fourtrade.core.entities.trade import TradeResult, TradeStage, TradeType
from fourtrade.core.entities.transaction import ContractCall, GasOptions, TransactionReceipt
from fourtrade.core.errors import (
    ConfirmationError,
    FourTradeError,
    QueryError,
    SubmissionError,
    TransactionUnconfirmed,
)
from fourtrade.core.interfaces.chain import IChainReader, ITransactionSigner
from fourtrade.core.use_cases.price_calculator import PriceCalculator
from fourtrade.core.use_cases.slippage import (
    Number,
    max_acceptable_cost,
    min_acceptable_amount,
    slippage_ratio,
)
from fourtrade.core.validation import validate_address, validate_amount, validate_gas_options

logger = logging.getLogger(__name__)


class Trader:
    """
    Slippage-protected trading against one trading contract.

    Each trade runs quoting -> amount bounding -> submitting -> awaiting
    confirmation and ends confirmed (TradeResult) or failed (typed error).
    Nothing is retried. Nonce ordering for concurrent trades is the
    signer's responsibility.
    """

    def __init__(
        self,
        reader: IChainReader,
        signer: ITransactionSigner,
        contract_address: str = abi.FOUR_MEME_ADDRESS,
    ):
        abi.validate_abi()
        self.contract_address = validate_address(contract_address, "contract_address")
        self.reader = reader
        self.signer = signer
        self.calculator = PriceCalculator(reader, self.contract_address)

    @property
    def wallet_address(self) -> str:
        return self.signer.address

    # ==================== Queries ====================

    async def get_token_info(self, token: str) -> TokenInfo:
        return await self.calculator.get_token_info(token)

    async def quote_buy(self, token: str, spend_amount: int) -> PriceInfo:
        return await self.calculator.quote_buy(token, spend_amount)

    async def quote_sell(self, token: str, sell_amount: int) -> PriceInfo:
        return await self.calculator.quote_sell(token, sell_amount)

    async def get_current_price(self, token: str) -> int:
        return await self.calculator.get_current_price(token)

    async def is_trading_halted(self) -> bool:
        return await self.calculator.is_trading_halted()

    async def get_native_balance(self) -> int:
        return await self.reader.get_balance(self.wallet_address)

    async def get_token_balance(self, token: str) -> int:
        token = validate_address(token, "token")
        call = ContractCall(to=token, abi=abi.ERC20, signature=abi.BALANCE_OF, args=(self.wallet_address,))
        return await self.reader.call(call)

    # ==================== Slippage previews ====================

    async def preview_buy(self, token: str, spend_amount: int, slippage_pct: Number) -> SlippageQuote:
        token = validate_address(token, "token")
        validate_amount(spend_amount, "spend_amount")
        slippage_ratio(slippage_pct)

        with self._stage(TradeStage.QUOTING, f"buy {token}", wrap=QueryError):
            price = await self.calculator.quote_buy(token, spend_amount)

        return SlippageQuote(
            token=token,
            trade_type=TradeType.BUY,
            price=price,
            slippage_pct=slippage_pct,
            limit=min_acceptable_amount(price.token_amount, slippage_pct),
        )

    async def preview_sell(self, token: str, sell_amount: int, slippage_pct: Number) -> SlippageQuote:
        token = validate_address(token, "token")
        validate_amount(sell_amount, "sell_amount")
        slippage_ratio(slippage_pct)

        with self._stage(TradeStage.QUOTING, f"sell {token}", wrap=QueryError):
            price = await self.calculator.quote_sell(token, sell_amount)

        return SlippageQuote(
            token=token,
            trade_type=TradeType.SELL,
            price=price,
            slippage_pct=slippage_pct,
            limit=min_acceptable_amount(price.cost, slippage_pct),
        )

    async def preview_buy_exact(self, token: str, desired_token_amount: int, slippage_pct: Number) -> SlippageQuote:
        token = validate_address(token, "token")
        validate_amount(desired_token_amount, "desired_token_amount")
        slippage_ratio(slippage_pct)

        with self._stage(TradeStage.QUOTING, f"buy exact {token}", wrap=QueryError):
            info = await self.calculator.get_token_info(token)
            price = await self.calculator.calc_buy_cost(info, desired_token_amount)

        return SlippageQuote(
            token=token,
            trade_type=TradeType.BUY,
            exact_output=True,
            price=price,
            slippage_pct=slippage_pct,
            limit=max_acceptable_cost(price.cost, slippage_pct),
        )

    # ==================== Trading ====================

    async def buy(
        self,
        token: str,
        spend_amount: int,
        slippage_pct: Number,
        gas: Optional[GasOptions] = None,
    ) -> TradeResult:
        """Spend exactly `spend_amount`; revert on-chain if fewer than the bounded minimum tokens come back."""
        validate_gas_options(gas)
        quote = await self.preview_buy(token, spend_amount, slippage_pct)
        logger.debug(f"buy {quote.token}: {TradeStage.AMOUNT_BOUNDING.value} min_amount={quote.limit}")

        call = ContractCall(
            to=self.contract_address,
            abi=abi.TRADING,
            signature=abi.BUY_TOKEN_AMAP,
            args=(quote.token, self.wallet_address, spend_amount, quote.limit),
            value=spend_amount,
        )
        receipt = await self._execute(call, gas, f"buy {quote.token}")
        return self._result(receipt, TradeType.BUY, quote.token, quote.price.token_amount, spend_amount, quote.price)

    async def sell(
        self,
        token: str,
        sell_amount: int,
        slippage_pct: Number,
        gas: Optional[GasOptions] = None,
    ) -> TradeResult:
        """Sell exactly `sell_amount`; revert on-chain if proceeds fall below the bounded minimum."""
        validate_gas_options(gas)
        quote = await self.preview_sell(token, sell_amount, slippage_pct)
        logger.debug(f"sell {quote.token}: {TradeStage.AMOUNT_BOUNDING.value} min_funds={quote.limit}")

        call = ContractCall(
            to=self.contract_address,
            abi=abi.TRADING,
            signature=abi.SELL_TOKEN,
            args=(quote.token, sell_amount, quote.limit),
        )
        receipt = await self._execute(call, gas, f"sell {quote.token}")
        return self._result(receipt, TradeType.SELL, quote.token, sell_amount, quote.price.cost, quote.price)

    async def buy_exact_amount(
        self,
        token: str,
        desired_token_amount: int,
        slippage_pct: Number,
        gas: Optional[GasOptions] = None,
    ) -> TradeResult:
        """
        Buy exactly `desired_token_amount`, attaching the bounded maximum cost
        as value. Refunding unused value is up to the contract.
        """
        validate_gas_options(gas)
        quote = await self.preview_buy_exact(token, desired_token_amount, slippage_pct)
        logger.debug(f"buy exact {quote.token}: {TradeStage.AMOUNT_BOUNDING.value} max_funds={quote.limit}")

        call = ContractCall(
            to=self.contract_address,
            abi=abi.TRADING,
            signature=abi.BUY_TOKEN,
            args=(quote.token, desired_token_amount, quote.limit),
            value=quote.limit,
        )
        receipt = await self._execute(call, gas, f"buy exact {quote.token}")
        return self._result(receipt, TradeType.BUY, quote.token, desired_token_amount, quote.price.cost, quote.price)

    async def approve_token(self, token: str, gas: Optional[GasOptions] = None) -> str:
        """
        Unlimited allowance from the wallet to the trading contract; needed
        once before selling. Every call submits a new transaction.
        """
        token = validate_address(token, "token")
        validate_gas_options(gas)

        call = ContractCall(
            to=token,
            abi=abi.ERC20,
            signature=abi.APPROVE,
            args=(self.contract_address, abi.MAX_UINT256),
        )
        logger.info(f"Approving {self.contract_address} to spend {token}")
        receipt = await self._execute(call, gas, f"approve {token}")
        return receipt.tx_hash

    # ==================== Private Helpers ====================

    @contextmanager
    def _stage(self, stage: TradeStage, label: str, wrap: Optional[Type[FourTradeError]] = None):
        logger.debug(f"{label}: {stage.value}")
        try:
            yield
        except FourTradeError as e:
            if e.stage is None:
                e.stage = stage
            logger.warning(f"{label}: {TradeStage.FAILED.value} during {stage.value}: {e}")
            raise
        except Exception as e:
            if wrap is None:
                raise
            logger.error(f"{label}: {TradeStage.FAILED.value} during {stage.value}: {e}")
            raise wrap(f"{label} failed during {stage.value}: {e}", stage=stage) from e

    async def _execute(self, call: ContractCall, gas: Optional[GasOptions], label: str) -> TransactionReceipt:
        with self._stage(TradeStage.SUBMITTING, label, wrap=SubmissionError):
            gas_limit = await self.signer.estimate_fee(call)
            tx_hash = await self.signer.submit(call, gas_limit, gas)
        logger.info(f"{label}: transaction sent {tx_hash} (gas limit {gas_limit})")

        with self._stage(TradeStage.AWAITING_CONFIRMATION, label, wrap=ConfirmationError):
            receipt = await self.signer.wait_for_receipt(tx_hash)
            if receipt is None:
                raise TransactionUnconfirmed(tx_hash)
            if not receipt.succeeded:
                raise ConfirmationError(
                    f"Transaction {tx_hash} reverted",
                    tx_hash=tx_hash,
                    details={"block_number": receipt.block_number},
                )

        logger.info(f"{label}: {TradeStage.CONFIRMED.value} in block {receipt.block_number}")
        return receipt

    @staticmethod
    def _result(
        receipt: TransactionReceipt,
        trade_type: TradeType,
        token: str,
        amount: int,
        cost: int,
        price: PriceInfo,
    ) -> TradeResult:
        return TradeResult(
            tx_hash=receipt.tx_hash,
            trade_type=trade_type,
            token=token,
            amount=amount,
            cost=cost,
            price=price.price_per_token,
            block_number=receipt.block_number,
            gas_used=receipt.gas_used,
        )
