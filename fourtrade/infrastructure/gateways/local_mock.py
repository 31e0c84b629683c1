import hashlib
from typing import Any, Dict, List, Optional, Tuple

from eth_utils import to_checksum_address

from fourtrade.core import abi
from fourtrade.core.entities.transaction import ContractCall, GasOptions, TransactionReceipt
from fourtrade.core.errors import QueryError, SubmissionError
from fourtrade.core.interfaces.chain import IChainReader, ITransactionSigner

MOCK_WALLET = "0x00000000000000000000000000000000000000A1"

_ZERO_RECORD = ("0x0000000000000000000000000000000000000000",) * 2 + (0,) * 11

# struct positions used by the curve
_OFFERS, _FUNDS, _K = 7, 8, 10

GAS_ESTIMATES = {
    "buyTokenAMAP": 210_000,
    "buyToken": 220_000,
    "sellToken": 180_000,
    "approve": 46_000,
}


class LocalMockChain(IChainReader, ITransactionSigner):
    """
    In-memory trading contract and wallet for testing and dry runs.

    Prices follow a constant-product curve over virtual reserves:
    quote reserve = K + funds, token reserve = offers. The fee is
    `fee_bps` of the quote amount. Submitting never moves the curve.

    `receipt_mode` is "success", "revert" or "missing" (no receipt).
    """

    def __init__(self, fee_bps: int = 100, wallet: str = MOCK_WALLET):
        self.fee_bps = fee_bps
        self.wallet = to_checksum_address(wallet)
        self.records: Dict[str, tuple] = {}
        self.balances: Dict[str, int] = {}
        self.token_balances: Dict[Tuple[str, str], int] = {}
        self.trading_halted = False

        self.receipt_mode = "success"
        self.fail_estimate = False
        self.fail_submit = False
        self.failing_reads: set = set()

        self.reads: List[ContractCall] = []
        self.submitted: List[Tuple[ContractCall, int, Optional[GasOptions]]] = []
        self._nonce = 0
        self._block = 1_000

    def list_token(
        self,
        token: str,
        offers: int = 800_000_000 * 10**18,
        funds: int = 0,
        k: int = 30 * 10**18,
        status: int = abi.STATUS_TRADING,
    ) -> None:
        token = to_checksum_address(token)
        self.records[token] = (
            token,  # base
            "0x0000000000000000000000000000000000000000",  # quote: native coin
            1,  # template
            1_000_000_000 * 10**18,  # totalSupply
            800_000_000 * 10**18,  # maxOffers
            24 * 10**18,  # maxRaising
            1_700_000_000,  # launchTime
            offers,
            funds,
            0,  # lastPrice
            k,
            0,  # T
            status,
        )

    # ==================== IChainReader ====================

    async def call(self, call: ContractCall) -> Any:
        self.reads.append(call)
        if call.function_name in self.failing_reads:
            raise QueryError(f"{call.function_name} reverted", {"signature": call.signature})

        handler = getattr(self, "_read_" + call.function_name.lstrip("_"), None)
        if handler is None:
            raise QueryError(f"{call.signature} is not supported by LocalMockChain")
        return handler(*call.args)

    async def get_balance(self, address: str) -> int:
        return self.balances.get(to_checksum_address(address), 0)

    def _read_tokenInfos(self, token: str) -> tuple:
        return self.records.get(to_checksum_address(token), _ZERO_RECORD)

    def _read_tradingHalt(self) -> bool:
        return self.trading_halted

    def _read_calcTradingFee(self, ti: tuple, funds: int) -> int:
        return funds * self.fee_bps // 10_000

    def _read_calcBuyAmount(self, ti: tuple, funds: int) -> int:
        quote_reserve = ti[_K] + ti[_FUNDS]
        return ti[_OFFERS] * funds // (quote_reserve + funds)

    def _read_calcBuyCost(self, ti: tuple, amount: int) -> int:
        if amount >= ti[_OFFERS]:
            raise QueryError("calcBuyCost reverted: amount exceeds offers")
        quote_reserve = ti[_K] + ti[_FUNDS]
        return -(-quote_reserve * amount // (ti[_OFFERS] - amount))

    def _read_calcSellCost(self, ti: tuple, amount: int) -> int:
        quote_reserve = ti[_K] + ti[_FUNDS]
        return quote_reserve * amount // (ti[_OFFERS] + amount)

    def _read_calcLastPrice(self, ti: tuple) -> int:
        return (ti[_K] + ti[_FUNDS]) * 10**18 // ti[_OFFERS]

    def _read_balanceOf(self, owner: str) -> int:
        token = self.reads[-1].to
        return self.token_balances.get((to_checksum_address(token), to_checksum_address(owner)), 0)

    # ==================== ITransactionSigner ====================

    @property
    def address(self) -> str:
        return self.wallet

    async def estimate_fee(self, call: ContractCall) -> int:
        if self.fail_estimate:
            raise SubmissionError(f"Gas estimation for {call.function_name} failed: execution reverted")
        return GAS_ESTIMATES.get(call.function_name, 100_000)

    async def submit(self, call: ContractCall, gas_limit: int, gas: Optional[GasOptions] = None) -> str:
        if self.fail_submit:
            raise SubmissionError(f"Broadcast of {call.function_name} failed: nonce too low")
        self.submitted.append((call, gas_limit, gas))
        self._nonce += 1
        digest = hashlib.sha256(f"{self.wallet}:{self._nonce}".encode()).hexdigest()
        return "0x" + digest

    async def wait_for_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        if self.receipt_mode == "missing":
            return None
        self._block += 1
        gas_limit = self.submitted[-1][1] if self.submitted else 0
        return TransactionReceipt(
            tx_hash=tx_hash,
            status=0 if self.receipt_mode == "revert" else 1,
            block_number=self._block,
            gas_used=gas_limit * 9 // 10,
        )
