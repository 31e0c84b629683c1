import asyncio
import logging
from typing import Any, Optional

from eth_account import Account
from web3 import AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TimeExhausted

from fourtrade.core.abi import ABIS
from fourtrade.core.entities.transaction import ContractCall, GasOptions, TransactionReceipt
from fourtrade.core.errors import ConfirmationError, QueryError, SubmissionError
from fourtrade.core.interfaces.chain import IChainReader, ITransactionSigner
from fourtrade.infrastructure.settings import TraderSettings

logger = logging.getLogger(__name__)


class Web3ChainGateway(IChainReader, ITransactionSigner):
    """
    Chain reader and signer backed by web3.py's AsyncWeb3 over HTTP and a
    local eth-account key. Nonces are allocated here, one broadcast at a
    time, so concurrent trades from the same wallet stay ordered.
    """

    def __init__(self, settings: TraderSettings):
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(settings.rpc_url))
        self.account = Account.from_key(settings.private_key)
        self.chain_id = settings.chain_id
        self.receipt_timeout = settings.receipt_timeout
        self.poll_interval = settings.poll_interval

        self._nonce_lock = asyncio.Lock()
        self._next_nonce: Optional[int] = None
        logger.info(f"Web3ChainGateway initialized. URL: {settings.rpc_url}, wallet: {self.account.address}")

    @property
    def address(self) -> str:
        return self.account.address

    def _bind(self, call: ContractCall):
        contract = self.w3.eth.contract(address=Web3.to_checksum_address(call.to), abi=ABIS[call.abi])
        return contract.get_function_by_signature(call.signature)(*call.args)

    async def call(self, call: ContractCall) -> Any:
        try:
            return await self._bind(call).call()
        except ContractLogicError as e:
            raise QueryError(f"{call.function_name} reverted: {e}", {"to": call.to, "signature": call.signature}) from e
        except Exception as e:
            logger.error(f"Read {call.function_name} on {call.to} failed: {e}")
            raise QueryError(f"{call.function_name} failed: {e}", {"to": call.to, "signature": call.signature}) from e

    async def get_balance(self, address: str) -> int:
        try:
            return await self.w3.eth.get_balance(Web3.to_checksum_address(address))
        except Exception as e:
            logger.error(f"Failed to fetch balance for {address}: {e}")
            raise QueryError(f"get_balance failed: {e}", {"address": address}) from e

    async def estimate_fee(self, call: ContractCall) -> int:
        try:
            return await self._bind(call).estimate_gas({"from": self.address, "value": call.value})
        except Exception as e:
            logger.error(f"Gas estimation for {call.function_name} failed: {e}")
            raise SubmissionError(f"Gas estimation for {call.function_name} failed: {e}", {"signature": call.signature}) from e

    async def submit(self, call: ContractCall, gas_limit: int, gas: Optional[GasOptions] = None) -> str:
        async with self._nonce_lock:
            try:
                if self._next_nonce is None:
                    self._next_nonce = await self.w3.eth.get_transaction_count(self.address, "pending")

                params = {
                    "from": self.address,
                    "value": call.value,
                    "gas": gas_limit,
                    "nonce": self._next_nonce,
                    "chainId": self.chain_id,
                }
                if gas is not None:
                    params.update(gas.as_tx_params())

                tx = await self._bind(call).build_transaction(params)
                signed = self.account.sign_transaction(tx)
                tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)
            except Exception as e:
                # resync from the node on the next submission
                self._next_nonce = None
                logger.error(f"Broadcast of {call.function_name} failed: {e}")
                raise SubmissionError(f"Broadcast of {call.function_name} failed: {e}", {"signature": call.signature}) from e

            self._next_nonce += 1
            return Web3.to_hex(tx_hash)

    async def wait_for_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        try:
            receipt = await self.w3.eth.wait_for_transaction_receipt(
                tx_hash, timeout=self.receipt_timeout, poll_latency=self.poll_interval
            )
        except TimeExhausted:
            logger.warning(f"No receipt for {tx_hash} after {self.receipt_timeout}s")
            return None
        except Exception as e:
            logger.error(f"Receipt polling for {tx_hash} failed: {e}")
            raise ConfirmationError(f"Receipt polling failed: {e}", tx_hash=tx_hash) from e

        return TransactionReceipt(
            tx_hash=Web3.to_hex(receipt["transactionHash"]),
            status=receipt["status"],
            block_number=receipt.get("blockNumber"),
            gas_used=receipt.get("gasUsed"),
        )
