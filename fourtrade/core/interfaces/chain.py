from abc import ABC, abstractmethod
from typing import Any, Optional

from fourtrade.core.entities.transaction import ContractCall, GasOptions, TransactionReceipt


class IChainReader(ABC):
    @abstractmethod
    async def call(self, call: ContractCall) -> Any:
        """
        Executes a read-only call and returns the decoded result.
        Reverts and transport failures raise QueryError.
        """
        pass

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        pass


class ITransactionSigner(ABC):
    """
    Signs and broadcasts on behalf of one wallet. Implementations own nonce
    sequencing for that wallet.
    """

    @property
    @abstractmethod
    def address(self) -> str:
        pass

    @abstractmethod
    async def estimate_fee(self, call: ContractCall) -> int:
        """Gas limit estimate. Failures raise SubmissionError."""
        pass

    @abstractmethod
    async def submit(self, call: ContractCall, gas_limit: int, gas: Optional[GasOptions] = None) -> str:
        """Signs and broadcasts; returns the transaction hash. Failures raise SubmissionError."""
        pass

    @abstractmethod
    async def wait_for_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        """
        Suspends until the transaction is included. Returns None when the
        transport gives up without a receipt. Polling failures raise
        ConfirmationError.
        """
        pass
