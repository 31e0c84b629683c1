"""
Error taxonomy for FourTrade.

Every failure surfaced by the core is one of these types. Nothing is retried
locally; callers decide what to do with them.
"""
from typing import Any, Optional


class FourTradeError(Exception):
    code = "FOURTRADE_ERROR"

    def __init__(self, message: str, details: Optional[dict] = None, stage: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.stage = stage

    def to_dict(self) -> dict:
        payload = {"error": self.code, "message": self.message, "details": self.details}
        if self.stage is not None:
            payload["stage"] = getattr(self.stage, "value", self.stage)
        return payload


class ConfigurationError(FourTradeError):
    """Invalid slippage, amounts, addresses, keys or settings. Raised before any I/O."""

    code = "CONFIGURATION_ERROR"


class QueryError(FourTradeError):
    """A read call reverted or the transport failed while quoting."""

    code = "QUERY_ERROR"


class FeeExceedsAmountError(QueryError):
    code = "FEE_EXCEEDS_AMOUNT"

    def __init__(self, fee: int, amount: int):
        super().__init__(
            f"Trading fee {fee} exceeds or equals amount {amount}",
            {"fee": str(fee), "amount": str(amount)},
        )


class SubmissionError(FourTradeError):
    """Fee estimation or broadcast failed."""

    code = "SUBMISSION_ERROR"


class ConfirmationError(FourTradeError):
    """The transaction reverted after inclusion, or receipt polling failed."""

    code = "CONFIRMATION_ERROR"

    def __init__(self, message: str, tx_hash: Optional[str] = None, details: Optional[dict] = None, stage: Any = None):
        details = dict(details or {})
        if tx_hash:
            details["tx_hash"] = tx_hash
        super().__init__(message, details, stage)
        self.tx_hash = tx_hash


class TransactionUnconfirmed(FourTradeError):
    """
    The transport returned no receipt and no failure signal.
    The transaction may still land; it must not be treated as a success.
    """

    code = "TRANSACTION_UNCONFIRMED"

    def __init__(self, tx_hash: str, stage: Any = None):
        super().__init__(f"No receipt for transaction {tx_hash}", {"tx_hash": tx_hash}, stage)
        self.tx_hash = tx_hash
