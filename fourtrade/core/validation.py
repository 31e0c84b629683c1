"""
Input validation. Everything here runs before any network call and raises
ConfigurationError on bad input.
"""
import re
from decimal import Decimal
from typing import Optional
from urllib.parse import urlparse

from eth_utils import is_address, to_checksum_address

from fourtrade.core.entities.transaction import GasOptions
from fourtrade.core.errors import ConfigurationError

_PRIVATE_KEY_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def validate_address(address: str, field: str = "address") -> str:
    """Return the checksummed form of `address`."""
    if not isinstance(address, str) or not address:
        raise ConfigurationError(f"{field} is required", {"field": field})
    if not is_address(address):
        raise ConfigurationError(f"Invalid address format for {field}: {address}", {"field": field, "address": address})
    return to_checksum_address(address)


def validate_amount(amount: int, field: str = "amount", allow_zero: bool = False, maximum: Optional[int] = None) -> int:
    # bool is an int subclass
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise ConfigurationError(f"{field} must be an integer amount in base units", {"field": field})
    if amount < 0:
        raise ConfigurationError(f"{field} cannot be negative", {"field": field, "amount": str(amount)})
    if amount == 0 and not allow_zero:
        raise ConfigurationError(f"{field} must be greater than zero", {"field": field})
    if maximum is not None and amount > maximum:
        raise ConfigurationError(f"{field} must not exceed {maximum}", {"field": field, "amount": str(amount)})
    return amount


def validate_private_key(private_key: str) -> str:
    """Accepts 64 hex characters with or without 0x; returns the 0x-prefixed key."""
    if not isinstance(private_key, str) or not private_key:
        raise ConfigurationError("Private key is required")
    clean = private_key[2:] if private_key.startswith("0x") else private_key
    if not _PRIVATE_KEY_RE.match(clean):
        raise ConfigurationError("Private key must be 64 hexadecimal characters (with or without 0x prefix)")
    return "0x" + clean


def validate_rpc_url(url: str, schemes: tuple = ("http", "https")) -> str:
    if not isinstance(url, str) or not url:
        raise ConfigurationError("RPC URL is required")
    parsed = urlparse(url)
    if parsed.scheme not in schemes or not parsed.netloc:
        raise ConfigurationError(f"Malformed RPC URL: {url}", {"url": url})
    return url


def validate_gas_options(gas: Optional[GasOptions]) -> Optional[GasOptions]:
    if gas is None:
        return None

    has_legacy = gas.gas_price is not None
    has_eip1559 = gas.max_fee_per_gas is not None or gas.max_priority_fee_per_gas is not None
    if has_legacy and has_eip1559:
        raise ConfigurationError(
            "Cannot specify both legacy gas_price and EIP-1559 parameters (max_fee_per_gas, max_priority_fee_per_gas)"
        )

    for field in ("gas_price", "max_fee_per_gas", "max_priority_fee_per_gas"):
        value = getattr(gas, field)
        if value is not None:
            validate_amount(value, field)

    if gas.max_fee_per_gas is not None and gas.max_priority_fee_per_gas is not None:
        if gas.max_priority_fee_per_gas > gas.max_fee_per_gas:
            raise ConfigurationError("max_priority_fee_per_gas cannot exceed max_fee_per_gas")
    return gas


def is_real_number(value) -> bool:
    return not isinstance(value, bool) and isinstance(value, (int, float, Decimal))
