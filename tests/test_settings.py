"""
Settings, gas options and ABI registry validation.
"""
import copy

import pytest

from fourtrade.core import abi
from fourtrade.core.entities.transaction import GasOptions
from fourtrade.core.errors import ConfigurationError
from fourtrade.core.validation import validate_gas_options, validate_private_key
from fourtrade.infrastructure.settings import TraderSettings

PRIVATE_KEY = "4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"

ENV = {
    "FOURTRADE_RPC_URL": "https://bsc-dataseed.binance.org",
    "FOURTRADE_PRIVATE_KEY": PRIVATE_KEY,
}


def test_from_env_defaults():
    settings = TraderSettings.from_env(ENV)

    assert settings.rpc_url == ENV["FOURTRADE_RPC_URL"]
    assert settings.private_key == "0x" + PRIVATE_KEY
    assert settings.contract_address == abi.FOUR_MEME_ADDRESS
    assert settings.chain_id == 56
    assert settings.receipt_timeout == 120.0


def test_from_env_overrides():
    env = dict(ENV, FOURTRADE_CHAIN_ID="97", FOURTRADE_RECEIPT_TIMEOUT="30", FOURTRADE_POLL_INTERVAL="0.5")
    settings = TraderSettings.from_env(env)

    assert settings.chain_id == 97
    assert settings.receipt_timeout == 30.0
    assert settings.poll_interval == 0.5


def test_private_key_not_in_repr():
    settings = TraderSettings.from_env(ENV)
    assert PRIVATE_KEY not in repr(settings)


def test_missing_rpc_url():
    with pytest.raises(ConfigurationError) as exc:
        TraderSettings.from_env({"FOURTRADE_PRIVATE_KEY": PRIVATE_KEY})
    assert "rpc_url" in exc.value.details["fields"]


@pytest.mark.parametrize(
    "key, value",
    [
        ("FOURTRADE_RPC_URL", "wss://bsc-ws-node.nariox.org"),
        ("FOURTRADE_RPC_URL", "not a url"),
        ("FOURTRADE_PRIVATE_KEY", "0x1234"),
        ("FOURTRADE_CONTRACT_ADDRESS", "0xnothex"),
        ("FOURTRADE_CHAIN_ID", "0"),
        ("FOURTRADE_RECEIPT_TIMEOUT", "-5"),
    ],
)
def test_invalid_settings(key, value):
    with pytest.raises(ConfigurationError):
        TraderSettings.from_env(dict(ENV, **{key: value}))


def test_private_key_with_prefix():
    assert validate_private_key("0x" + PRIVATE_KEY) == "0x" + PRIVATE_KEY


# ==================== GasOptions ====================

def test_gas_options_legacy_and_eip1559():
    assert validate_gas_options(None) is None
    assert validate_gas_options(GasOptions(gas_price=10**9)).as_tx_params() == {"gasPrice": 10**9}

    eip1559 = GasOptions(max_fee_per_gas=3 * 10**9, max_priority_fee_per_gas=10**9)
    assert validate_gas_options(eip1559).as_tx_params() == {
        "maxFeePerGas": 3 * 10**9,
        "maxPriorityFeePerGas": 10**9,
    }


@pytest.mark.parametrize(
    "options",
    [
        GasOptions(gas_price=10**9, max_priority_fee_per_gas=10**9),
        GasOptions(max_fee_per_gas=10**9, max_priority_fee_per_gas=2 * 10**9),
        GasOptions(gas_price=0),
        GasOptions(max_fee_per_gas=-1),
    ],
)
def test_invalid_gas_options(options):
    with pytest.raises(ConfigurationError):
        validate_gas_options(options)


# ==================== ABI registry ====================

def test_registry_is_valid():
    abi.validate_abi()


def test_signature_expands_token_info_tuple():
    entry = next(e for e in abi.TRADING_ABI if e["name"] == "calcBuyAmount")
    assert abi.function_signature(entry) == abi.CALC_BUY_AMOUNT
    assert abi.CALC_BUY_AMOUNT.startswith("calcBuyAmount((address,address,uint256,")


def test_missing_entry_point_detected():
    abis = copy.deepcopy(abi.ABIS)
    abis[abi.TRADING] = [e for e in abis[abi.TRADING] if e["name"] != "sellToken"]
    with pytest.raises(ConfigurationError, match="sellToken"):
        abi.validate_abi(abis)


def test_wrong_mutability_detected():
    abis = copy.deepcopy(abi.ABIS)
    for entry in abis[abi.TRADING]:
        if entry["name"] == "buyTokenAMAP":
            entry["stateMutability"] = "nonpayable"
    with pytest.raises(ConfigurationError, match="payable"):
        abi.validate_abi(abis)


def test_duplicate_entry_point_detected():
    abis = copy.deepcopy(abi.ABIS)
    abis[abi.ERC20].append(copy.deepcopy(abis[abi.ERC20][0]))
    with pytest.raises(ConfigurationError, match="exactly once"):
        abi.validate_abi(abis)
