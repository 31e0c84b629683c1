"""
Canonical ABI registry.

Single source for every external entry point used by FourTrade: the FOUR.meme
TokenManager2 trading contract and the ERC-20 token interface. Call sites
refer to entries by the signature constants below; `validate_abi()` checks
them against the ABI lists once at startup.
"""
import logging
from typing import Dict, List

from fourtrade.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

ABI_VERSION = "TokenManager2-v1"

FOUR_MEME_ADDRESS = "0x5c952063c7fc8610FFDB798152D69F0B9550762b"
BSC_CHAIN_ID = 56
MAX_UINT256 = 2**256 - 1

TRADING = "trading"
ERC20 = "erc20"

# Field order of the on-chain TokenInfo struct
TOKEN_INFO_FIELDS = [
    ("base", "address"),
    ("quote", "address"),
    ("template", "uint256"),
    ("totalSupply", "uint256"),
    ("maxOffers", "uint256"),
    ("maxRaising", "uint256"),
    ("launchTime", "uint256"),
    ("offers", "uint256"),
    ("funds", "uint256"),
    ("lastPrice", "uint256"),
    ("K", "uint256"),
    ("T", "uint256"),
    ("status", "uint256"),
]

STATUS_TRADING = 0

_TOKEN_INFO_TUPLE = "(" + ",".join(t for _, t in TOKEN_INFO_FIELDS) + ")"

# Read entry points
TOKEN_INFOS = "_tokenInfos(address)"
TRADING_HALT = "_tradingHalt()"
CALC_TRADING_FEE = f"calcTradingFee({_TOKEN_INFO_TUPLE},uint256)"
CALC_BUY_AMOUNT = f"calcBuyAmount({_TOKEN_INFO_TUPLE},uint256)"
CALC_BUY_COST = f"calcBuyCost({_TOKEN_INFO_TUPLE},uint256)"
CALC_SELL_COST = f"calcSellCost({_TOKEN_INFO_TUPLE},uint256)"
CALC_LAST_PRICE = f"calcLastPrice({_TOKEN_INFO_TUPLE})"
BALANCE_OF = "balanceOf(address)"

# Write entry points
BUY_TOKEN_AMAP = "buyTokenAMAP(address,address,uint256,uint256)"
BUY_TOKEN = "buyToken(address,uint256,uint256)"
SELL_TOKEN = "sellToken(address,uint256,uint256)"
APPROVE = "approve(address,uint256)"


def _token_info_input(name: str) -> dict:
    return {
        "name": name,
        "type": "tuple",
        "internalType": "struct TokenManager2.TokenInfo",
        "components": [{"name": n, "type": t} for n, t in TOKEN_INFO_FIELDS],
    }


def _uint(name: str) -> dict:
    return {"name": name, "type": "uint256"}


def _address(name: str) -> dict:
    return {"name": name, "type": "address"}


def _view(name: str, inputs: List[dict], outputs: List[dict]) -> dict:
    return {"type": "function", "name": name, "stateMutability": "view", "inputs": inputs, "outputs": outputs}


TRADING_ABI: List[dict] = [
    _view("_tokenInfos", [_address("token")], [{"name": n, "type": t} for n, t in TOKEN_INFO_FIELDS]),
    _view("_tradingHalt", [], [{"name": "", "type": "bool"}]),
    _view("calcTradingFee", [_token_info_input("ti"), _uint("funds")], [_uint("")]),
    _view("calcBuyAmount", [_token_info_input("ti"), _uint("funds")], [_uint("")]),
    _view("calcBuyCost", [_token_info_input("ti"), _uint("amount")], [_uint("")]),
    _view("calcSellCost", [_token_info_input("ti"), _uint("amount")], [_uint("")]),
    _view("calcLastPrice", [_token_info_input("ti")], [_uint("")]),
    {
        "type": "function",
        "name": "buyTokenAMAP",
        "stateMutability": "payable",
        "inputs": [_address("token"), _address("to"), _uint("funds"), _uint("minAmount")],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "buyToken",
        "stateMutability": "payable",
        "inputs": [_address("token"), _uint("amount"), _uint("maxFunds")],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "sellToken",
        "stateMutability": "nonpayable",
        "inputs": [_address("token"), _uint("amount"), _uint("minFunds")],
        "outputs": [],
    },
]

ERC20_ABI: List[dict] = [
    {
        "type": "function",
        "name": "approve",
        "stateMutability": "nonpayable",
        "inputs": [_address("spender"), _uint("amount")],
        "outputs": [{"name": "", "type": "bool"}],
    },
    _view("balanceOf", [_address("owner")], [_uint("")]),
]

ABIS: Dict[str, List[dict]] = {TRADING: TRADING_ABI, ERC20: ERC20_ABI}

# signature -> (abi name, expected stateMutability)
REQUIRED_ENTRY_POINTS: Dict[str, tuple] = {
    TOKEN_INFOS: (TRADING, "view"),
    TRADING_HALT: (TRADING, "view"),
    CALC_TRADING_FEE: (TRADING, "view"),
    CALC_BUY_AMOUNT: (TRADING, "view"),
    CALC_BUY_COST: (TRADING, "view"),
    CALC_SELL_COST: (TRADING, "view"),
    CALC_LAST_PRICE: (TRADING, "view"),
    BUY_TOKEN_AMAP: (TRADING, "payable"),
    BUY_TOKEN: (TRADING, "payable"),
    SELL_TOKEN: (TRADING, "nonpayable"),
    APPROVE: (ERC20, "nonpayable"),
    BALANCE_OF: (ERC20, "view"),
}


def _canonical_type(param: dict) -> str:
    if param["type"].startswith("tuple"):
        inner = ",".join(_canonical_type(c) for c in param["components"])
        return f"({inner}){param['type'][len('tuple'):]}"
    return param["type"]


def function_signature(entry: dict) -> str:
    """Canonical `name(type,...)` form, tuples expanded inline."""
    return f"{entry['name']}({','.join(_canonical_type(p) for p in entry['inputs'])})"


def validate_abi(abis: Dict[str, List[dict]] = ABIS) -> None:
    """Raise ConfigurationError if any required entry point is missing or has the wrong mutability."""
    for signature, (abi_name, mutability) in REQUIRED_ENTRY_POINTS.items():
        entries = abis.get(abi_name)
        if entries is None:
            raise ConfigurationError(f"ABI '{abi_name}' is not registered", {"abi": abi_name})

        matches = [e for e in entries if e.get("type") == "function" and function_signature(e) == signature]
        if len(matches) != 1:
            raise ConfigurationError(
                f"Entry point {signature} must appear exactly once in ABI '{abi_name}', found {len(matches)}",
                {"abi": abi_name, "signature": signature},
            )
        if matches[0].get("stateMutability") != mutability:
            raise ConfigurationError(
                f"Entry point {signature} must be {mutability}",
                {"abi": abi_name, "signature": signature, "stateMutability": matches[0].get("stateMutability")},
            )

    logger.debug(f"ABI registry {ABI_VERSION} validated ({len(REQUIRED_ENTRY_POINTS)} entry points)")
