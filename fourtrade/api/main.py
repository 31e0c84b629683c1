import logging
from functools import lru_cache
from typing import Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from fourtrade.core.abi import ABI_VERSION
from fourtrade.core.entities.price import SlippageQuote
from fourtrade.core.entities.token import TokenInfo
from fourtrade.core.entities.trade import TradeResult
from fourtrade.core.entities.transaction import GasOptions
from fourtrade.core.errors import (
    ConfigurationError,
    ConfirmationError,
    FourTradeError,
    QueryError,
    SubmissionError,
    TransactionUnconfirmed,
)
from fourtrade.core.use_cases.trader import Trader
from fourtrade.infrastructure.gateways.web3_gateway import Web3ChainGateway
from fourtrade.infrastructure.settings import TraderSettings

# Setup Logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("FourTrade")

app = FastAPI(title="FourTrade API", version="1.0.0", description="Slippage-protected trading on the FOUR.meme bonding curve")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error mapping ---

ERROR_STATUS = [
    (ConfigurationError, 400),
    (TransactionUnconfirmed, 504),
    (ConfirmationError, 409),
    (SubmissionError, 502),
    (QueryError, 502),
]


@app.exception_handler(FourTradeError)
async def fourtrade_error_handler(request: Request, exc: FourTradeError):
    status = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    logger.warning(f"{request.method} {request.url.path} -> {status}: {exc}")
    return JSONResponse(status_code=status, content=exc.to_dict())

# --- Dependency Injection ---


@lru_cache(maxsize=1)
def build_trader() -> Trader:
    # one gateway per process so nonce allocation stays serialized
    settings = TraderSettings.from_env()
    gateway = Web3ChainGateway(settings)
    return Trader(gateway, gateway, settings.contract_address)


def get_trader() -> Trader:
    try:
        return build_trader()
    except ConfigurationError as e:
        # server-side misconfiguration, not a client error
        logger.error(f"Trader unavailable: {e}")
        raise HTTPException(status_code=503, detail="Trader not configured or unavailable")

# --- Request Models ---


class TradeRequest(BaseModel):
    token: str
    amount: int = Field(..., description="Base units: quote currency for buy, tokens for sell and buy-exact")
    slippage: float = Field(1.0, description="Percent, 0-100")
    gas: Optional[GasOptions] = None


class ApprovalResponse(BaseModel):
    token: str
    tx_hash: str

# --- Endpoints ---


@app.get("/health")
async def health():
    return {"status": "healthy", "abi": ABI_VERSION}


@app.get("/v1/wallet")
async def get_wallet(trader: Trader = Depends(get_trader)):
    return {
        "address": trader.wallet_address,
        "nativeBalance": await trader.get_native_balance(),
    }


@app.get("/v1/trading-halt")
async def get_trading_halt(trader: Trader = Depends(get_trader)):
    return {"halted": await trader.is_trading_halted()}


@app.get("/v1/tokens/{token}", response_model=TokenInfo)
async def get_token(token: str, trader: Trader = Depends(get_trader)):
    return await trader.get_token_info(token)


@app.get("/v1/tokens/{token}/price")
async def get_token_price(token: str, trader: Trader = Depends(get_trader)):
    return {"token": token, "lastPrice": await trader.get_current_price(token)}


@app.get("/v1/tokens/{token}/balance")
async def get_token_balance(token: str, trader: Trader = Depends(get_trader)):
    return {"token": token, "owner": trader.wallet_address, "balance": await trader.get_token_balance(token)}


@app.get("/v1/quotes/buy", response_model=SlippageQuote)
async def quote_buy(
    token: str = Query(..., description="Token address"),
    amount: int = Query(..., description="Quote currency to spend, in wei"),
    slippage: float = Query(1.0),
    trader: Trader = Depends(get_trader),
):
    return await trader.preview_buy(token, amount, slippage)


@app.get("/v1/quotes/sell", response_model=SlippageQuote)
async def quote_sell(
    token: str = Query(..., description="Token address"),
    amount: int = Query(..., description="Tokens to sell, in base units"),
    slippage: float = Query(1.0),
    trader: Trader = Depends(get_trader),
):
    return await trader.preview_sell(token, amount, slippage)


@app.get("/v1/quotes/buy-exact", response_model=SlippageQuote)
async def quote_buy_exact(
    token: str = Query(..., description="Token address"),
    amount: int = Query(..., description="Tokens wanted, in base units"),
    slippage: float = Query(1.0),
    trader: Trader = Depends(get_trader),
):
    return await trader.preview_buy_exact(token, amount, slippage)


@app.post("/v1/trades/buy", response_model=TradeResult)
async def buy(req: TradeRequest = Body(...), trader: Trader = Depends(get_trader)):
    return await trader.buy(req.token, req.amount, req.slippage, req.gas)


@app.post("/v1/trades/sell", response_model=TradeResult)
async def sell(req: TradeRequest = Body(...), trader: Trader = Depends(get_trader)):
    return await trader.sell(req.token, req.amount, req.slippage, req.gas)


@app.post("/v1/trades/buy-exact", response_model=TradeResult)
async def buy_exact(req: TradeRequest = Body(...), trader: Trader = Depends(get_trader)):
    return await trader.buy_exact_amount(req.token, req.amount, req.slippage, req.gas)


@app.post("/v1/approvals", response_model=ApprovalResponse)
async def approve(
    token: str = Query(..., description="Token to approve for selling"),
    gas: Optional[GasOptions] = Body(None, embed=True),
    trader: Trader = Depends(get_trader),
):
    tx_hash = await trader.approve_token(token, gas)
    return ApprovalResponse(token=token, tx_hash=tx_hash)


