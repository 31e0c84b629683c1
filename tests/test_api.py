"""
HTTP endpoints, served against the in-memory chain.
"""
import pytest
from httpx import ASGITransport, AsyncClient

from fourtrade.api.main import app, build_trader
from fourtrade.core.abi import ABI_VERSION
from fourtrade.infrastructure.gateways.local_mock import LocalMockChain

TEST_TOKEN = "0x1234567890123456789012345678901234567890"
UNLISTED_TOKEN = "0x9999999999999999999999999999999999999999"


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "healthy", "abi": ABI_VERSION}


@pytest.mark.asyncio
async def test_token_info(client: AsyncClient):
    resp = await client.get(f"/v1/tokens/{TEST_TOKEN}")
    assert resp.status_code == 200

    data = resp.json()
    assert data["address"] == TEST_TOKEN
    assert data["offers"] == 800_000_000 * 10**18
    assert data["status"] == 0


@pytest.mark.asyncio
async def test_unlisted_token_maps_to_502(client: AsyncClient):
    resp = await client.get(f"/v1/tokens/{UNLISTED_TOKEN}")
    assert resp.status_code == 502
    assert resp.json()["error"] == "QUERY_ERROR"


@pytest.mark.asyncio
async def test_bad_address_maps_to_400(client: AsyncClient):
    resp = await client.get("/v1/tokens/not-an-address")
    assert resp.status_code == 400
    assert resp.json()["error"] == "CONFIGURATION_ERROR"


@pytest.mark.asyncio
async def test_quote_buy(client: AsyncClient):
    resp = await client.get(f"/v1/quotes/buy?token={TEST_TOKEN}&amount={10**18}&slippage=1")
    assert resp.status_code == 200

    data = resp.json()
    assert data["trade_type"] == "buy"
    assert data["exact_output"] is False
    assert data["limit"] == data["price"]["token_amount"] * 99 // 100
    assert data["price"]["cost"] == 10**18


@pytest.mark.asyncio
async def test_quote_buy_exact(client: AsyncClient):
    resp = await client.get(f"/v1/quotes/buy-exact?token={TEST_TOKEN}&amount={10**24}&slippage=2")
    assert resp.status_code == 200

    data = resp.json()
    assert data["exact_output"] is True
    assert data["limit"] >= data["price"]["cost"]


@pytest.mark.asyncio
async def test_quote_rejects_slippage_over_100(client: AsyncClient, chain: LocalMockChain):
    resp = await client.get(f"/v1/quotes/sell?token={TEST_TOKEN}&amount={10**24}&slippage=101")
    assert resp.status_code == 400
    assert chain.reads == []


@pytest.mark.asyncio
async def test_buy_trade(client: AsyncClient, chain: LocalMockChain):
    resp = await client.post("/v1/trades/buy", json={"token": TEST_TOKEN, "amount": 10**18, "slippage": 1})
    assert resp.status_code == 200

    data = resp.json()
    assert data["trade_type"] == "buy"
    assert data["cost"] == 10**18
    assert data["tx_hash"].startswith("0x")
    assert len(chain.submitted) == 1


@pytest.mark.asyncio
async def test_sell_trade_with_gas_price(client: AsyncClient, chain: LocalMockChain):
    body = {"token": TEST_TOKEN, "amount": 10**24, "slippage": 1, "gas": {"gas_price": 3 * 10**9}}
    resp = await client.post("/v1/trades/sell", json=body)
    assert resp.status_code == 200
    assert resp.json()["trade_type"] == "sell"
    assert chain.submitted[0][2].gas_price == 3 * 10**9


@pytest.mark.asyncio
async def test_buy_exact_trade(client: AsyncClient):
    resp = await client.post("/v1/trades/buy-exact", json={"token": TEST_TOKEN, "amount": 10**24, "slippage": 2})
    assert resp.status_code == 200
    assert resp.json()["amount"] == 10**24


@pytest.mark.asyncio
async def test_reverted_trade_maps_to_409(client: AsyncClient, chain: LocalMockChain):
    chain.receipt_mode = "revert"
    resp = await client.post("/v1/trades/buy", json={"token": TEST_TOKEN, "amount": 10**18})
    assert resp.status_code == 409

    data = resp.json()
    assert data["error"] == "CONFIRMATION_ERROR"
    assert data["stage"] == "awaiting_confirmation"
    assert "tx_hash" in data["details"]


@pytest.mark.asyncio
async def test_unconfirmed_trade_maps_to_504(client: AsyncClient, chain: LocalMockChain):
    chain.receipt_mode = "missing"
    resp = await client.post("/v1/trades/buy", json={"token": TEST_TOKEN, "amount": 10**18})
    assert resp.status_code == 504
    assert resp.json()["error"] == "TRANSACTION_UNCONFIRMED"


@pytest.mark.asyncio
async def test_submission_failure_maps_to_502(client: AsyncClient, chain: LocalMockChain):
    chain.fail_submit = True
    resp = await client.post("/v1/trades/sell", json={"token": TEST_TOKEN, "amount": 10**24})
    assert resp.status_code == 502
    assert resp.json()["error"] == "SUBMISSION_ERROR"


@pytest.mark.asyncio
async def test_approvals(client: AsyncClient, chain: LocalMockChain):
    first = await client.post(f"/v1/approvals?token={TEST_TOKEN}")
    second = await client.post(f"/v1/approvals?token={TEST_TOKEN}")
    assert first.status_code == 200
    assert second.status_code == 200
    assert first.json()["tx_hash"] != second.json()["tx_hash"]


@pytest.mark.asyncio
async def test_wallet_and_balances(client: AsyncClient, chain: LocalMockChain):
    chain.balances[chain.address] = 5
    chain.token_balances[(TEST_TOKEN, chain.address)] = 7

    wallet = (await client.get("/v1/wallet")).json()
    assert wallet == {"address": chain.address, "nativeBalance": 5}

    balance = (await client.get(f"/v1/tokens/{TEST_TOKEN}/balance")).json()
    assert balance["balance"] == 7

    price = await client.get(f"/v1/tokens/{TEST_TOKEN}/price")
    assert price.status_code == 200
    assert price.json()["lastPrice"] > 0


@pytest.mark.asyncio
async def test_approval_with_gas_options(client: AsyncClient, chain: LocalMockChain):
    resp = await client.post(f"/v1/approvals?token={TEST_TOKEN}", json={"gas": {"gas_price": 2 * 10**9}})
    assert resp.status_code == 200
    assert chain.submitted[0][2].gas_price == 2 * 10**9


@pytest.mark.asyncio
async def test_approval_rejects_conflicting_gas(client: AsyncClient, chain: LocalMockChain):
    gas = {"gas_price": 10**9, "max_fee_per_gas": 2 * 10**9}
    resp = await client.post(f"/v1/approvals?token={TEST_TOKEN}", json={"gas": gas})
    assert resp.status_code == 400
    assert chain.submitted == []


@pytest.mark.asyncio
async def test_trading_halt(client: AsyncClient, chain: LocalMockChain):
    assert (await client.get("/v1/trading-halt")).json() == {"halted": False}
    chain.trading_halted = True
    assert (await client.get("/v1/trading-halt")).json() == {"halted": True}


@pytest.mark.asyncio
async def test_unconfigured_server_maps_to_503(monkeypatch):
    monkeypatch.delenv("FOURTRADE_RPC_URL", raising=False)
    monkeypatch.delenv("FOURTRADE_PRIVATE_KEY", raising=False)
    build_trader.cache_clear()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        resp = await ac.get(f"/v1/tokens/{TEST_TOKEN}")
    build_trader.cache_clear()

    assert resp.status_code == 503
    assert resp.json()["detail"] == "Trader not configured or unavailable"
