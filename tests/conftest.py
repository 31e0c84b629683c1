"""
Pytest configuration and shared fixtures.
"""
import pytest
from httpx import AsyncClient, ASGITransport

from fourtrade.api.main import app, get_trader
from fourtrade.core.abi import FOUR_MEME_ADDRESS
from fourtrade.core.use_cases.trader import Trader
from fourtrade.infrastructure.gateways.local_mock import LocalMockChain

TEST_TOKEN = "0x1234567890123456789012345678901234567890"
UNLISTED_TOKEN = "0x9999999999999999999999999999999999999999"


@pytest.fixture
def chain() -> LocalMockChain:
    mock = LocalMockChain(fee_bps=100)
    mock.list_token(TEST_TOKEN)
    return mock


@pytest.fixture
def trader(chain: LocalMockChain) -> Trader:
    return Trader(chain, chain, FOUR_MEME_ADDRESS)


@pytest.fixture
async def client(trader: Trader):
    """Async HTTP client for testing FastAPI endpoints against the mock chain."""
    app.dependency_overrides[get_trader] = lambda: trader
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
