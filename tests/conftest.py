"""Pytest configuration and fixtures."""

import asyncio
import os
from decimal import Decimal
from typing import Optional

import pytest

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "true"
os.environ["DRY_RUN"] = "true"
os.environ["LIFI_API_KEY"] = ""

from arbroute.chains import ChainId, ChainRegistry
from arbroute.config import Settings, get_settings
from arbroute.contracts.lifi import (
    AggregatorRoute,
    CostAmount,
    LifiToken,
    LifiToolDetails,
    Order,
    QuoteKey,
)
from arbroute.errors import QuoteFetchError
from arbroute.routing.base import QuoteFetcher
from arbroute.tokens import BridgeToken, get_common_address


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Make every test read settings from the environment afresh."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings() -> Settings:
    return Settings(dry_run=True, aggregator_enabled=True, amount_debounce_ms=0)


@pytest.fixture
def registry() -> ChainRegistry:
    return ChainRegistry()


# ======================
# Tokens
# ======================


@pytest.fixture
def usdc_deposit_token() -> BridgeToken:
    """Native USDC on Ethereum, bridged USDC.e on Arbitrum One."""
    return BridgeToken(
        address=get_common_address(ChainId.ETHEREUM, "USDC"),
        l2_address=get_common_address(ChainId.ARBITRUM_ONE, "USDC.e"),
        symbol="USDC",
        decimals=6,
    )


@pytest.fixture
def usdc_withdrawal_token() -> BridgeToken:
    """Native USDC on Arbitrum One, native USDC on Ethereum."""
    return BridgeToken(
        address=get_common_address(ChainId.ETHEREUM, "USDC"),
        l2_address=get_common_address(ChainId.ARBITRUM_ONE, "USDC"),
        symbol="USDC",
        decimals=6,
    )


@pytest.fixture
def usdt_token() -> BridgeToken:
    return BridgeToken(
        address=get_common_address(ChainId.ETHEREUM, "USDT"),
        l2_address=get_common_address(ChainId.ARBITRUM_ONE, "USDT"),
        symbol="USDT",
        decimals=6,
    )


@pytest.fixture
def dai_token() -> BridgeToken:
    return BridgeToken(
        address="0x6B175474E89094C44Da98b954EedcdeCB5BE3830",
        l2_address="0xDA10009cBd5D07dd0CeCc66161FC93D7c9000da1",
        symbol="DAI",
        decimals=18,
    )


# ======================
# Aggregator routes
# ======================


def _token(chain_id: int, symbol: str = "ETH", decimals: int = 18) -> LifiToken:
    return LifiToken(
        address="0x0000000000000000000000000000000000000000",
        chain_id=chain_id,
        symbol=symbol,
        decimals=decimals,
    )


@pytest.fixture
def make_route():
    """Factory for normalized aggregator routes."""

    def _make(
        name: str = "Across",
        to_amount: int = 990_000,
        duration_ms: int = 120_000,
        orders: Optional[list[Order]] = None,
        gas_wei: int = 10**14,
        fee: int = 0,
    ) -> AggregatorRoute:
        usdc = _token(ChainId.ARBITRUM_ONE, "USDC", 6)
        return AggregatorRoute(
            tool=LifiToolDetails(key=name.lower(), name=name, logo_uri=f"/icons/{name}.svg"),
            duration_ms=duration_ms,
            gas=CostAmount(amount=gas_wei, token=_token(ChainId.ETHEREUM)),
            fee=CostAmount(amount=fee, token=_token(ChainId.ETHEREUM)),
            from_amount=CostAmount(amount=1_000_000, token=usdc),
            to_amount=CostAmount(amount=to_amount, token=usdc),
            from_chain_id=ChainId.ETHEREUM,
            to_chain_id=ChainId.ARBITRUM_ONE,
            orders=orders if orders is not None else [],
        )

    return _make


class FakeQuoteFetcher(QuoteFetcher):
    """Records calls and returns canned routes (or raises)."""

    def __init__(
        self,
        routes: Optional[list[AggregatorRoute]] = None,
        error: Optional[str] = None,
    ):
        self.routes = routes or []
        self.error = error
        self.calls: list[QuoteKey] = []
        self.gate: Optional[asyncio.Event] = None

    @property
    def name(self) -> str:
        return "fake"

    async def fetch_routes(self, key: QuoteKey) -> list[AggregatorRoute]:
        self.calls.append(key)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise QuoteFetchError(self.error, status_code=500)
        return list(self.routes)


@pytest.fixture
def fake_fetcher() -> FakeQuoteFetcher:
    return FakeQuoteFetcher()


@pytest.fixture
def parent_child_fees() -> tuple[Decimal, Decimal]:
    return Decimal("0.0002"), Decimal("0.0001")
