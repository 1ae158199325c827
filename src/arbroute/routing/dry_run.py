"""Simulated aggregator for dry-run mode (no network calls)."""

import asyncio
import random
from decimal import Decimal
from typing import Optional

from arbroute.chains import ETHER
from arbroute.contracts.lifi import (
    AggregatorRoute,
    CostAmount,
    LifiToken,
    LifiToolDetails,
    QuoteKey,
)
from arbroute.routing.aggregator import is_any_usdc
from arbroute.routing.base import QuoteFetcher
from arbroute.routing.lifi import select_tagged_routes

# Simulated bridges: (key, name, fee in basis points, duration in seconds)
SIMULATED_BRIDGES: list[tuple[str, str, int, int]] = [
    ("across", "Across", 5, 120),
    ("stargateV2", "StargateV2", 3, 600),
    ("relay", "Relay", 8, 30),
]

# Simulated gas per bridge transaction, in wei
SIMULATED_GAS_WEI = 150_000 * 2 * 10**9


def _token_for(address: str, chain_id: int) -> LifiToken:
    if is_any_usdc(address):
        return LifiToken(address=address, chain_id=chain_id, symbol="USDC", decimals=6)
    return LifiToken(
        address=address,
        chain_id=chain_id,
        symbol=ETHER.symbol,
        decimals=ETHER.decimals,
        name=ETHER.name,
    )


class SimulatedAggregator(QuoteFetcher):
    """
    Simulated aggregator for testing.

    Quotes the same asset 1:1 on the destination chain minus a per-bridge
    fee, so the cheapest and the fastest route usually differ.
    """

    def __init__(
        self,
        bridges: Optional[list[tuple[str, str, int, int]]] = None,
        add_random_variance: bool = False,
        latency_seconds: float = 0.0,
    ):
        self.bridges = bridges if bridges is not None else SIMULATED_BRIDGES
        self.add_random_variance = add_random_variance
        self.latency_seconds = latency_seconds

    @property
    def name(self) -> str:
        return "dry_run"

    def _route(self, key: QuoteKey, bridge: tuple[str, str, int, int]) -> AggregatorRoute:
        tool_key, tool_name, fee_bps, duration_seconds = bridge

        fee_bps_value = Decimal(fee_bps)
        if self.add_random_variance:
            fee_bps_value += Decimal(str(random.uniform(0, 2)))
        fee = int(Decimal(key.from_amount) * fee_bps_value / Decimal(10_000))

        from_token = _token_for(key.from_token, key.from_chain_id)
        to_token = _token_for(key.to_token, key.to_chain_id)
        gas_token = _token_for(ETHER.as_token().address, key.from_chain_id)

        return AggregatorRoute(
            tool=LifiToolDetails(
                key=tool_key, name=tool_name, logo_uri=f"/icons/{tool_key.lower()}.svg"
            ),
            duration_ms=duration_seconds * 1000,
            gas=CostAmount(amount=SIMULATED_GAS_WEI, token=gas_token),
            fee=CostAmount(amount=0, token=gas_token),
            from_amount=CostAmount(amount=key.from_amount, token=from_token),
            to_amount=CostAmount(amount=max(key.from_amount - fee, 0), token=to_token),
            from_chain_id=key.from_chain_id,
            to_chain_id=key.to_chain_id,
            from_address=key.from_address,
            to_address=key.to_address or key.from_address,
        )

    async def fetch_routes(self, key: QuoteKey) -> list[AggregatorRoute]:
        """Generate simulated cheapest and fastest routes."""
        if self.latency_seconds:
            await asyncio.sleep(self.latency_seconds)

        if key.from_amount <= 0:
            return []

        routes = [self._route(key, bridge) for bridge in self.bridges]
        return select_tagged_routes(routes)
