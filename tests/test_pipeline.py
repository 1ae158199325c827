"""Tests for the route pipeline."""

import asyncio
from decimal import Decimal

import pytest

from arbroute.chains import ADDRESS_ZERO, ChainId
from arbroute.contracts.lifi import AggregatorSettings, Order
from arbroute.routing.base import MechanismId
from arbroute.routing.gas import GasSummary
from arbroute.routing.pipeline import RoutePipeline, TransferInputs, build_quote_key
from arbroute.routing.store import SelectionStatus
from arbroute.tokens import get_common_address


@pytest.fixture
def two_routes(make_route):
    return [
        make_route("Stargate", to_amount=995_000, duration_ms=600_000, orders=[Order.CHEAPEST]),
        make_route("Relay", to_amount=990_000, duration_ms=30_000, orders=[Order.FASTEST]),
    ]


@pytest.fixture
def pipeline(registry, settings, fake_fetcher):
    return RoutePipeline(registry=registry, settings=settings, quote_fetcher=fake_fetcher)


def eth_deposit(amount: str = "1", **kwargs) -> TransferInputs:
    return TransferInputs(ChainId.ETHEREUM, ChainId.ARBITRUM_ONE, amount=amount, **kwargs)


class TestQuoteKey:
    """Tests for the aggregator request derived from inputs."""

    def test_usdc_deposit(self, registry, usdc_deposit_token):
        inputs = eth_deposit("2.5", token=usdc_deposit_token)

        key = build_quote_key(inputs, Decimal("2.5"), registry)

        assert key.from_amount == 2_500_000
        assert key.from_token == get_common_address(ChainId.ETHEREUM, "USDC")
        assert key.to_token == get_common_address(ChainId.ARBITRUM_ONE, "USDC")

    def test_native_eth(self, registry):
        key = build_quote_key(eth_deposit("0.1"), Decimal("0.1"), registry)

        assert key.from_amount == 10**17
        assert key.from_token == ADDRESS_ZERO
        assert key.to_token == ADDRESS_ZERO

    def test_settings_carried(self, registry):
        aggregator_settings = AggregatorSettings(slippage=Decimal("1"), disabled_bridges=("hop",))
        inputs = eth_deposit(
            from_address="0x1111111111111111111111111111111111111111",
            aggregator_settings=aggregator_settings,
        )

        key = build_quote_key(inputs, Decimal("1"), registry)

        assert key.slippage == Decimal("1")
        assert key.deny_bridges == ("hop",)
        assert key.to_address == "0x1111111111111111111111111111111111111111"


class TestPipeline:
    """Tests for end-to-end recomputation."""

    @pytest.mark.asyncio
    async def test_usdc_deposit(self, pipeline, fake_fetcher, two_routes, usdc_deposit_token):
        fake_fetcher.routes = two_routes

        await pipeline.set_inputs(eth_deposit(token=usdc_deposit_token))
        state = await pipeline.wait_idle()

        assert state.eligible_mechanisms == (
            MechanismId.CCTP,
            MechanismId.AGGREGATOR,
            MechanismId.CANONICAL,
        )
        assert [route.mechanism for route in state.routes] == [
            MechanismId.CCTP,
            MechanismId.AGGREGATOR_CHEAPEST,
            MechanismId.AGGREGATOR_FASTEST,
            MechanismId.CANONICAL,
        ]
        assert state.status == SelectionStatus.CHOOSING
        assert state.is_loading is False
        assert len(fake_fetcher.calls) == 1

        assert pipeline.select(MechanismId.AGGREGATOR_FASTEST) is True
        assert pipeline.state.selected_route.counterparty_name == "Relay"
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_loading_until_quotes_arrive(self, pipeline, fake_fetcher):
        fake_fetcher.gate = asyncio.Event()

        await pipeline.set_inputs(eth_deposit())

        assert pipeline.state.is_loading is True
        assert [route.mechanism for route in pipeline.state.routes] == [MechanismId.CANONICAL]

        fake_fetcher.gate.set()
        state = await pipeline.wait_idle()

        assert state.is_loading is False
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_zero_amount(self, pipeline, fake_fetcher):
        """Test nothing is eligible or fetched without an amount."""
        await pipeline.set_inputs(eth_deposit("0"))
        state = await pipeline.wait_idle()

        assert state.eligible_mechanisms == ()
        assert state.status == SelectionStatus.IDLE
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_unparsable_amount(self, pipeline, fake_fetcher):
        await pipeline.set_inputs(eth_deposit("abc"))
        state = await pipeline.wait_idle()

        assert state.eligible_mechanisms == ()
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_superseded_quote(self, pipeline, fake_fetcher, two_routes):
        """Test only the latest request's routes are applied."""
        fake_fetcher.routes = two_routes
        fake_fetcher.gate = asyncio.Event()

        await pipeline.set_inputs(eth_deposit())
        await asyncio.sleep(0)
        await pipeline.set_inputs(
            eth_deposit(aggregator_settings=AggregatorSettings(slippage=Decimal("1")))
        )
        fake_fetcher.gate.set()
        state = await pipeline.wait_idle()

        assert pipeline.quote_key == fake_fetcher.calls[-1]
        assert pipeline.quote_key.slippage == Decimal("1")
        assert state.has_modified_settings is True
        assert MechanismId.AGGREGATOR_CHEAPEST in state.routes_by_mechanism
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_amount_debounced(self, registry, settings, fake_fetcher):
        """Test rapid amount edits only request the settled amount."""
        pipeline = RoutePipeline(
            registry=registry,
            settings=settings,
            quote_fetcher=fake_fetcher,
            debounce_seconds=0.05,
        )

        await pipeline.set_inputs(eth_deposit("1"))
        await pipeline.set_inputs(eth_deposit("2"))
        await pipeline.set_inputs(eth_deposit("3"))
        state = await pipeline.wait_idle()

        assert [call.from_amount for call in fake_fetcher.calls] == [10**18, 3 * 10**18]
        assert state.input_key.amount == "3"
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_sole_aggregator_error(self, pipeline, fake_fetcher):
        """Test a failed quote surfaces when the aggregator is the only option."""
        fake_fetcher.error = "boom"

        await pipeline.set_inputs(TransferInputs(ChainId.BASE, ChainId.ARBITRUM_ONE, amount="1"))
        state = await pipeline.wait_idle()

        assert state.eligible_mechanisms == (MechanismId.AGGREGATOR,)
        assert state.error == "Routes failed to load: boom"
        assert state.routes == []
        assert state.has_low_liquidity is False

    @pytest.mark.asyncio
    async def test_unexpected_fetch_failure(self, pipeline, fake_fetcher):
        """Test errors outside QuoteFetchError still end the quote."""

        async def broken(key):
            raise RuntimeError("socket closed")

        fake_fetcher.fetch_routes = broken

        await pipeline.set_inputs(TransferInputs(ChainId.BASE, ChainId.ARBITRUM_ONE, amount="1"))
        state = await pipeline.wait_idle()

        assert state.is_loading is False
        assert state.error == "Routes failed to load: socket closed"

    @pytest.mark.asyncio
    async def test_aggregator_error_with_alternatives(self, pipeline, fake_fetcher):
        fake_fetcher.error = "boom"

        await pipeline.set_inputs(eth_deposit())
        state = await pipeline.wait_idle()

        assert state.error is None
        assert [route.mechanism for route in state.routes] == [MechanismId.CANONICAL]

    @pytest.mark.asyncio
    async def test_low_liquidity(self, pipeline, fake_fetcher):
        await pipeline.set_inputs(TransferInputs(ChainId.BASE, ChainId.ARBITRUM_ONE, amount="1"))
        state = await pipeline.wait_idle()

        assert state.has_low_liquidity is True
        assert state.error is None

    @pytest.mark.asyncio
    async def test_sole_aggregator_selected(self, pipeline, fake_fetcher, two_routes):
        fake_fetcher.routes = two_routes

        await pipeline.set_inputs(TransferInputs(ChainId.BASE, ChainId.ARBITRUM_ONE, amount="1"))
        state = await pipeline.wait_idle()

        assert state.selected == state.eligible_mechanisms[0] == MechanismId.AGGREGATOR
        assert state.selected_variant == MechanismId.AGGREGATOR_CHEAPEST
        assert state.selected_route.counterparty_name == "Stargate"
        assert state.is_selection_usable is True

    @pytest.mark.asyncio
    async def test_oft_resolution(self, pipeline, fake_fetcher, usdt_token):
        """Test USDT switches to OFT V2 once the allow-list answers."""
        await pipeline.set_inputs(eth_deposit(token=usdt_token))

        assert pipeline.state.eligible_mechanisms == (MechanismId.CANONICAL,)

        state = await pipeline.wait_idle()

        assert state.eligible_mechanisms == (MechanismId.OFT_V2,)
        assert state.selected == MechanismId.OFT_V2
        assert fake_fetcher.calls == []

    @pytest.mark.asyncio
    async def test_gas_summary(self, pipeline):
        await pipeline.set_inputs(TransferInputs(ChainId.ARBITRUM_ONE, ChainId.APECHAIN, amount="1"))
        state = await pipeline.wait_idle()

        assert state.selected_route.is_loading_gas is True

        await pipeline.update_gas_summary(GasSummary.success(Decimal("0.0002"), Decimal("0.0001")))

        route = pipeline.state.selected_route
        assert route.is_loading_gas is False
        assert route.gas_cost[0].amount == Decimal("0.0002")
        assert route.gas_cost[0].token.symbol == "ETH"

    @pytest.mark.asyncio
    async def test_gas_reset_on_new_transfer(self, pipeline):
        """Test a reading for one chain pair is not reused for another."""
        await pipeline.set_inputs(TransferInputs(ChainId.ARBITRUM_ONE, ChainId.APECHAIN, amount="1"))
        await pipeline.update_gas_summary(GasSummary.success(Decimal("0.0002"), Decimal("0.0001")))

        await pipeline.set_inputs(TransferInputs(ChainId.ARBITRUM_ONE, ChainId.SUPERPOSITION, amount="1"))
        state = await pipeline.wait_idle()

        canonical = state.routes_by_mechanism[MechanismId.CANONICAL]
        assert canonical.is_loading_gas is True
        await pipeline.close()

    @pytest.mark.asyncio
    async def test_oft_fee(self, pipeline, usdt_token):
        await pipeline.set_inputs(eth_deposit(token=usdt_token))
        await pipeline.wait_idle()

        await pipeline.set_oft_fee(Decimal("0.00001"))

        assert pipeline.state.selected_route.bridge_fee.amount == Decimal("0.00001")
