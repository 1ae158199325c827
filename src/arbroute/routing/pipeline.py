"""Route pipeline.

Wires the stages together on a single event loop:

    inputs -> classification -> eligibility checks -> eligible mechanisms
           -> (gas summary, aggregator quotes) -> route records -> store

Every change recomputes the store synchronously from the latest inputs. The
two asynchronous stages (OFT allow-list lookups and aggregator quotes) are
keyed; their results are only applied while their key is still current.
"""

import asyncio
import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Optional

from arbroute.chains import ChainRegistry, get_chain_registry
from arbroute.config import Settings, get_settings
from arbroute.contracts.lifi import (
    AggregatorRoute,
    AggregatorRoutesResponse,
    AggregatorSettings,
    QuoteKey,
)
from arbroute.routing.aggregator import get_token_override, is_aggregator_transfer
from arbroute.routing.base import (
    MechanismId,
    QuoteFetcher,
    TransferContext,
    parse_amount,
    to_base_units,
)
from arbroute.routing.builder import build_route_records
from arbroute.routing.canonical import (
    DEFAULT_CANONICAL_CONFIG,
    CanonicalConfig,
    is_canonical_transfer,
)
from arbroute.routing.cctp import DEFAULT_CCTP_CONFIG, CctpConfig, is_cctp_transfer
from arbroute.routing.eligibility import describe_eligibility, get_eligible_mechanisms
from arbroute.routing.factory import create_quote_fetcher
from arbroute.routing.gas import GasSummary
from arbroute.routing.oft import (
    OftCacheKey,
    OftEligibilityCache,
    is_oft_v2_transfer,
    oft_cache_key,
)
from arbroute.routing.store import RouteSelectionState, RouteSelectionStore
from arbroute.tokens import BridgeToken
from arbroute.utils.debounce import Debouncer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransferInputs:
    """What the user has entered."""

    source_chain_id: int
    destination_chain_id: int
    token: Optional[BridgeToken] = None
    amount: str = ""
    from_address: Optional[str] = None
    destination_address: Optional[str] = None
    aggregator_settings: AggregatorSettings = field(default_factory=AggregatorSettings)

    def same_transfer(self, other: Optional["TransferInputs"]) -> bool:
        """True when chains, token and amount are unchanged."""
        return other is not None and (
            self.source_chain_id,
            self.destination_chain_id,
            self.token,
            self.amount,
        ) == (other.source_chain_id, other.destination_chain_id, other.token, other.amount)

    def only_amount_differs(self, other: Optional["TransferInputs"]) -> bool:
        return other is not None and self.amount != other.amount and replace(
            self, amount=other.amount
        ) == other


@dataclass
class QuoteState:
    """Outcome of the aggregator fetch for the current key."""

    key: QuoteKey
    task: Optional[asyncio.Task] = None
    routes: Optional[list[AggregatorRoute]] = None
    error: Optional[str] = None

    @property
    def is_loading(self) -> bool:
        return self.routes is None and self.error is None


def build_quote_key(
    inputs: TransferInputs,
    amount: Decimal,
    registry: ChainRegistry,
) -> QuoteKey:
    """Quote key for the current inputs."""
    token = inputs.token
    override = get_token_override(
        token.address if token else None,
        inputs.source_chain_id,
        inputs.destination_chain_id,
    )
    if token is not None:
        decimals = token.decimals
    else:
        decimals = registry.native_currency(inputs.source_chain_id).decimals

    settings = inputs.aggregator_settings
    return QuoteKey(
        from_amount=to_base_units(amount, decimals),
        from_token=override.source_address,
        to_token=override.destination_address,
        from_chain_id=inputs.source_chain_id,
        to_chain_id=inputs.destination_chain_id,
        from_address=inputs.from_address,
        to_address=inputs.destination_address or inputs.from_address,
        deny_bridges=settings.disabled_bridges,
        deny_exchanges=settings.disabled_exchanges,
        slippage=settings.slippage,
    )


class RoutePipeline:
    """Keeps a RouteSelectionStore in sync with transfer inputs.

    Example:
        pipeline = RoutePipeline()
        await pipeline.set_inputs(TransferInputs(1, 42161, amount="0.1"))
        await pipeline.update_gas_summary(GasSummary.success(parent, child))
        state = pipeline.state
    """

    def __init__(
        self,
        registry: Optional[ChainRegistry] = None,
        settings: Optional[Settings] = None,
        quote_fetcher: Optional[QuoteFetcher] = None,
        oft_cache: Optional[OftEligibilityCache] = None,
        cctp_config: CctpConfig = DEFAULT_CCTP_CONFIG,
        canonical_config: CanonicalConfig = DEFAULT_CANONICAL_CONFIG,
        store: Optional[RouteSelectionStore] = None,
        debounce_seconds: Optional[float] = None,
    ):
        self.registry = registry or get_chain_registry()
        self.settings = settings or get_settings()
        self.quote_fetcher = quote_fetcher or create_quote_fetcher(self.settings)
        self.oft_cache = oft_cache or OftEligibilityCache()
        self.cctp_config = cctp_config
        self.canonical_config = canonical_config
        self.store = store or RouteSelectionStore()

        if debounce_seconds is None:
            debounce_seconds = self.settings.amount_debounce_seconds
        self._amount_debouncer: Debouncer[TransferInputs] = Debouncer(
            debounce_seconds, self._commit, name="amount"
        )

        self._inputs: Optional[TransferInputs] = None
        self._gas_summary = GasSummary()
        self._oft_fee: Optional[Decimal] = None
        self._quote: Optional[QuoteState] = None
        self._oft_tasks: dict[OftCacheKey, asyncio.Task] = {}

    @property
    def state(self) -> RouteSelectionState:
        return self.store.state

    @property
    def inputs(self) -> Optional[TransferInputs]:
        return self._inputs

    @property
    def quote_key(self) -> Optional[QuoteKey]:
        return self._quote.key if self._quote else None

    # ======================
    # Inputs
    # ======================

    async def set_inputs(self, inputs: TransferInputs) -> None:
        """Apply new inputs.

        Amount-only edits are debounced; anything else applies immediately
        (together with the latest amount).
        """
        if inputs.only_amount_differs(self._inputs):
            self._amount_debouncer.push(inputs)
            return

        self._amount_debouncer.cancel()
        await self._commit(inputs)

    async def _commit(self, inputs: TransferInputs) -> None:
        if inputs == self._inputs:
            return

        if not inputs.same_transfer(self._inputs):
            # Gas and messaging fee readings belong to the previous transfer
            self._gas_summary = GasSummary()
            self._oft_fee = None

        self._inputs = inputs
        self.recompute()

    async def update_gas_summary(self, summary: GasSummary) -> None:
        """Hand over a new reading from the gas estimation collaborator."""
        self._gas_summary = summary
        self.recompute()

    async def set_oft_fee(self, fee: Optional[Decimal]) -> None:
        """LayerZero native messaging fee in ETH, once quoted."""
        self._oft_fee = fee
        self.recompute()

    def select(self, mechanism: MechanismId) -> bool:
        return self.store.select(mechanism)

    # ======================
    # Recomputation
    # ======================

    def _context(self, inputs: TransferInputs) -> TransferContext:
        relationship = self.registry.classify(inputs.source_chain_id, inputs.destination_chain_id)
        return TransferContext.from_relationship(relationship, inputs.token)

    def recompute(self) -> RouteSelectionState:
        """Rebuild the store from the current inputs and readings."""
        inputs = self._inputs
        if inputs is None:
            return self.state

        context = self._context(inputs)
        amount = parse_amount(inputs.amount)
        has_modified_settings = inputs.aggregator_settings.is_modified

        if amount <= 0:
            self._drop_quote()
            return self.store.recompute(
                [],
                [],
                input_key=inputs,
                has_modified_settings=has_modified_settings,
            )

        self._ensure_oft_lookup(context)

        eligible = get_eligible_mechanisms(
            amount,
            is_deposit_mode=context.is_deposit_mode,
            is_oft_v2_transfer=is_oft_v2_transfer(context, self.oft_cache),
            is_cctp_transfer=is_cctp_transfer(context, self.cctp_config),
            is_aggregator_transfer=is_aggregator_transfer(
                context, self.settings, self.registry
            ),
            is_canonical_transfer=is_canonical_transfer(
                context, self.canonical_config, self.registry
            ),
        )

        quote: Optional[QuoteState] = None
        if MechanismId.AGGREGATOR in eligible:
            quote = self._ensure_quote(build_quote_key(inputs, amount, self.registry))
        else:
            self._drop_quote()

        aggregator_only = eligible == [MechanismId.AGGREGATOR]
        error = None
        if quote is not None and quote.error is not None and aggregator_only:
            error = f"Routes failed to load: {quote.error}"

        has_low_liquidity = (
            aggregator_only
            and quote is not None
            and not quote.is_loading
            and quote.error is None
            and not quote.routes
        )

        records = build_route_records(
            eligible,
            context,
            amount,
            self._gas_summary,
            aggregator_routes=quote.routes if quote else None,
            oft_fee=self._oft_fee,
            registry=self.registry,
        )

        state = self.store.recompute(
            eligible,
            records,
            input_key=inputs,
            is_loading=quote is not None and quote.is_loading,
            error=error,
            has_low_liquidity=has_low_liquidity,
            has_modified_settings=has_modified_settings,
        )
        logger.debug(
            f"Routes v{state.version}: eligible=[{describe_eligibility(eligible) or ''}] "
            f"status={state.status.value} selected={state.selected_variant or state.selected}"
        )
        return state

    # ======================
    # OFT allow-list
    # ======================

    def _ensure_oft_lookup(self, context: TransferContext) -> None:
        key = oft_cache_key(context)
        if key is None or self.oft_cache.peek(key) is not None or key in self._oft_tasks:
            return
        self._oft_tasks[key] = asyncio.ensure_future(self._resolve_oft(key))

    async def _resolve_oft(self, key: OftCacheKey) -> None:
        try:
            await self.oft_cache.resolve(key)
        finally:
            self._oft_tasks.pop(key, None)

        current = self._current_oft_key()
        if current != key:
            logger.debug(f"Discarding stale OFT lookup for {key}")
            return
        self.recompute()

    def _current_oft_key(self) -> Optional[OftCacheKey]:
        if self._inputs is None:
            return None
        return oft_cache_key(self._context(self._inputs))

    # ======================
    # Aggregator quotes
    # ======================

    def _ensure_quote(self, key: QuoteKey) -> QuoteState:
        if self._quote is not None and self._quote.key == key:
            return self._quote

        self._drop_quote()
        quote = QuoteState(key=key)
        quote.task = asyncio.ensure_future(self._fetch_quote(quote))
        self._quote = quote
        return quote

    def _drop_quote(self) -> None:
        if self._quote is None:
            return
        task = self._quote.task
        if task is not None and not task.done():
            task.cancel()
        self._quote = None

    async def _fetch_quote(self, quote: QuoteState) -> None:
        try:
            response = await self.quote_fetcher.fetch_response(quote.key)
        except Exception as e:
            logger.error(f"{self.quote_fetcher.name} quote error: {type(e).__name__}: {e}")
            response = AggregatorRoutesResponse(message=str(e) or type(e).__name__)

        if self._quote is not quote:
            logger.debug(f"Discarding stale quote for amount {quote.key.from_amount}")
            return

        if response.data is None:
            logger.warning(f"Aggregator quote failed: {response.message}")
            quote.error = response.message or "Unknown error"
        else:
            quote.routes = response.data
        self.recompute()

    # ======================
    # Lifecycle
    # ======================

    def _pending_tasks(self) -> list[asyncio.Task]:
        tasks = list(self._oft_tasks.values())
        if self._quote is not None and self._quote.task is not None:
            tasks.append(self._quote.task)
        return [task for task in tasks if not task.done()]

    async def wait_idle(self) -> RouteSelectionState:
        """Wait until debounced input, OFT lookups and quotes have settled."""
        while True:
            if self._amount_debouncer.is_pending:
                await self._amount_debouncer.wait()
                continue
            tasks = self._pending_tasks()
            if not tasks:
                return self.state
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel everything in flight."""
        self._amount_debouncer.cancel()
        self._drop_quote()
        for task in list(self._oft_tasks.values()):
            task.cancel()
        self._oft_tasks.clear()
