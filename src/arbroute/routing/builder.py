"""Route records for every eligible mechanism, plus comparison tags."""

import logging
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from arbroute.chains import ETHER, ChainRegistry, TokenRef, get_chain_registry
from arbroute.contracts.lifi import AggregatorRoute, LifiToken, Order
from arbroute.routing import canonical, cctp, oft
from arbroute.routing.base import (
    BridgeFee,
    GasCostEntry,
    MechanismId,
    RouteRecord,
    Tag,
    TransferContext,
)
from arbroute.routing.durations import (
    get_canonical_transfer_duration,
    get_cctp_transfer_duration,
    get_oft_v2_transfer_duration,
)
from arbroute.routing.gas import (
    GasCostResult,
    GasEstimationStatus,
    GasSummary,
    get_gas_cost_from_summary,
)

logger = logging.getLogger(__name__)

RECORD_ORDER: tuple[MechanismId, ...] = (
    MechanismId.OFT_V2,
    MechanismId.CCTP,
    MechanismId.AGGREGATOR,
    MechanismId.AGGREGATOR_CHEAPEST,
    MechanismId.AGGREGATOR_FASTEST,
    MechanismId.CANONICAL,
)


def _lifi_token_ref(token: LifiToken) -> TokenRef:
    return TokenRef(
        symbol=token.symbol,
        decimals=token.decimals,
        address=token.address,
        name=token.name or token.symbol,
    )


def _received_token(context: TransferContext, registry: ChainRegistry) -> TokenRef:
    if context.token is None:
        return registry.native_currency(context.source_chain_id).as_token()
    token = context.token.as_token()
    destination_address = context.token.destination_address(context.is_deposit_mode)
    if destination_address:
        token = replace(token, address=destination_address)
    return token


def _gas_fields(gas: GasCostResult) -> dict:
    return {"gas_cost": gas.gas_cost, "is_loading_gas": gas.is_loading, "error": gas.error}


def build_canonical_record(
    context: TransferContext,
    amount: Decimal,
    gas: GasCostResult,
    registry: ChainRegistry,
) -> RouteRecord:
    return RouteRecord(
        mechanism=MechanismId.CANONICAL,
        counterparty_name=canonical.COUNTERPARTY_NAME,
        icon_ref=canonical.ICON_REF,
        duration_ms=get_canonical_transfer_duration(
            context.source_chain_id,
            context.destination_chain_id,
            context.is_deposit_mode,
            context.is_teleport_mode,
            registry,
        ),
        amount_received=amount,
        received_token=_received_token(context, registry),
        **_gas_fields(gas),
    )


def build_cctp_record(
    context: TransferContext,
    amount: Decimal,
    gas: GasCostResult,
    registry: ChainRegistry,
) -> RouteRecord:
    return RouteRecord(
        mechanism=MechanismId.CCTP,
        counterparty_name=cctp.COUNTERPARTY_NAME,
        icon_ref=cctp.ICON_REF,
        duration_ms=get_cctp_transfer_duration(registry.is_testnet(context.source_chain_id)),
        amount_received=amount,
        received_token=_received_token(context, registry),
        **_gas_fields(gas),
    )


def build_oft_v2_record(
    context: TransferContext,
    amount: Decimal,
    gas_summary: GasSummary,
    registry: ChainRegistry,
    oft_fee: Optional[Decimal] = None,
) -> RouteRecord:
    """OFT transfers pay gas on the source chain only, always in ETH."""
    if gas_summary.status in (GasEstimationStatus.ERROR, GasEstimationStatus.UNAVAILABLE):
        gas = GasCostResult(
            is_loading=False,
            error=gas_summary.error or f"Gas estimation {gas_summary.status.value}",
        )
    else:
        fee = (
            gas_summary.estimated_parent_chain_gas_fees
            if context.is_deposit_mode
            else gas_summary.estimated_child_chain_gas_fees
        )
        if gas_summary.status == GasEstimationStatus.LOADING or fee is None:
            gas = GasCostResult(is_loading=True)
        else:
            gas = GasCostResult(
                is_loading=False,
                gas_cost=(GasCostEntry(amount=Decimal(fee), token=ETHER.as_token()),),
            )

    bridge_fee = None
    if oft_fee is not None:
        bridge_fee = BridgeFee(amount=oft_fee, token=ETHER.as_token())

    return RouteRecord(
        mechanism=MechanismId.OFT_V2,
        counterparty_name=oft.COUNTERPARTY_NAME,
        icon_ref=oft.ICON_REF,
        duration_ms=get_oft_v2_transfer_duration(),
        amount_received=amount,
        bridge_fee=bridge_fee,
        received_token=_received_token(context, registry),
        **_gas_fields(gas),
    )


def build_aggregator_record(route: AggregatorRoute, mechanism: MechanismId) -> RouteRecord:
    """Aggregator fields are displayed as the service quoted them."""
    bridge_fee = None
    if route.fee.amount > 0:
        bridge_fee = BridgeFee(amount=route.fee.value, token=_lifi_token_ref(route.fee.token))

    return RouteRecord(
        mechanism=mechanism,
        counterparty_name=route.tool.name,
        icon_ref=route.tool.logo_uri or "",
        duration_ms=route.duration_ms,
        amount_received=route.to_amount.value,
        gas_cost=(GasCostEntry(amount=route.gas.value, token=_lifi_token_ref(route.gas.token)),),
        bridge_fee=bridge_fee,
        received_token=_lifi_token_ref(route.to_amount.token),
    )


def build_aggregator_records(routes: list[AggregatorRoute]) -> list[RouteRecord]:
    """One plain record for a single candidate, otherwise cheapest and fastest."""
    if not routes:
        return []

    if len(routes) == 1:
        return [build_aggregator_record(routes[0], MechanismId.AGGREGATOR)]

    records: dict[MechanismId, RouteRecord] = {}
    for route in routes:
        if route.is_cheapest:
            mechanism = MechanismId.AGGREGATOR_CHEAPEST
        else:
            mechanism = MechanismId.AGGREGATOR_FASTEST
        if mechanism in records:
            logger.debug(f"Ignoring extra aggregator route from {route.tool.name}")
            continue
        records[mechanism] = build_aggregator_record(route, mechanism)

    if len(records) == 1:
        (record,) = records.values()
        return [replace(record, mechanism=MechanismId.AGGREGATOR)]
    return [records[MechanismId.AGGREGATOR_CHEAPEST], records[MechanismId.AGGREGATOR_FASTEST]]


def assign_tags(
    records: list[RouteRecord],
    eligible: list[MechanismId],
    aggregator_routes: Optional[list[AggregatorRoute]] = None,
) -> list[RouteRecord]:
    """Attach comparison tags.

    The canonical bridge always carries the security badge and CCTP the best
    deal. Aggregator routes are the best deal only when CCTP is not eligible.
    """
    cctp_eligible = MechanismId.CCTP in eligible
    # A plain aggregator record stands for every candidate it collapsed
    orders = {order for route in aggregator_routes or [] for order in route.orders}

    tagged = []
    for record in records:
        tags: tuple[Tag, ...] = ()
        if record.mechanism == MechanismId.CANONICAL:
            tags = (Tag.SECURITY_GUARANTEED,)
        elif record.mechanism == MechanismId.CCTP:
            tags = (Tag.BEST_DEAL,)
        elif record.mechanism == MechanismId.AGGREGATOR_CHEAPEST:
            tags = () if cctp_eligible else (Tag.BEST_DEAL,)
        elif record.mechanism == MechanismId.AGGREGATOR_FASTEST:
            tags = (Tag.FASTEST,)
        elif record.mechanism == MechanismId.AGGREGATOR:
            if Order.CHEAPEST in orders and not cctp_eligible:
                tags += (Tag.BEST_DEAL,)
            if Order.FASTEST in orders:
                tags += (Tag.FASTEST,)
        tagged.append(replace(record, tags=tags))
    return tagged


def build_route_records(
    eligible: list[MechanismId],
    context: TransferContext,
    amount: Decimal,
    gas_summary: GasSummary,
    aggregator_routes: Optional[list[AggregatorRoute]] = None,
    oft_fee: Optional[Decimal] = None,
    registry: Optional[ChainRegistry] = None,
) -> list[RouteRecord]:
    """Build tagged records for the eligible mechanisms, in display order."""
    registry = registry or get_chain_registry()
    aggregator_routes = aggregator_routes or []

    gas = get_gas_cost_from_summary(
        gas_summary,
        registry.native_currency(context.child_chain_id),
        registry.native_currency(context.parent_chain_id),
        context.is_deposit_mode,
        context.token,
    )

    records: list[RouteRecord] = []
    if MechanismId.OFT_V2 in eligible:
        records.append(build_oft_v2_record(context, amount, gas_summary, registry, oft_fee))
    if MechanismId.CCTP in eligible:
        records.append(build_cctp_record(context, amount, gas, registry))
    if MechanismId.AGGREGATOR in eligible:
        records.extend(build_aggregator_records(aggregator_routes))
    if MechanismId.CANONICAL in eligible:
        records.append(build_canonical_record(context, amount, gas, registry))

    records.sort(key=lambda record: RECORD_ORDER.index(record.mechanism))
    return assign_tags(records, eligible, aggregator_routes)
