"""LI.FI aggregator integration.

Fetches bridge routes from the LI.FI routes API and reduces them to the
cheapest and the fastest single-step route.
API docs: https://docs.li.fi/li.fi-api/li.fi-api/requesting-a-quote
"""

import logging
from decimal import Decimal
from typing import Optional

import httpx
from pydantic import ValidationError

from arbroute.chains import ETHER
from arbroute.contracts.lifi import (
    AggregatorRoute,
    CostAmount,
    LifiErrorResponse,
    LifiFeeCost,
    LifiGasCost,
    LifiRoute,
    LifiRoutesResponse,
    LifiToken,
    Order,
    QuoteKey,
)
from arbroute.errors import QuoteFetchError
from arbroute.routing.base import QuoteFetcher

logger = logging.getLogger(__name__)

LIFI_API_URL = "https://li.quest/v1"
INTEGRATOR_ID = "_arbitrum"


def _ether_token(chain_id: int) -> LifiToken:
    return LifiToken(
        address=ETHER.as_token().address,
        chain_id=chain_id,
        symbol=ETHER.symbol,
        decimals=ETHER.decimals,
        name=ETHER.name,
    )


def _usd(value: Optional[str]) -> Decimal:
    try:
        return Decimal(value) if value else Decimal("0")
    except ArithmeticError:
        return Decimal("0")


def sum_gas_costs(gas_costs: list[LifiGasCost], chain_id: int) -> CostAmount:
    """Total gas across the step, in the first gas entry's token."""
    token = gas_costs[0].token if gas_costs else _ether_token(chain_id)
    return CostAmount(
        amount=sum(int(gas.estimate) for gas in gas_costs),
        amount_usd=sum((_usd(gas.amount_usd) for gas in gas_costs), Decimal("0")),
        token=token,
    )


def sum_fee_costs(fee_costs: list[LifiFeeCost], chain_id: int) -> CostAmount:
    """Total of fees not already deducted from the received amount."""
    token = fee_costs[0].token if fee_costs else _ether_token(chain_id)
    charged = [fee for fee in fee_costs if not fee.included]
    return CostAmount(
        amount=sum(int(fee.amount) for fee in charged),
        amount_usd=sum((_usd(fee.amount_usd) for fee in charged), Decimal("0")),
        token=token,
    )


def parse_lifi_route(
    route: LifiRoute,
    from_address: Optional[str] = None,
    to_address: Optional[str] = None,
) -> AggregatorRoute:
    """Convert a single-step LI.FI route into an AggregatorRoute."""
    step = route.steps[0]
    orders = [order for order in (Order.CHEAPEST, Order.FASTEST) if order.value in route.tags]

    return AggregatorRoute(
        tool=step.tool_details,
        duration_ms=int(step.estimate.execution_duration * 1000),
        gas=sum_gas_costs(step.estimate.gas_costs, step.action.from_chain_id),
        fee=sum_fee_costs(step.estimate.fee_costs, step.action.from_chain_id),
        from_amount=CostAmount(
            amount=int(step.action.from_amount),
            amount_usd=_usd(step.estimate.from_amount_usd),
            token=step.action.from_token,
        ),
        to_amount=CostAmount(
            amount=int(step.estimate.to_amount),
            amount_usd=_usd(step.estimate.to_amount_usd),
            token=step.action.to_token,
        ),
        from_chain_id=step.action.from_chain_id,
        to_chain_id=step.action.to_chain_id,
        from_address=from_address,
        to_address=to_address or from_address,
        spender_address=step.estimate.approval_address,
        orders=orders,
        step=step,
    )


def find_cheapest_route(routes: list[AggregatorRoute]) -> Optional[AggregatorRoute]:
    """Route with the highest received amount (first one wins ties)."""
    if not routes:
        return None
    return max(routes, key=lambda route: route.to_amount.amount)


def find_fastest_route(routes: list[AggregatorRoute]) -> Optional[AggregatorRoute]:
    """Route with the shortest duration (first one wins ties)."""
    if not routes:
        return None
    return min(routes, key=lambda route: route.duration_ms)


def select_tagged_routes(routes: list[AggregatorRoute]) -> list[AggregatorRoute]:
    """Keep only the cheapest and the fastest route.

    The service tags them itself; when filtering dropped a tagged route the
    cheapest and fastest are recomputed from what is left. If one route is
    both, it is returned once carrying both orders.
    """
    tags = [order for route in routes for order in route.orders]
    if Order.CHEAPEST in tags and Order.FASTEST in tags:
        return [route for route in routes if route.orders]

    cheapest = find_cheapest_route(routes)
    fastest = find_fastest_route(routes)

    if cheapest is None or fastest is None:
        return []

    if cheapest is fastest:
        return [cheapest.model_copy(update={"orders": [Order.CHEAPEST, Order.FASTEST]})]

    return [
        cheapest.model_copy(update={"orders": [Order.CHEAPEST]}),
        fastest.model_copy(update={"orders": [Order.FASTEST]}),
    ]


class LifiQuoteClient(QuoteFetcher):
    """LI.FI routes API client.

    Quotes bridge routes across the aggregator corridors. An API key is
    optional; without one the public rate limits apply.
    """

    def __init__(
        self,
        api_url: str = LIFI_API_URL,
        api_key: Optional[str] = None,
        integrator: str = INTEGRATOR_ID,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize LI.FI client.

        Args:
            api_url: LI.FI API base URL
            api_key: LI.FI API key (sent as x-lifi-api-key)
            integrator: Integrator id reported to LI.FI
            timeout: Request timeout in seconds
            client: Shared HTTP client (a new one is opened per request otherwise)
        """
        self.api_url = api_url.rstrip("/")
        self.api_key = api_key
        self.integrator = integrator
        self.timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return "LI.FI"

    def _get_headers(self) -> dict:
        headers = {"Accept": "application/json", "Content-Type": "application/json"}
        if self.api_key:
            headers["x-lifi-api-key"] = self.api_key
        return headers

    def build_request_body(self, key: QuoteKey) -> dict:
        """Routes request for a quote key (slippage converted to a fraction)."""
        options: dict = {
            "integrator": self.integrator,
            "slippage": float(key.slippage / 100),
            "allowSwitchChain": False,
            "allowDestinationCall": False,
            "order": key.order.value,
        }
        if key.deny_bridges:
            options["bridges"] = {"deny": list(key.deny_bridges)}
        if key.deny_exchanges:
            options["exchanges"] = {"deny": list(key.deny_exchanges)}

        body = {
            "fromChainId": key.from_chain_id,
            "toChainId": key.to_chain_id,
            "fromTokenAddress": key.from_token,
            "toTokenAddress": key.to_token,
            "fromAmount": str(key.from_amount),
            "options": options,
        }
        if key.from_address:
            body["fromAddress"] = key.from_address
        if key.to_address or key.from_address:
            body["toAddress"] = key.to_address or key.from_address
        return body

    async def _post(self, client: httpx.AsyncClient, body: dict) -> httpx.Response:
        return await client.post(
            f"{self.api_url}/advanced/routes",
            headers=self._get_headers(),
            json=body,
        )

    async def fetch_routes(self, key: QuoteKey) -> list[AggregatorRoute]:
        """Fetch, filter and tag routes from LI.FI.

        Raises:
            QuoteFetchError: with the service message on any failure
        """
        if key.slippage <= 0 or key.slippage > 100:
            raise QuoteFetchError("Slippage is invalid", status_code=400)

        body = self.build_request_body(key)
        logger.debug(
            f"Requesting LI.FI routes: {key.from_amount} {key.from_token} "
            f"({key.from_chain_id}) -> {key.to_token} ({key.to_chain_id})"
        )

        try:
            if self._client is not None:
                response = await self._post(self._client, body)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await self._post(client, body)
        except httpx.HTTPError as e:
            logger.error(f"LI.FI request error: {type(e).__name__}: {e}")
            raise QuoteFetchError(str(e) or type(e).__name__) from e

        if response.status_code != 200:
            message = self._error_message(response)
            logger.warning(f"LI.FI API error: {response.status_code} - {message}")
            raise QuoteFetchError(message, status_code=response.status_code)

        try:
            parsed = LifiRoutesResponse.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            logger.error(f"Failed to parse LI.FI response: {e}")
            raise QuoteFetchError("Invalid response from LI.FI") from e

        single_step = [
            parse_lifi_route(route, key.from_address, key.to_address)
            for route in parsed.routes
            if len(route.steps) == 1
        ]
        routes = select_tagged_routes(single_step)

        logger.info(
            f"LI.FI returned {len(parsed.routes)} routes, "
            f"{len(single_step)} single-step, {len(routes)} kept"
        )
        return routes

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            return LifiErrorResponse.model_validate(response.json()).message
        except (ValueError, ValidationError):
            return response.text or f"HTTP {response.status_code}"
