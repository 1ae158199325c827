"""Core routing types shared by the eligibility checks, builder and store."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from arbroute.chains import ChainRelationship, TokenRef
from arbroute.contracts.lifi import AggregatorRoute, AggregatorRoutesResponse, QuoteKey
from arbroute.errors import QuoteFetchError
from arbroute.tokens import BridgeToken


class MechanismId(str, Enum):
    """Bridging mechanisms a transfer can be routed through."""

    CANONICAL = "canonical"
    CCTP = "cctp"
    OFT_V2 = "oftV2"
    AGGREGATOR = "aggregator"
    AGGREGATOR_CHEAPEST = "aggregator-cheapest"
    AGGREGATOR_FASTEST = "aggregator-fastest"

    @property
    def base(self) -> "MechanismId":
        """The eligible mechanism a record belongs to."""
        if self in (MechanismId.AGGREGATOR_CHEAPEST, MechanismId.AGGREGATOR_FASTEST):
            return MechanismId.AGGREGATOR
        return self


class Tag(str, Enum):
    """Comparison badges assigned by the route builder."""

    SECURITY_GUARANTEED = "security-guaranteed"
    BEST_DEAL = "best-deal"
    FASTEST = "fastest"


def parse_amount(value: Union[str, int, Decimal, None]) -> Decimal:
    """Parse user amount input; anything unparsable counts as zero."""
    if value is None or value == "":
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return Decimal("0")
    if not amount.is_finite() or amount < 0:
        return Decimal("0")
    return amount


def to_base_units(amount: Decimal, decimals: int) -> int:
    """Convert a human-readable amount to integer base units."""
    quantum = Decimal(1).scaleb(-decimals)
    return int(amount.quantize(quantum, rounding=ROUND_HALF_UP).scaleb(decimals))


def from_base_units(amount: Union[int, str], decimals: int) -> Decimal:
    return Decimal(int(amount)).scaleb(-decimals)


@dataclass(frozen=True)
class TransferContext:
    """Everything an eligibility check looks at."""

    source_chain_id: int
    destination_chain_id: int
    is_deposit_mode: bool
    is_teleport_mode: bool
    parent_chain_id: int
    child_chain_id: int
    token: Optional[BridgeToken] = None
    has_canonical_path: bool = True

    @classmethod
    def from_relationship(
        cls, relationship: ChainRelationship, token: Optional[BridgeToken] = None
    ) -> "TransferContext":
        return cls(
            source_chain_id=relationship.source_chain_id,
            destination_chain_id=relationship.destination_chain_id,
            is_deposit_mode=relationship.is_deposit_mode,
            is_teleport_mode=relationship.is_teleport_mode,
            parent_chain_id=relationship.parent_chain_id,
            child_chain_id=relationship.child_chain_id,
            token=token,
            has_canonical_path=relationship.has_canonical_path,
        )

    @property
    def source_token_address(self) -> Optional[str]:
        """Address of the selected token on the source chain (None = native)."""
        if self.token is None:
            return None
        return self.token.source_address(self.is_deposit_mode)


@dataclass(frozen=True)
class GasCostEntry:
    """Gas paid on one leg, in that leg's gas token."""

    amount: Decimal
    token: TokenRef

    def base_units(self, display_decimals: Optional[int] = None) -> int:
        """Amount in the token's smallest unit.

        When `display_decimals` is given the amount is first rounded to that
        many decimals, matching what is shown to the user.
        """
        amount = self.amount
        if display_decimals is not None:
            amount = amount.quantize(
                Decimal(1).scaleb(-display_decimals), rounding=ROUND_HALF_UP
            )
        return to_base_units(amount, self.token.decimals)


@dataclass(frozen=True)
class BridgeFee:
    """Protocol fee charged on top of gas."""

    amount: Decimal
    token: TokenRef


@dataclass(frozen=True)
class RouteRecord:
    """Display and comparison data for one route."""

    mechanism: MechanismId
    counterparty_name: str
    icon_ref: str
    duration_ms: int
    amount_received: Decimal
    gas_cost: Optional[tuple[GasCostEntry, ...]] = None
    bridge_fee: Optional[BridgeFee] = None
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    received_token: Optional[TokenRef] = None
    is_loading_gas: bool = False
    error: Optional[str] = None

    @property
    def tag(self) -> Union[Tag, tuple[Tag, ...], None]:
        if not self.tags:
            return None
        if len(self.tags) == 1:
            return self.tags[0]
        return self.tags

    @property
    def is_usable(self) -> bool:
        return self.error is None


class QuoteFetcher(ABC):
    """Abstract source of aggregator routes."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Fetcher name identifier."""
        pass

    @abstractmethod
    async def fetch_routes(self, key: QuoteKey) -> list[AggregatorRoute]:
        """
        Fetch the cheapest and fastest routes for a transfer.

        Args:
            key: Everything the quote depends on

        Returns:
            Zero to two routes, each tagged with the orders it satisfies

        Raises:
            QuoteFetchError: on transport, HTTP or parse failure
        """
        pass

    async def fetch_response(self, key: QuoteKey) -> AggregatorRoutesResponse:
        """Fetch routes as `{data}`, or `{message, data: None}` on failure."""
        try:
            routes = await self.fetch_routes(key)
        except QuoteFetchError as e:
            return AggregatorRoutesResponse(message=e.message, data=None)
        return AggregatorRoutesResponse(data=routes)
