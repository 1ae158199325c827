"""LI.FI routes API contracts.

Wire models mirror the `/advanced/routes` response of the LI.FI API
(https://docs.li.fi/api-reference/advanced/get-a-set-of-routes-for-a-request-that-describes-a-transfer-of-tokens).
Only the fields the route builder needs are declared; everything else the
service sends is ignored.
"""

from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from arbroute.chains import ADDRESS_ZERO


class Order(str, Enum):
    """Route ordering tags assigned by the aggregator."""

    CHEAPEST = "CHEAPEST"
    FASTEST = "FASTEST"


class LifiModel(BaseModel):
    """Base for wire models: camelCase on the wire, unknown fields ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# ======================
# Wire models
# ======================


class LifiToken(LifiModel):
    address: str = Field(..., description="Token address (zero address for native)")
    chain_id: int = Field(..., alias="chainId")
    symbol: str
    decimals: int
    name: Optional[str] = None
    logo_uri: Optional[str] = Field(None, alias="logoURI")
    price_usd: Optional[str] = Field(None, alias="priceUSD")


class LifiGasCost(LifiModel):
    type: Optional[str] = None
    estimate: str = Field(..., description="Gas cost in the token's base units")
    amount_usd: Optional[str] = Field(None, alias="amountUSD")
    token: LifiToken


class LifiFeeCost(LifiModel):
    name: Optional[str] = None
    amount: str = Field(..., description="Fee in the token's base units")
    amount_usd: Optional[str] = Field(None, alias="amountUSD")
    included: bool = Field(
        default=False, description="Fee already deducted from the received amount"
    )
    token: LifiToken


class LifiToolDetails(LifiModel):
    key: str
    name: str
    logo_uri: Optional[str] = Field(None, alias="logoURI")


class LifiAction(LifiModel):
    from_token: LifiToken = Field(..., alias="fromToken")
    to_token: LifiToken = Field(..., alias="toToken")
    from_amount: str = Field(..., alias="fromAmount")
    from_chain_id: int = Field(..., alias="fromChainId")
    to_chain_id: int = Field(..., alias="toChainId")


class LifiEstimate(LifiModel):
    to_amount: str = Field(..., alias="toAmount")
    to_amount_min: Optional[str] = Field(None, alias="toAmountMin")
    from_amount_usd: Optional[str] = Field(None, alias="fromAmountUSD")
    to_amount_usd: Optional[str] = Field(None, alias="toAmountUSD")
    execution_duration: float = Field(
        ..., alias="executionDuration", description="Expected duration in seconds"
    )
    approval_address: Optional[str] = Field(None, alias="approvalAddress")
    gas_costs: list[LifiGasCost] = Field(default_factory=list, alias="gasCosts")
    fee_costs: list[LifiFeeCost] = Field(default_factory=list, alias="feeCosts")


class LifiStep(LifiModel):
    id: Optional[str] = None
    type: Optional[str] = None
    tool: str
    tool_details: LifiToolDetails = Field(..., alias="toolDetails")
    action: LifiAction
    estimate: LifiEstimate


class LifiRoute(LifiModel):
    id: Optional[str] = None
    from_amount: str = Field(..., alias="fromAmount")
    to_amount: str = Field(..., alias="toAmount")
    steps: list[LifiStep] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)


class LifiRoutesResponse(LifiModel):
    routes: list[LifiRoute] = Field(default_factory=list)


class LifiErrorResponse(LifiModel):
    message: str = "Something went wrong"
    code: Optional[int] = None


# ======================
# Normalized routes
# ======================


class CostAmount(BaseModel):
    """An amount in base units with its token."""

    amount: int = Field(..., ge=0, description="Amount in base units")
    amount_usd: Decimal = Field(default=Decimal("0"), description="USD value")
    token: LifiToken

    @property
    def value(self) -> Decimal:
        """Amount in human-readable units."""
        return Decimal(self.amount).scaleb(-self.token.decimals)


class AggregatorRoute(BaseModel):
    """A single-step aggregator route reduced to what the builder displays."""

    tool: LifiToolDetails
    duration_ms: int = Field(..., ge=0)
    gas: CostAmount
    fee: CostAmount
    from_amount: CostAmount
    to_amount: CostAmount
    from_chain_id: int
    to_chain_id: int
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    spender_address: Optional[str] = None
    orders: list[Order] = Field(default_factory=list)
    step: Optional[LifiStep] = Field(
        None, description="Original step, needed later to build the transaction"
    )

    @property
    def is_cheapest(self) -> bool:
        return Order.CHEAPEST in self.orders

    @property
    def is_fastest(self) -> bool:
        return Order.FASTEST in self.orders


class AggregatorRoutesResponse(BaseModel):
    """`{data: [...]}` on success, `{message, data: None}` on failure."""

    message: Optional[str] = None
    data: Optional[list[AggregatorRoute]] = None


# ======================
# Request side
# ======================


class AggregatorSettings(BaseModel):
    """User-facing aggregator options."""

    model_config = ConfigDict(frozen=True)

    slippage: Decimal = Field(
        default=Decimal("0.5"), description="Slippage tolerance in percent"
    )
    disabled_bridges: tuple[str, ...] = Field(default_factory=tuple)
    disabled_exchanges: tuple[str, ...] = Field(default_factory=tuple)

    @field_validator("slippage")
    @classmethod
    def validate_slippage(cls, value: Decimal) -> Decimal:
        if not value.is_finite() or value <= 0 or value > 100:
            raise ValueError("Slippage is invalid")
        return value

    @property
    def is_modified(self) -> bool:
        """True when the user moved away from the defaults."""
        return (
            self.slippage != Decimal("0.5")
            or len(self.disabled_bridges) > 0
            or len(self.disabled_exchanges) > 0
        )


class QuoteKey(BaseModel):
    """Everything a quote depends on; a new key supersedes older fetches."""

    model_config = ConfigDict(frozen=True)

    from_amount: int = Field(..., ge=0, description="Amount in base units")
    from_token: str = ADDRESS_ZERO
    to_token: str = ADDRESS_ZERO
    from_chain_id: int
    to_chain_id: int
    from_address: Optional[str] = None
    to_address: Optional[str] = None
    deny_bridges: tuple[str, ...] = Field(default_factory=tuple)
    deny_exchanges: tuple[str, ...] = Field(default_factory=tuple)
    slippage: Decimal = Decimal("0.5")
    order: Order = Field(default=Order.CHEAPEST, description="Sort hint for the service")
