"""Wire and value contracts for the aggregator.

These Pydantic models define what is sent to and received from the LI.FI API
and how its routes are handed to the route builder.
"""

from arbroute.contracts.lifi import (
    AggregatorRoute,
    AggregatorRoutesResponse,
    AggregatorSettings,
    CostAmount,
    LifiRoute,
    LifiRoutesResponse,
    Order,
    QuoteKey,
)

__all__ = [
    # Wire models
    "LifiRoute",
    "LifiRoutesResponse",
    # Normalized routes
    "AggregatorRoute",
    "AggregatorRoutesResponse",
    "CostAmount",
    "Order",
    # Request side
    "AggregatorSettings",
    "QuoteKey",
]
