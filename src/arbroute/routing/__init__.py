"""Route resolution for Ethereum <-> Arbitrum transfers.

Mechanisms:
- Canonical: the Arbitrum bridge (deposits, withdrawals, L1 -> L3 teleports)
- CCTP: Circle native USDC burn and mint
- OFT V2: LayerZero omnichain fungible tokens (USDT0)
- Aggregator: LI.FI third-party bridges on selected corridors
"""

from arbroute.routing.base import (
    BridgeFee,
    GasCostEntry,
    MechanismId,
    QuoteFetcher,
    RouteRecord,
    Tag,
    TransferContext,
)
from arbroute.routing.builder import build_route_records
from arbroute.routing.eligibility import get_eligible_mechanisms
from arbroute.routing.factory import create_quote_fetcher
from arbroute.routing.gas import (
    GasCostResult,
    GasEstimationStatus,
    GasSummary,
    get_gas_cost_and_token,
)
from arbroute.routing.pipeline import RoutePipeline, TransferInputs
from arbroute.routing.store import RouteSelectionState, RouteSelectionStore, SelectionStatus

__all__ = [
    # Base types
    "MechanismId",
    "Tag",
    "TransferContext",
    "GasCostEntry",
    "BridgeFee",
    "RouteRecord",
    "QuoteFetcher",
    # Stages
    "get_eligible_mechanisms",
    "get_gas_cost_and_token",
    "GasSummary",
    "GasCostResult",
    "GasEstimationStatus",
    "build_route_records",
    "create_quote_fetcher",
    # Selection
    "RouteSelectionState",
    "RouteSelectionStore",
    "SelectionStatus",
    # Pipeline
    "RoutePipeline",
    "TransferInputs",
]
