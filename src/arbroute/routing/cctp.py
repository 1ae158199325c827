"""Circle CCTP eligibility.

CCTP burns native USDC on the source chain and mints native USDC on the
destination once Circle attests the burn. Bridged USDC (USDC.e) is a different
contract and must never be mistaken for it.
"""

from dataclasses import dataclass, field
from typing import Optional

from arbroute.chains import ChainId
from arbroute.routing.base import TransferContext
from arbroute.tokens import addresses_equal, get_common_address

COUNTERPARTY_NAME = "Circle"
ICON_REF = "/icons/cctp.svg"


@dataclass(frozen=True)
class CctpLane:
    """USDC contract on a source chain and where it may be sent."""

    usdc_address: str
    destination_chain_ids: frozenset[int]


@dataclass(frozen=True)
class CctpConfig:
    """Per-direction CCTP address tables, keyed by source chain id."""

    deposit_lanes: dict[int, CctpLane] = field(default_factory=dict)
    withdrawal_lanes: dict[int, CctpLane] = field(default_factory=dict)

    def lane_for(self, source_chain_id: int, is_deposit_mode: bool) -> Optional[CctpLane]:
        lanes = self.deposit_lanes if is_deposit_mode else self.withdrawal_lanes
        return lanes.get(source_chain_id)


def _lane(chain_id: int, *destinations: int) -> CctpLane:
    address = get_common_address(chain_id, "USDC")
    if address is None:
        raise ValueError(f"No native USDC configured for chain {chain_id}")
    return CctpLane(usdc_address=address, destination_chain_ids=frozenset(destinations))


DEFAULT_CCTP_CONFIG = CctpConfig(
    # Mainnet USDC -> Arbitrum native USDC
    deposit_lanes={
        ChainId.ETHEREUM: _lane(ChainId.ETHEREUM, ChainId.ARBITRUM_ONE),
        ChainId.SEPOLIA: _lane(ChainId.SEPOLIA, ChainId.ARBITRUM_SEPOLIA),
    },
    # Arbitrum native USDC -> mainnet USDC
    withdrawal_lanes={
        ChainId.ARBITRUM_ONE: _lane(ChainId.ARBITRUM_ONE, ChainId.ETHEREUM),
        ChainId.ARBITRUM_SEPOLIA: _lane(ChainId.ARBITRUM_SEPOLIA, ChainId.SEPOLIA),
    },
)


def is_cctp_transfer(
    context: TransferContext,
    config: CctpConfig = DEFAULT_CCTP_CONFIG,
) -> bool:
    """Check whether the selected token can move through CCTP."""
    if context.is_teleport_mode or context.token is None:
        return False

    lane = config.lane_for(context.source_chain_id, context.is_deposit_mode)
    if lane is None:
        return False

    if context.destination_chain_id not in lane.destination_chain_ids:
        return False

    return addresses_equal(context.source_token_address, lane.usdc_address)
