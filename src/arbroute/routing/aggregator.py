"""Aggregator (LI.FI) corridors, token checks and token overrides."""

import logging
from dataclasses import dataclass
from typing import Optional

from arbroute.chains import (
    ADDRESS_ZERO,
    ETHER,
    ChainId,
    ChainRegistry,
    TokenRef,
    get_chain_registry,
)
from arbroute.config import Settings, get_settings
from arbroute.routing.base import TransferContext
from arbroute.tokens import (
    get_common_address,
    get_usdc_for_chain,
    is_usdc_on_chain,
    is_valid_address,
    is_wrapped_native_on_chain,
    is_zero_address,
)

logger = logging.getLogger(__name__)

# Source chain -> destinations the aggregator is allowed to quote
AGGREGATOR_CORRIDORS: dict[int, frozenset[int]] = {
    ChainId.ETHEREUM: frozenset(
        {ChainId.ARBITRUM_ONE, ChainId.APECHAIN, ChainId.SUPERPOSITION}
    ),
    ChainId.ARBITRUM_ONE: frozenset(
        {ChainId.ETHEREUM, ChainId.APECHAIN, ChainId.SUPERPOSITION}
    ),
    ChainId.APECHAIN: frozenset(
        {ChainId.ETHEREUM, ChainId.ARBITRUM_ONE, ChainId.SUPERPOSITION}
    ),
    ChainId.SUPERPOSITION: frozenset(
        {ChainId.ETHEREUM, ChainId.ARBITRUM_ONE, ChainId.APECHAIN}
    ),
    # Base is only a source
    ChainId.BASE: frozenset(
        {ChainId.ARBITRUM_ONE, ChainId.APECHAIN, ChainId.SUPERPOSITION}
    ),
}


def is_aggregator_corridor(
    source_chain_id: int,
    destination_chain_id: int,
    corridors: dict[int, frozenset[int]] = AGGREGATOR_CORRIDORS,
) -> bool:
    return destination_chain_id in corridors.get(source_chain_id, frozenset())


def is_valid_aggregator_transfer(
    from_token: Optional[str],
    source_chain_id: int,
    destination_chain_id: int,
    registry: Optional[ChainRegistry] = None,
    corridors: dict[int, frozenset[int]] = AGGREGATOR_CORRIDORS,
) -> bool:
    """Check a corridor and source token against what the aggregator quotes.

    Args:
        from_token: source-side token address; None means the source chain's
            native asset, the zero address means ETH (WETH on custom-gas chains)
    """
    if not is_aggregator_corridor(source_chain_id, destination_chain_id, corridors):
        return False

    registry = registry or get_chain_registry()
    source = registry.get(source_chain_id)
    destination = registry.get(destination_chain_id)
    if source is None or destination is None:
        return False

    if from_token is None:
        # Custom gas tokens are never quoted
        return not (source.native_currency.is_custom or destination.native_currency.is_custom)

    if not is_valid_address(from_token):
        return False

    if is_zero_address(from_token):
        return True

    return is_usdc_on_chain(from_token, source_chain_id) or is_wrapped_native_on_chain(
        from_token, source_chain_id
    )


def is_aggregator_transfer(
    context: TransferContext,
    settings: Optional[Settings] = None,
    registry: Optional[ChainRegistry] = None,
    corridors: dict[int, frozenset[int]] = AGGREGATOR_CORRIDORS,
) -> bool:
    """Aggregator eligibility for a transfer (off on testnets and when disabled)."""
    settings = settings or get_settings()
    if not settings.aggregator_enabled:
        return False

    registry = registry or get_chain_registry()
    if registry.is_testnet(context.source_chain_id) or registry.is_testnet(
        context.destination_chain_id
    ):
        return False

    return is_valid_aggregator_transfer(
        context.source_token_address,
        context.source_chain_id,
        context.destination_chain_id,
        registry=registry,
        corridors=corridors,
    )


@dataclass(frozen=True)
class TokenOverride:
    """Tokens actually quoted on each side; None means no override."""

    source: Optional[TokenRef] = None
    destination: Optional[TokenRef] = None

    @property
    def source_address(self) -> str:
        return self.source.address if self.source else ADDRESS_ZERO

    @property
    def destination_address(self) -> str:
        return self.destination.address if self.destination else ADDRESS_ZERO


def _ether_or_weth(chain_id: int) -> TokenRef:
    if chain_id == ChainId.APECHAIN:
        return TokenRef(
            symbol="WETH",
            decimals=18,
            address=get_common_address(ChainId.APECHAIN, "WETH"),
            name="Wrapped Ether",
        )
    return ETHER.as_token()


def is_any_usdc(address: str) -> bool:
    return any(is_usdc_on_chain(address, chain_id) for chain_id in ChainId)


def get_token_override(
    from_token: Optional[str],
    source_chain_id: int,
    destination_chain_id: int,
) -> TokenOverride:
    """Map the selected token to the token addresses quoted on each chain.

    ETH is WETH on ApeChain, and USDC resolves to whichever USDC lives on each
    side (native where issued, USDC.e elsewhere).
    """
    involves_apechain = ChainId.APECHAIN in (source_chain_id, destination_chain_id)

    if from_token is None:
        if involves_apechain:
            # Native APE, nothing to override
            return TokenOverride()
        return TokenOverride(source=ETHER.as_token(), destination=ETHER.as_token())

    if is_zero_address(from_token):
        return TokenOverride(
            source=_ether_or_weth(source_chain_id),
            destination=_ether_or_weth(destination_chain_id),
        )

    if is_any_usdc(from_token):
        return TokenOverride(
            source=get_usdc_for_chain(source_chain_id),
            destination=get_usdc_for_chain(destination_chain_id),
        )

    return TokenOverride()
