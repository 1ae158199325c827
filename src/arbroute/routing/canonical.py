"""Eligibility for the chain operator's own (canonical) bridge."""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from arbroute.chains import ChainId, ChainRegistry, get_chain_registry
from arbroute.routing.base import TransferContext
from arbroute.tokens import get_common_address, is_zero_address

logger = logging.getLogger(__name__)

COUNTERPARTY_NAME = "Arbitrum Bridge"
ICON_REF = "/icons/arbitrum.svg"


def _lower_set(addresses: Iterable[Optional[str]]) -> frozenset[str]:
    return frozenset(a.lower() for a in addresses if a)


@dataclass(frozen=True)
class CanonicalConfig:
    """Token restrictions for canonical bridging.

    Attributes:
        disabled_tokens: parent-chain addresses that cannot be bridged at all
        withdraw_only_tokens: parent-chain addresses that may only leave the child chain
        teleport_tokens: parent-chain addresses allowed through L1 -> L3 teleports
        excluded_source_tokens: per child chain, stablecoins that may not be withdrawn
            canonically (native USDC, which leaves via CCTP)
    """

    disabled_tokens: frozenset[str] = field(default_factory=frozenset)
    withdraw_only_tokens: frozenset[str] = field(default_factory=frozenset)
    teleport_tokens: frozenset[str] = field(default_factory=frozenset)
    excluded_source_tokens: dict[int, frozenset[str]] = field(default_factory=dict)

    @classmethod
    def create(
        cls,
        disabled_tokens: Iterable[str] = (),
        withdraw_only_tokens: Iterable[str] = (),
        teleport_tokens: Iterable[str] = (),
        excluded_source_tokens: Optional[dict[int, Iterable[str]]] = None,
    ) -> "CanonicalConfig":
        """Build a config, normalizing addresses to lowercase."""
        if excluded_source_tokens is None:
            excluded_source_tokens = DEFAULT_EXCLUDED_SOURCE_TOKENS
        return cls(
            disabled_tokens=_lower_set(disabled_tokens),
            withdraw_only_tokens=_lower_set(withdraw_only_tokens),
            teleport_tokens=_lower_set(teleport_tokens),
            excluded_source_tokens={
                chain_id: _lower_set(addresses)
                for chain_id, addresses in excluded_source_tokens.items()
            },
        )


DEFAULT_EXCLUDED_SOURCE_TOKENS: dict[int, tuple[Optional[str], ...]] = {
    ChainId.ARBITRUM_ONE: (get_common_address(ChainId.ARBITRUM_ONE, "USDC"),),
    ChainId.ARBITRUM_SEPOLIA: (get_common_address(ChainId.ARBITRUM_SEPOLIA, "USDC"),),
}

DEFAULT_CANONICAL_CONFIG = CanonicalConfig.create(
    disabled_tokens=(
        "0x0ff5A8451A839f5F0BB3562689D9A44089738D11",  # rDPX
    ),
)


def is_canonical_transfer(
    context: TransferContext,
    config: CanonicalConfig = DEFAULT_CANONICAL_CONFIG,
    registry: Optional[ChainRegistry] = None,
) -> bool:
    """Check whether the canonical bridge can carry this transfer."""
    if not context.has_canonical_path:
        return False

    registry = registry or get_chain_registry()
    child = registry.get(context.child_chain_id)
    if child is None or registry.get(context.parent_chain_id) is None:
        return False

    token = context.token
    parent_address = token.address.lower() if token and token.address else None

    if parent_address and parent_address in config.disabled_tokens:
        logger.debug(f"Token {token.symbol} is disabled for canonical bridging")
        return False

    if context.is_teleport_mode:
        # Teleports only reach L3s that pay gas in ETH
        if child.native_currency.is_custom:
            return False
        if token is None:
            return True
        return parent_address in config.teleport_tokens

    if token is None:
        return True

    # Native ETH travels as no token; a zero-address token stands for a wrapped
    # counterpart the gateways do not map
    if is_zero_address(token.address):
        return False

    if context.is_deposit_mode:
        return parent_address not in config.withdraw_only_tokens

    # Withdrawals only from here on

    source_address = context.source_token_address
    excluded = config.excluded_source_tokens.get(context.source_chain_id, frozenset())
    if source_address and source_address.lower() in excluded:
        return False

    return True
