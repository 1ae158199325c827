"""LayerZero OFT V2 eligibility.

Whether a token can travel as an OFT depends on an allow-list of adapters
(see https://docs.layerzero.network/v2/developers/evm/technical-reference/deployed-contracts).
The allow-list is consulted through an async interface so that it can live
behind a remote service; answers are cached per (token, source, destination)
and anything not yet resolved counts as "not eligible".
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional

from arbroute.chains import ChainId
from arbroute.routing.base import TransferContext
from arbroute.tokens import get_common_address

logger = logging.getLogger(__name__)

COUNTERPARTY_NAME = "LayerZero"
ICON_REF = "/icons/layerzero.svg"


@dataclass(frozen=True)
class OftChainConfig:
    """LayerZero endpoint for a chain and the OFT adapters deployed on it."""

    lz_endpoint_id: int
    endpoint_v2: str
    adapters: dict[str, str] = field(default_factory=dict)  # token address -> adapter


OFT_PROTOCOL_CONFIG: dict[int, OftChainConfig] = {
    ChainId.ETHEREUM: OftChainConfig(
        lz_endpoint_id=30101,
        endpoint_v2="0x1a44076050125825900e736c501f859c50fE728c",
        adapters={
            get_common_address(ChainId.ETHEREUM, "USDT").lower(): (
                "0x6C96dE32CEa08842dcc4058c14d3aaAD7Fa41dee"
            ),
        },
    ),
    ChainId.SEPOLIA: OftChainConfig(
        lz_endpoint_id=40161,
        endpoint_v2="0x6EDCE65403992e310A62460808c4b910D972f10f",
    ),
    ChainId.ARBITRUM_ONE: OftChainConfig(
        lz_endpoint_id=30110,
        endpoint_v2="0x1a44076050125825900e736c501f859c50fE728c",
        adapters={
            get_common_address(ChainId.ARBITRUM_ONE, "USDT").lower(): (
                "0x14E4A1B13bf7F943c8ff7C51fb60FA964A298D92"
            ),
        },
    ),
    ChainId.ARBITRUM_SEPOLIA: OftChainConfig(
        lz_endpoint_id=40231,
        endpoint_v2="0x6EDCE65403992e310A62460808c4b910D972f10f",
    ),
    ChainId.ARBITRUM_NOVA: OftChainConfig(
        lz_endpoint_id=30175,
        endpoint_v2="0x1a44076050125825900e736c501f859c50fE728c",
    ),
}


@dataclass(frozen=True)
class OftTransferConfig:
    """Resolved OFT route: adapter to call and destination endpoint id."""

    source_chain_adapter_address: str
    destination_chain_lz_endpoint_id: int


def get_oft_v2_transfer_config(
    source_chain_id: int,
    destination_chain_id: int,
    source_chain_erc20_address: Optional[str],
    protocol_config: dict[int, OftChainConfig] = OFT_PROTOCOL_CONFIG,
) -> Optional[OftTransferConfig]:
    """Look up the adapter for a token, or None if the pair is not an OFT route."""
    if not source_chain_erc20_address:
        return None

    source = protocol_config.get(source_chain_id)
    destination = protocol_config.get(destination_chain_id)
    if source is None or destination is None:
        return None

    adapter = source.adapters.get(source_chain_erc20_address.lower())
    if adapter is None:
        return None

    return OftTransferConfig(
        source_chain_adapter_address=adapter,
        destination_chain_lz_endpoint_id=destination.lz_endpoint_id,
    )


class OftAllowList(ABC):
    """Source of truth for OFT V2 eligibility."""

    @abstractmethod
    async def is_valid(
        self, token_address: str, source_chain_id: int, destination_chain_id: int
    ) -> bool:
        pass


class StaticOftAllowList(OftAllowList):
    """Allow-list backed by the in-process protocol table."""

    def __init__(self, protocol_config: dict[int, OftChainConfig] = OFT_PROTOCOL_CONFIG):
        self.protocol_config = protocol_config

    async def is_valid(
        self, token_address: str, source_chain_id: int, destination_chain_id: int
    ) -> bool:
        return (
            get_oft_v2_transfer_config(
                source_chain_id,
                destination_chain_id,
                token_address,
                self.protocol_config,
            )
            is not None
        )


OftCacheKey = tuple[str, int, int]


class OftEligibilityCache:
    """Caches allow-list answers per (token address, source, destination).

    `peek` never blocks; `resolve` performs the lookup once per key, sharing
    the in-flight task between concurrent callers.
    """

    def __init__(self, allow_list: Optional[OftAllowList] = None):
        self.allow_list = allow_list or StaticOftAllowList()
        self._results: dict[OftCacheKey, bool] = {}
        self._pending: dict[OftCacheKey, asyncio.Task] = {}

    @staticmethod
    def make_key(
        token_address: str, source_chain_id: int, destination_chain_id: int
    ) -> OftCacheKey:
        return (token_address.lower(), source_chain_id, destination_chain_id)

    def peek(self, key: OftCacheKey) -> Optional[bool]:
        """Cached answer, or None when not resolved yet."""
        return self._results.get(key)

    async def resolve(self, key: OftCacheKey) -> bool:
        """Resolve a key through the allow-list (at most once).

        A failed lookup is cached as "not eligible" so that the transfer falls
        back to the other mechanisms.
        """
        if key in self._results:
            return self._results[key]

        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._lookup(key))
            self._pending[key] = task

        try:
            return await task
        finally:
            self._pending.pop(key, None)

    async def _lookup(self, key: OftCacheKey) -> bool:
        token_address, source_chain_id, destination_chain_id = key
        try:
            result = await self.allow_list.is_valid(
                token_address, source_chain_id, destination_chain_id
            )
        except Exception as e:
            logger.warning(f"OFT allow-list lookup failed for {key}: {type(e).__name__}: {e}")
            result = False
        self._results[key] = bool(result)
        logger.debug(f"OFT eligibility resolved: {key} -> {self._results[key]}")
        return self._results[key]

    def clear(self) -> None:
        self._results.clear()


def oft_cache_key(context: TransferContext) -> Optional[OftCacheKey]:
    """Cache key for a transfer, or None when OFT cannot apply at all."""
    if context.is_teleport_mode:
        return None
    address = context.source_token_address
    if not address:
        return None
    return OftEligibilityCache.make_key(
        address, context.source_chain_id, context.destination_chain_id
    )


def is_oft_v2_transfer(context: TransferContext, cache: OftEligibilityCache) -> bool:
    """Non-blocking OFT V2 check; unresolved lookups are not eligible."""
    key = oft_cache_key(context)
    if key is None:
        return False
    return cache.peek(key) is True
