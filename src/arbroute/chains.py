"""Chain registry and chain-pair classification.

Covers Ethereum and its testnets, the Arbitrum L2s, a few Orbit L3s (some of
which pay gas in a custom ERC-20) and Base, which only takes part in
aggregator corridors.

A parent/child relationship is what the canonical bridge can move value
across. Pairs that are not related that way are classified as UNRELATED and
can only be served by third-party mechanisms.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Iterable, Optional, Union

from arbroute.errors import ChainConfigError, UnknownChainError

logger = logging.getLogger(__name__)

ADDRESS_ZERO = "0x0000000000000000000000000000000000000000"


class ChainId(IntEnum):
    """Chain ids known to the engine."""

    ETHEREUM = 1
    SEPOLIA = 11155111
    BASE = 8453
    ARBITRUM_ONE = 42161
    ARBITRUM_NOVA = 42170
    ARBITRUM_SEPOLIA = 421614
    APECHAIN = 33139
    SUPERPOSITION = 55244
    RARI = 1380012617
    XAI = 660279


@dataclass(frozen=True)
class TokenRef:
    """The token a cost or amount is denominated in."""

    symbol: str
    decimals: int
    address: str = ADDRESS_ZERO
    name: Optional[str] = None


@dataclass(frozen=True)
class Native:
    """Chain pays gas in the chain-family default asset (ETH)."""

    symbol: str = "ETH"
    decimals: int = 18
    name: str = "Ether"

    @property
    def is_custom(self) -> bool:
        return False

    def as_token(self) -> TokenRef:
        return TokenRef(symbol=self.symbol, decimals=self.decimals, name=self.name)


@dataclass(frozen=True)
class CustomGasToken:
    """Chain pays gas in an ERC-20 living on its parent chain."""

    symbol: str
    decimals: int
    address: str
    name: Optional[str] = None

    @property
    def is_custom(self) -> bool:
        return True

    def as_token(self) -> TokenRef:
        return TokenRef(
            symbol=self.symbol,
            decimals=self.decimals,
            address=self.address,
            name=self.name or self.symbol,
        )


NativeCurrency = Union[Native, CustomGasToken]

ETHER = Native()


@dataclass(frozen=True)
class ChainConfig:
    """Static configuration for a chain."""

    chain_id: int
    name: str
    native_currency: NativeCurrency
    parent_chain_id: Optional[int] = None
    is_testnet: bool = False
    is_arbitrum: bool = False
    block_time_seconds: float = 12.0
    confirm_period_blocks: int = 0

    @property
    def is_orbit_chain(self) -> bool:
        """L3 settling to an Arbitrum chain."""
        return self.is_arbitrum and self.parent_chain_id is not None and self.parent_chain_id not in (
            ChainId.ETHEREUM,
            ChainId.SEPOLIA,
        )


class RelationshipKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"
    TELEPORT = "teleport"
    UNRELATED = "unrelated"


@dataclass(frozen=True)
class ChainRelationship:
    """How a source/destination pair relates."""

    kind: RelationshipKind
    source_chain_id: int
    destination_chain_id: int
    parent_chain_id: int
    child_chain_id: int

    @property
    def is_deposit_mode(self) -> bool:
        return self.parent_chain_id == self.source_chain_id

    @property
    def is_teleport_mode(self) -> bool:
        return self.kind == RelationshipKind.TELEPORT

    @property
    def has_canonical_path(self) -> bool:
        return self.kind != RelationshipKind.UNRELATED


DEFAULT_CHAINS: tuple[ChainConfig, ...] = (
    ChainConfig(chain_id=ChainId.ETHEREUM, name="Ethereum", native_currency=ETHER),
    ChainConfig(
        chain_id=ChainId.SEPOLIA, name="Sepolia", native_currency=ETHER, is_testnet=True
    ),
    ChainConfig(
        chain_id=ChainId.BASE, name="Base", native_currency=ETHER, block_time_seconds=2.0
    ),
    ChainConfig(
        chain_id=ChainId.ARBITRUM_ONE,
        name="Arbitrum One",
        native_currency=ETHER,
        parent_chain_id=ChainId.ETHEREUM,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
    ChainConfig(
        chain_id=ChainId.ARBITRUM_NOVA,
        name="Arbitrum Nova",
        native_currency=ETHER,
        parent_chain_id=ChainId.ETHEREUM,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
    ChainConfig(
        chain_id=ChainId.ARBITRUM_SEPOLIA,
        name="Arbitrum Sepolia",
        native_currency=ETHER,
        parent_chain_id=ChainId.SEPOLIA,
        is_testnet=True,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=20,
    ),
    ChainConfig(
        chain_id=ChainId.APECHAIN,
        name="ApeChain",
        native_currency=CustomGasToken(
            symbol="APE",
            decimals=18,
            address="0x7f9FBf9bDd3F4105C478b996B648FE6e828a1e98",
            name="ApeCoin",
        ),
        parent_chain_id=ChainId.ARBITRUM_ONE,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
    ChainConfig(
        chain_id=ChainId.SUPERPOSITION,
        name="Superposition",
        native_currency=ETHER,
        parent_chain_id=ChainId.ARBITRUM_ONE,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
    ChainConfig(
        chain_id=ChainId.RARI,
        name="RARI Mainnet",
        native_currency=ETHER,
        parent_chain_id=ChainId.ARBITRUM_ONE,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
    ChainConfig(
        chain_id=ChainId.XAI,
        name="Xai",
        native_currency=CustomGasToken(
            symbol="XAI",
            decimals=18,
            address="0x4Cb9a7AE498CEDcBb5EAe9f25736aE7d428C9D66",
            name="Xai",
        ),
        parent_chain_id=ChainId.ARBITRUM_ONE,
        is_arbitrum=True,
        block_time_seconds=0.25,
        confirm_period_blocks=45818,
    ),
)


@dataclass
class ChainRegistry:
    """Validated lookup table of chain configurations.

    Raises:
        ChainConfigError: on duplicate ids, missing native currency metadata,
            non-positive decimals or dangling parent references.
    """

    chains: Iterable[ChainConfig] = DEFAULT_CHAINS
    _by_id: dict[int, ChainConfig] = field(init=False, default_factory=dict)

    def __post_init__(self):
        for chain in self.chains:
            if chain.chain_id in self._by_id:
                raise ChainConfigError(f"Duplicate chain id {chain.chain_id}")
            if chain.native_currency is None:
                raise ChainConfigError(f"Chain {chain.name} has no native currency")
            if chain.native_currency.decimals <= 0:
                raise ChainConfigError(
                    f"Chain {chain.name} native currency has invalid decimals "
                    f"({chain.native_currency.decimals})"
                )
            self._by_id[chain.chain_id] = chain

        for chain in self._by_id.values():
            if chain.parent_chain_id is not None and chain.parent_chain_id not in self._by_id:
                raise ChainConfigError(
                    f"Chain {chain.name} references unknown parent {chain.parent_chain_id}"
                )
            if chain.is_arbitrum and chain.parent_chain_id is None:
                raise ChainConfigError(f"Arbitrum chain {chain.name} has no parent chain")

        logger.debug(f"Chain registry loaded with {len(self._by_id)} chains")

    def __contains__(self, chain_id: int) -> bool:
        return chain_id in self._by_id

    def get(self, chain_id: int) -> Optional[ChainConfig]:
        return self._by_id.get(chain_id)

    def require(self, chain_id: int) -> ChainConfig:
        """Get a chain or raise UnknownChainError."""
        chain = self._by_id.get(chain_id)
        if chain is None:
            raise UnknownChainError(chain_id)
        return chain

    def native_currency(self, chain_id: int) -> NativeCurrency:
        return self.require(chain_id).native_currency

    def base_chain_id(self, chain_id: int) -> int:
        """Walk up the parent chain until reaching an L1."""
        chain = self.require(chain_id)
        while chain.parent_chain_id is not None:
            chain = self.require(chain.parent_chain_id)
        return chain.chain_id

    def is_testnet(self, chain_id: int) -> bool:
        chain = self.get(chain_id)
        return bool(chain and chain.is_testnet)

    def classify(self, source_chain_id: int, destination_chain_id: int) -> ChainRelationship:
        """Classify a source/destination pair.

        Deposits go parent -> child, withdrawals child -> parent and teleports
        hop from an L1 through an L2 into an L3. Anything else is UNRELATED:
        deposit mode is assumed when the source is not an Arbitrum chain.
        """
        source = self.require(source_chain_id)
        destination = self.require(destination_chain_id)

        if destination.parent_chain_id == source.chain_id:
            return ChainRelationship(
                kind=RelationshipKind.DEPOSIT,
                source_chain_id=source.chain_id,
                destination_chain_id=destination.chain_id,
                parent_chain_id=source.chain_id,
                child_chain_id=destination.chain_id,
            )

        if source.parent_chain_id == destination.chain_id:
            return ChainRelationship(
                kind=RelationshipKind.WITHDRAWAL,
                source_chain_id=source.chain_id,
                destination_chain_id=destination.chain_id,
                parent_chain_id=destination.chain_id,
                child_chain_id=source.chain_id,
            )

        if (
            not source.is_arbitrum
            and source.parent_chain_id is None
            and destination.parent_chain_id is not None
            and self.require(destination.parent_chain_id).parent_chain_id == source.chain_id
        ):
            return ChainRelationship(
                kind=RelationshipKind.TELEPORT,
                source_chain_id=source.chain_id,
                destination_chain_id=destination.chain_id,
                parent_chain_id=source.chain_id,
                child_chain_id=destination.chain_id,
            )

        is_deposit = not source.is_arbitrum
        return ChainRelationship(
            kind=RelationshipKind.UNRELATED,
            source_chain_id=source.chain_id,
            destination_chain_id=destination.chain_id,
            parent_chain_id=source.chain_id if is_deposit else destination.chain_id,
            child_chain_id=destination.chain_id if is_deposit else source.chain_id,
        )


_default_registry: Optional[ChainRegistry] = None


def get_chain_registry() -> ChainRegistry:
    """Get the shared default registry (validated on first use)."""
    global _default_registry
    if _default_registry is None:
        _default_registry = ChainRegistry()
    return _default_registry
