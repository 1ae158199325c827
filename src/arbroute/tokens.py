"""Bridge tokens and well-known token addresses per chain."""

from dataclasses import dataclass
from typing import Optional

from eth_utils import is_address

from arbroute.chains import ADDRESS_ZERO, ChainId, TokenRef

# Token addresses by chain
# Only the assets the route checks care about are listed here
COMMON_ADDRESSES: dict[int, dict[str, str]] = {
    ChainId.ETHEREUM: {
        "USDC": "0xA0b86991c6218b36c1d19D4a2e9Eb0cE3606eB48",
        "USDT": "0xdAC17F958D2ee523a2206206994597C13D831ec7",
        "WETH": "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2",
    },
    ChainId.SEPOLIA: {
        "USDC": "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238",
    },
    ChainId.ARBITRUM_ONE: {
        "USDC": "0xaf88d065e77c8cC2239327C5EDb3A432268e5831",
        "USDC.e": "0xFF970A61A04b1cA14834A43f5dE4533eBDDB5CC8",
        "USDT": "0xFd086bC7CD5C481DCC9C85ebE478A1C0b69FCbb9",
        "WETH": "0x82aF49447D8a07e3bd95BD0d56f35241523fBab1",
    },
    ChainId.ARBITRUM_NOVA: {
        "USDC": "0x750ba8b76187092B0D1E87E28daaf484d1b5273b",
    },
    ChainId.ARBITRUM_SEPOLIA: {
        "USDC": "0x75faf114eafb1BDbe2F0316DF893fd58CE46AA4d",
        "USDC.e": "0x8FB1E3fC51F3b789dED7557E680551d93Ea9d892",
    },
    ChainId.BASE: {
        "USDC": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        "WETH": "0x4200000000000000000000000000000000000006",
    },
    ChainId.APECHAIN: {
        "USDC.e": "0xF1815bd50389c46847f0Bda824eC8da914045D14",
        "WETH": "0xf4D9235269a96aaDaFc9aDAe454a0618eBE37949",
    },
    ChainId.SUPERPOSITION: {
        "USDC.e": "0x6c030c5CC283F791B26816f325b9C632d964F8A1",
    },
}


def get_common_address(chain_id: int, symbol: str) -> Optional[str]:
    """Get a well-known token address on a chain."""
    return COMMON_ADDRESSES.get(chain_id, {}).get(symbol)


def addresses_equal(a: Optional[str], b: Optional[str]) -> bool:
    """Case-insensitive address comparison; None never matches."""
    if not a or not b:
        return False
    return a.lower() == b.lower()


def is_valid_address(value: Optional[str]) -> bool:
    """True for a well-formed 20-byte hex address."""
    if not isinstance(value, str):
        return False
    return is_address(value)


@dataclass(frozen=True)
class BridgeToken:
    """An ERC-20 selected for bridging.

    `address` is the token on the parent chain, `l2_address` on the child
    chain. The native asset of the source chain is represented by "no token"
    (None) rather than by a BridgeToken.
    """

    address: str
    symbol: str
    decimals: int
    name: Optional[str] = None
    l2_address: Optional[str] = None

    def source_address(self, is_deposit_mode: bool) -> Optional[str]:
        """Address of the token on the chain the transfer starts from."""
        return self.address if is_deposit_mode else self.l2_address

    def destination_address(self, is_deposit_mode: bool) -> Optional[str]:
        return self.l2_address if is_deposit_mode else self.address

    def as_token(self) -> TokenRef:
        return TokenRef(
            symbol=self.symbol,
            decimals=self.decimals,
            address=self.address,
            name=self.name or self.symbol,
        )


def _usdc_token_ref(chain_id: int, symbol: str) -> Optional[TokenRef]:
    address = get_common_address(chain_id, symbol)
    if address is None:
        return None
    name = "Bridged USDC" if symbol == "USDC.e" else "USDC"
    return TokenRef(symbol=symbol, decimals=6, address=address, name=name)


def get_usdc_for_chain(chain_id: int) -> Optional[TokenRef]:
    """USDC as it lives on a chain: native where issued, otherwise bridged."""
    return _usdc_token_ref(chain_id, "USDC") or _usdc_token_ref(chain_id, "USDC.e")


def is_usdc_on_chain(address: Optional[str], chain_id: int) -> bool:
    """True for native or bridged USDC on this specific chain."""
    return any(
        addresses_equal(address, get_common_address(chain_id, symbol))
        for symbol in ("USDC", "USDC.e")
    )


def is_wrapped_native_on_chain(address: Optional[str], chain_id: int) -> bool:
    return addresses_equal(address, get_common_address(chain_id, "WETH"))


def is_zero_address(address: Optional[str]) -> bool:
    return addresses_equal(address, ADDRESS_ZERO)
