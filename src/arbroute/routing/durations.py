"""Expected transfer durations per mechanism (milliseconds)."""

from typing import Optional

from arbroute.chains import ChainRegistry, get_chain_registry

MINUTE_MS = 60 * 1000

STANDARD_DEPOSIT_MINUTES = 15
STANDARD_DEPOSIT_MINUTES_TESTNET = 10
ORBIT_DEPOSIT_MINUTES = 5
ORBIT_DEPOSIT_MINUTES_TESTNET = 1
CCTP_MINUTES = 15
CCTP_MINUTES_TESTNET = 1
OFT_V2_MINUTES = 5

# Extra time on top of the challenge period before a withdrawal can be claimed
WITHDRAWAL_BUFFER_MINUTES = 60


def get_standard_deposit_duration(is_testnet: bool) -> int:
    minutes = STANDARD_DEPOSIT_MINUTES_TESTNET if is_testnet else STANDARD_DEPOSIT_MINUTES
    return minutes * MINUTE_MS


def get_orbit_deposit_duration(is_testnet: bool) -> int:
    minutes = ORBIT_DEPOSIT_MINUTES_TESTNET if is_testnet else ORBIT_DEPOSIT_MINUTES
    return minutes * MINUTE_MS


def get_cctp_transfer_duration(is_testnet: bool) -> int:
    minutes = CCTP_MINUTES_TESTNET if is_testnet else CCTP_MINUTES
    return minutes * MINUTE_MS


def get_oft_v2_transfer_duration() -> int:
    return OFT_V2_MINUTES * MINUTE_MS


def get_withdrawal_duration(child_chain_id: int, registry: Optional[ChainRegistry] = None) -> int:
    """Challenge period of the child chain, measured in base chain blocks."""
    registry = registry or get_chain_registry()
    child = registry.require(child_chain_id)
    base_chain = registry.require(registry.base_chain_id(child_chain_id))
    seconds = base_chain.block_time_seconds * child.confirm_period_blocks
    return int(seconds * 1000) + WITHDRAWAL_BUFFER_MINUTES * MINUTE_MS


def get_canonical_transfer_duration(
    source_chain_id: int,
    destination_chain_id: int,
    is_deposit_mode: bool,
    is_teleport_mode: bool,
    registry: Optional[ChainRegistry] = None,
) -> int:
    """Duration of a transfer through the canonical bridge."""
    registry = registry or get_chain_registry()
    is_testnet = registry.is_testnet(source_chain_id)

    if is_teleport_mode:
        return get_standard_deposit_duration(is_testnet) + get_orbit_deposit_duration(
            is_testnet
        )

    if is_deposit_mode:
        destination = registry.require(destination_chain_id)
        if destination.is_orbit_chain:
            return get_orbit_deposit_duration(is_testnet)
        return get_standard_deposit_duration(is_testnet)

    return get_withdrawal_duration(source_chain_id, registry)
