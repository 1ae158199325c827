"""Which mechanisms may carry a transfer."""

import logging
from decimal import Decimal
from typing import Optional

from arbroute.routing.base import MechanismId

logger = logging.getLogger(__name__)


def get_eligible_mechanisms(
    amount: Decimal,
    is_deposit_mode: bool,
    is_oft_v2_transfer: bool,
    is_cctp_transfer: bool,
    is_aggregator_transfer: bool,
    is_canonical_transfer: bool,
) -> list[MechanismId]:
    """Combine the per-mechanism checks into an ordered eligible list.

    OFT V2 excludes everything else. Native USDC always offers CCTP, with the
    aggregator alongside and the canonical bridge for deposits only.
    """
    if amount is None or amount <= 0:
        return []

    if is_oft_v2_transfer:
        return [MechanismId.OFT_V2]

    eligible: list[MechanismId] = []

    if is_cctp_transfer:
        eligible.append(MechanismId.CCTP)
        if is_aggregator_transfer:
            eligible.append(MechanismId.AGGREGATOR)
        if is_deposit_mode:
            eligible.append(MechanismId.CANONICAL)
        return eligible

    if is_aggregator_transfer:
        eligible.append(MechanismId.AGGREGATOR)
    if is_canonical_transfer:
        eligible.append(MechanismId.CANONICAL)

    return eligible


def describe_eligibility(eligible: list[MechanismId]) -> Optional[str]:
    """Short log-friendly summary, None when nothing is eligible."""
    if not eligible:
        return None
    return ", ".join(mechanism.value for mechanism in eligible)
