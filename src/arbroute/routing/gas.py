"""Gas fee normalization across chains with different gas currencies."""

import logging
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from arbroute.chains import NativeCurrency
from arbroute.routing.base import GasCostEntry, from_base_units
from arbroute.tokens import BridgeToken

logger = logging.getLogger(__name__)

NATIVE_DECIMALS = 18


class GasEstimationStatus(str, Enum):
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class GasSummary:
    """Reading handed over by the gas estimation collaborator.

    Fees are in native units of the respective chain; None while unknown.
    """

    status: GasEstimationStatus = GasEstimationStatus.LOADING
    estimated_parent_chain_gas_fees: Optional[Decimal] = None
    estimated_child_chain_gas_fees: Optional[Decimal] = None
    error: Optional[str] = None

    @classmethod
    def success(cls, parent_fees: Decimal, child_fees: Decimal) -> "GasSummary":
        return cls(
            status=GasEstimationStatus.SUCCESS,
            estimated_parent_chain_gas_fees=parent_fees,
            estimated_child_chain_gas_fees=child_fees,
        )

    @classmethod
    def failed(cls, message: str = "Gas estimation failed") -> "GasSummary":
        return cls(status=GasEstimationStatus.ERROR, error=message)


@dataclass(frozen=True)
class GasCostResult:
    is_loading: bool
    gas_cost: Optional[tuple[GasCostEntry, ...]] = None
    error: Optional[str] = None


def calculate_estimated_parent_chain_gas_fees(gas: int, gas_price: int) -> Decimal:
    """Parent chain fee in native units: gas * gas price (wei)."""
    return from_base_units(int(gas) * int(gas_price), NATIVE_DECIMALS)


def calculate_estimated_child_chain_gas_fees(
    gas: int, gas_price: int, submission_cost: int = 0
) -> Decimal:
    """Child chain fee in native units, including the retryable submission cost."""
    return from_base_units(int(gas) * int(gas_price) + int(submission_cost), NATIVE_DECIMALS)


def get_gas_cost_and_token(
    child_chain_native_currency: NativeCurrency,
    parent_chain_native_currency: NativeCurrency,
    is_deposit_mode: bool,
    estimated_parent_chain_gas_fees: Optional[Decimal],
    estimated_child_chain_gas_fees: Optional[Decimal],
    selected_token: Optional[BridgeToken] = None,
    status: Optional[GasEstimationStatus] = None,
    error: Optional[str] = None,
) -> GasCostResult:
    """Express gas costs in the currencies the user actually pays.

    When both chains pay gas in the same kind of currency, a single entry in
    the child chain's currency is returned. Otherwise deposits pay the parent
    fee in the parent currency (plus the retryable's child fee in the child
    currency for ERC-20s) and withdrawals pay the child fee only.
    """
    if status in (GasEstimationStatus.ERROR, GasEstimationStatus.UNAVAILABLE):
        return GasCostResult(
            is_loading=False,
            gas_cost=None,
            error=error or f"Gas estimation {status.value}",
        )

    if (
        status == GasEstimationStatus.LOADING
        or estimated_parent_chain_gas_fees is None
        or estimated_child_chain_gas_fees is None
    ):
        return GasCostResult(is_loading=True)

    parent_fees = Decimal(estimated_parent_chain_gas_fees)
    child_fees = Decimal(estimated_child_chain_gas_fees)
    child_token = child_chain_native_currency.as_token()
    parent_token = parent_chain_native_currency.as_token()

    same_native_currency = (
        child_chain_native_currency.is_custom == parent_chain_native_currency.is_custom
    )
    if same_native_currency:
        return GasCostResult(
            is_loading=False,
            gas_cost=(GasCostEntry(amount=parent_fees + child_fees, token=child_token),),
        )

    if is_deposit_mode:
        entries = [GasCostEntry(amount=parent_fees, token=parent_token)]
        # ERC-20 deposits into a custom gas chain also fund the retryable
        if selected_token is not None:
            entries.append(GasCostEntry(amount=child_fees, token=child_token))
        return GasCostResult(is_loading=False, gas_cost=tuple(entries))

    # TODO: include the parent chain claim fee once withdrawal claims are estimated
    return GasCostResult(
        is_loading=False,
        gas_cost=(GasCostEntry(amount=child_fees, token=child_token),),
    )


def get_gas_cost_from_summary(
    summary: GasSummary,
    child_chain_native_currency: NativeCurrency,
    parent_chain_native_currency: NativeCurrency,
    is_deposit_mode: bool,
    selected_token: Optional[BridgeToken] = None,
) -> GasCostResult:
    return get_gas_cost_and_token(
        child_chain_native_currency,
        parent_chain_native_currency,
        is_deposit_mode,
        summary.estimated_parent_chain_gas_fees,
        summary.estimated_child_chain_gas_fees,
        selected_token=selected_token,
        status=summary.status,
        error=summary.error,
    )
