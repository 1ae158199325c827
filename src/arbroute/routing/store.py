"""Route selection store.

Holds the single selected route downstream execution relies on. Each change
replaces the whole state with a new immutable snapshot, so readers never see
a half-updated selection.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from arbroute.routing.base import MechanismId, RouteRecord

logger = logging.getLogger(__name__)

# Default pick among aggregator records when the aggregator is the only option
AGGREGATOR_DEFAULT_PRIORITY: tuple[MechanismId, ...] = (
    MechanismId.AGGREGATOR_CHEAPEST,
    MechanismId.AGGREGATOR_FASTEST,
    MechanismId.AGGREGATOR,
)


class SelectionStatus(str, Enum):
    IDLE = "idle"
    CHOOSING = "choosing"
    SELECTED = "selected"


@dataclass(frozen=True)
class RouteSelectionState:
    """Snapshot of eligible routes and the current selection.

    `selected` is always one of `eligible_mechanisms`. For the aggregator,
    `selected_variant` names the record actually picked (cheapest or
    fastest). Executors must check `is_selection_usable` before acting: a
    sole mechanism is selected even while its record carries an error.
    """

    version: int = 0
    input_key: Optional[Any] = None
    eligible_mechanisms: tuple[MechanismId, ...] = ()
    routes_by_mechanism: Mapping[MechanismId, RouteRecord] = field(
        default_factory=lambda: MappingProxyType({})
    )
    selected: Optional[MechanismId] = None
    selected_variant: Optional[MechanismId] = None
    is_loading: bool = False
    error: Optional[str] = None
    has_low_liquidity: bool = False
    has_modified_settings: bool = False

    @property
    def status(self) -> SelectionStatus:
        if not self.eligible_mechanisms:
            return SelectionStatus.IDLE
        if self.selected is not None:
            return SelectionStatus.SELECTED
        return SelectionStatus.CHOOSING

    @property
    def routes(self) -> list[RouteRecord]:
        """Records in display order."""
        return list(self.routes_by_mechanism.values())

    @property
    def selected_route(self) -> Optional[RouteRecord]:
        if self.selected is None:
            return None
        return self.routes_by_mechanism.get(self.selected_variant or self.selected)

    @property
    def is_selection_usable(self) -> bool:
        """True when the selected record exists and carries no error."""
        route = self.selected_route
        return route is not None and route.is_usable

    def is_valid_selection(self, mechanism: Optional[MechanismId]) -> bool:
        """A selection must belong to an eligible mechanism.

        Sub-variants of the aggregator also need their record to exist.
        """
        if mechanism is None or mechanism.base not in self.eligible_mechanisms:
            return False
        if mechanism != mechanism.base:
            return mechanism in self.routes_by_mechanism
        return True


def _default_variant(
    member: MechanismId, routes: Mapping[MechanismId, RouteRecord]
) -> Optional[MechanismId]:
    if member == MechanismId.AGGREGATOR:
        for candidate in AGGREGATOR_DEFAULT_PRIORITY:
            if candidate in routes:
                return candidate
    return None


class RouteSelectionStore:
    """Versioned holder of RouteSelectionState.

    `recompute` applies the auto-select, clear and preserve rules; `select`
    records an explicit user choice. Both return the resulting snapshot.
    """

    def __init__(self):
        self._state = RouteSelectionState()

    @property
    def state(self) -> RouteSelectionState:
        return self._state

    @property
    def version(self) -> int:
        return self._state.version

    def recompute(
        self,
        eligible_mechanisms: list[MechanismId],
        records: list[RouteRecord],
        input_key: Optional[Any] = None,
        is_loading: bool = False,
        error: Optional[str] = None,
        has_low_liquidity: bool = False,
        has_modified_settings: bool = False,
    ) -> RouteSelectionState:
        """Replace the state with a snapshot for new inputs.

        - one eligible mechanism: it is selected (a still valid choice among
          its aggregator variants is kept, otherwise the default variant)
        - eligible set changed to any other size: selection cleared
        - eligible set unchanged: selection kept while still valid
        """
        previous = self._state
        eligible = tuple(dict.fromkeys(eligible_mechanisms))

        routes = MappingProxyType(
            {
                record.mechanism: record
                for record in records
                if record.mechanism.base in eligible
            }
        )
        candidate = replace(
            previous,
            version=previous.version + 1,
            input_key=input_key,
            eligible_mechanisms=eligible,
            routes_by_mechanism=routes,
            selected=None,
            selected_variant=None,
            is_loading=is_loading,
            error=error,
            has_low_liquidity=has_low_liquidity,
            has_modified_settings=has_modified_settings,
        )

        eligible_changed = set(eligible) != set(previous.eligible_mechanisms)
        previous_pick = previous.selected_variant or previous.selected
        kept = previous_pick if candidate.is_valid_selection(previous_pick) else None

        if len(eligible) == 1:
            (member,) = eligible
            if kept is not None and (kept in routes or not routes):
                pick = kept
            else:
                pick = _default_variant(member, routes) or member
        elif eligible_changed:
            pick = None
        else:
            pick = kept

        selected = pick.base if pick is not None else None
        variant = pick if pick is not None and pick != selected else None

        if previous_pick is not None and pick != previous_pick:
            logger.debug(f"Route selection changed: {previous_pick} -> {pick}")

        self._state = replace(candidate, selected=selected, selected_variant=variant)
        return self._state

    def select(self, mechanism: MechanismId) -> bool:
        """Explicitly select a route.

        Only usable records of eligible mechanisms are accepted; anything else
        leaves the state untouched and returns False. Picking an aggregator
        variant selects the aggregator and remembers the variant.
        """
        state = self._state
        record = state.routes_by_mechanism.get(mechanism)

        if not state.is_valid_selection(mechanism) or record is None:
            logger.debug(f"Ignoring selection of non-eligible route {mechanism}")
            return False

        if not record.is_usable:
            logger.debug(f"Ignoring selection of unusable route {mechanism}: {record.error}")
            return False

        self._state = replace(
            state,
            version=state.version + 1,
            selected=mechanism.base,
            selected_variant=mechanism if mechanism != mechanism.base else None,
        )
        return True
