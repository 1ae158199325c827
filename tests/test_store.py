"""Tests for the route selection store."""

from decimal import Decimal
from typing import Optional

import pytest

from arbroute.routing.base import MechanismId, RouteRecord
from arbroute.routing.store import RouteSelectionStore, SelectionStatus

CANONICAL = MechanismId.CANONICAL
CCTP = MechanismId.CCTP
AGGREGATOR = MechanismId.AGGREGATOR
CHEAPEST = MechanismId.AGGREGATOR_CHEAPEST
FASTEST = MechanismId.AGGREGATOR_FASTEST


def record(mechanism: MechanismId, error: Optional[str] = None) -> RouteRecord:
    return RouteRecord(
        mechanism=mechanism,
        counterparty_name=mechanism.value,
        icon_ref="",
        duration_ms=60_000,
        amount_received=Decimal("1"),
        error=error,
    )


def records(*mechanisms: MechanismId) -> list[RouteRecord]:
    return [record(mechanism) for mechanism in mechanisms]


@pytest.fixture
def store() -> RouteSelectionStore:
    return RouteSelectionStore()


class TestAutoSelect:
    """Tests for selection rules on recompute."""

    def test_initial_state(self, store):
        assert store.version == 0
        assert store.state.status == SelectionStatus.IDLE
        assert store.state.selected is None

    def test_single_mechanism_selected(self, store):
        state = store.recompute([CANONICAL], records(CANONICAL))

        assert state.selected == CANONICAL
        assert state.status == SelectionStatus.SELECTED
        assert state.selected_route.mechanism == CANONICAL

    def test_single_mechanism_without_record(self, store):
        """Test a lone mechanism is selected even before its record exists."""
        state = store.recompute([AGGREGATOR], [], is_loading=True)

        assert state.selected == AGGREGATOR
        assert state.selected_route is None

    def test_several_mechanisms_need_a_choice(self, store):
        state = store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))

        assert state.selected is None
        assert state.status == SelectionStatus.CHOOSING

    def test_nothing_eligible(self, store):
        store.recompute([CANONICAL], records(CANONICAL))

        state = store.recompute([], [])

        assert state.selected is None
        assert state.status == SelectionStatus.IDLE
        assert state.routes == []

    def test_sole_aggregator_defaults_to_cheapest(self, store):
        state = store.recompute([AGGREGATOR], records(CHEAPEST, FASTEST))

        assert state.selected == state.eligible_mechanisms[0] == AGGREGATOR
        assert state.selected_variant == CHEAPEST
        assert state.selected_route.mechanism == CHEAPEST

    def test_sole_aggregator_keeps_fastest(self, store):
        """Test a user choice among aggregator variants survives recompute."""
        store.recompute([AGGREGATOR], records(CHEAPEST, FASTEST))
        assert store.select(FASTEST) is True

        state = store.recompute([AGGREGATOR], records(CHEAPEST, FASTEST))

        assert state.selected == AGGREGATOR
        assert state.selected_variant == FASTEST
        assert state.selected_route.mechanism == FASTEST

    def test_sole_aggregator_collapsed(self, store):
        """Test a plain selection moves to the variant that exists."""
        store.recompute([AGGREGATOR], [], is_loading=True)

        state = store.recompute([AGGREGATOR], records(CHEAPEST, FASTEST))

        assert state.selected == AGGREGATOR
        assert state.selected_variant == CHEAPEST

    def test_sole_unusable_mechanism_flagged(self, store):
        """Test a lone mechanism with a gas error is selected but not usable."""
        state = store.recompute([CANONICAL], [record(CANONICAL, error="rpc down")])

        assert state.selected == CANONICAL
        assert state.selected_route.is_usable is False
        assert state.is_selection_usable is False

    def test_usable_selection(self, store):
        state = store.recompute([CANONICAL], records(CANONICAL))
        assert state.is_selection_usable is True

    def test_no_selection_not_usable(self, store):
        state = store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))
        assert state.is_selection_usable is False


class TestPreserveAndClear:
    """Tests for keeping or clearing a choice across recomputes."""

    def test_same_set_keeps_selection(self, store):
        store.recompute([CCTP, AGGREGATOR, CANONICAL], records(CCTP, CHEAPEST, FASTEST, CANONICAL))
        store.select(CANONICAL)

        state = store.recompute(
            [CCTP, AGGREGATOR, CANONICAL], records(CCTP, CHEAPEST, FASTEST, CANONICAL)
        )

        assert state.selected == CANONICAL

    def test_same_set_drops_vanished_variant(self, store):
        """Test selecting a variant whose record disappeared is cleared."""
        store.recompute([CCTP, AGGREGATOR], records(CCTP, CHEAPEST, FASTEST))
        store.select(FASTEST)

        state = store.recompute([CCTP, AGGREGATOR], records(CCTP, AGGREGATOR))

        assert state.selected is None

    def test_changed_set_clears_selection(self, store):
        store.recompute([CCTP, AGGREGATOR, CANONICAL], records(CCTP, CANONICAL))
        store.select(CANONICAL)

        state = store.recompute([AGGREGATOR, CANONICAL], records(CANONICAL))

        assert state.selected is None

    def test_changed_to_single_selects_it(self, store):
        store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))
        store.select(CCTP)

        state = store.recompute([CANONICAL], records(CANONICAL))

        assert state.selected == CANONICAL


class TestExplicitSelect:
    """Tests for user selection."""

    def test_select_eligible(self, store):
        store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))
        version = store.version

        assert store.select(CCTP) is True
        assert store.state.selected == CCTP
        assert store.version == version + 1

    def test_select_aggregator_variant(self, store):
        """Test picking a variant selects the aggregator itself."""
        store.recompute([CCTP, AGGREGATOR], records(CCTP, CHEAPEST, FASTEST))

        assert store.select(FASTEST) is True

        state = store.state
        assert state.selected == AGGREGATOR
        assert state.selected in state.eligible_mechanisms
        assert state.selected_route.mechanism == FASTEST

    def test_reject_not_eligible(self, store):
        store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))
        before = store.state

        assert store.select(MechanismId.OFT_V2) is False
        assert store.state is before

    def test_reject_missing_record(self, store):
        store.recompute([CCTP, AGGREGATOR], records(CCTP))

        assert store.select(CHEAPEST) is False
        assert store.select(AGGREGATOR) is False

    def test_reject_unusable_record(self, store):
        store.recompute([CCTP, CANONICAL], [record(CCTP), record(CANONICAL, error="gas failed")])

        assert store.select(CANONICAL) is False
        assert store.state.selected is None


class TestSnapshots:
    """Tests for state snapshots."""

    def test_version_increments(self, store):
        first = store.recompute([CANONICAL], records(CANONICAL))
        second = store.recompute([CANONICAL], records(CANONICAL))

        assert second.version == first.version + 1

    def test_previous_snapshot_unchanged(self, store):
        first = store.recompute([CCTP, CANONICAL], records(CCTP, CANONICAL))

        store.select(CCTP)

        assert first.selected is None
        assert store.state.selected == CCTP

    def test_routes_read_only(self, store):
        state = store.recompute([CANONICAL], records(CANONICAL))

        with pytest.raises(TypeError):
            state.routes_by_mechanism[CCTP] = record(CCTP)

    def test_records_of_ineligible_mechanisms_ignored(self, store):
        state = store.recompute([CANONICAL], records(CCTP, CANONICAL))

        assert [route.mechanism for route in state.routes] == [CANONICAL]

    def test_flags_carried(self, store):
        state = store.recompute(
            [AGGREGATOR],
            [],
            input_key="k",
            is_loading=False,
            error="Routes failed to load: boom",
            has_low_liquidity=False,
            has_modified_settings=True,
        )

        assert state.input_key == "k"
        assert state.error == "Routes failed to load: boom"
        assert state.has_modified_settings is True
