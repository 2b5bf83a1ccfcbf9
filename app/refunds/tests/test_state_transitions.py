"""
Tests for the refund transition table.

The table in refunds.state_machines is the single definition of the
lifecycle; the django-fsm transitions on RefundRequest derive from it.
"""

import pytest

from refunds.exceptions import InvalidTransitionError
from refunds.state_machines import (
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
    TRANSITIONS,
    DecisionAction,
    RefundEvent,
    RefundRequestStatus,
    event_for_decision,
    is_terminal,
    next_status,
    sources_for,
    target_for,
)

S = RefundRequestStatus
E = RefundEvent


class TestNextStatus:
    """Tests for next_status()."""

    @pytest.mark.parametrize(
        ("current", "event", "expected"),
        [
            (None, E.CREATE, S.PENDING),
            (S.PENDING, E.SELLER_APPROVE, S.APPROVED_BY_SELLER),
            (S.PENDING, E.SELLER_REJECT, S.REJECTED_BY_SELLER),
            (S.PENDING, E.ADMIN_APPROVE, S.APPROVED_BY_ADMIN),
            (S.PENDING, E.ADMIN_REJECT, S.REJECTED_BY_ADMIN),
            (S.REJECTED_BY_SELLER, E.ADMIN_APPROVE, S.APPROVED_BY_ADMIN),
            (S.REJECTED_BY_SELLER, E.ADMIN_REJECT, S.REJECTED_BY_ADMIN),
            (S.PENDING, E.CANCEL, S.CANCELLED),
            (S.REJECTED_BY_SELLER, E.CANCEL, S.CANCELLED),
        ],
    )
    def test_allowed_transitions(self, current, event, expected):
        assert next_status(current, event) == expected

    @pytest.mark.parametrize("terminal", sorted(TERMINAL_STATUSES))
    @pytest.mark.parametrize("event", [e for e in E if e != E.CREATE])
    def test_terminal_statuses_accept_nothing(self, terminal, event):
        with pytest.raises(InvalidTransitionError) as exc_info:
            next_status(terminal, event)

        assert exc_info.value.error_code == "INVALID_TRANSITION"
        assert exc_info.value.details["current_status"] == terminal
        assert exc_info.value.details["event"] == str(event)

    @pytest.mark.parametrize("event", [E.SELLER_APPROVE, E.SELLER_REJECT])
    def test_seller_cannot_decide_twice(self, event):
        with pytest.raises(InvalidTransitionError):
            next_status(S.REJECTED_BY_SELLER, event)

    def test_create_only_from_nothing(self):
        with pytest.raises(InvalidTransitionError):
            next_status(S.PENDING, E.CREATE)


class TestStatusSets:
    """Terminal and active statuses partition the lifecycle."""

    def test_sets_cover_every_status(self):
        assert TERMINAL_STATUSES | ACTIVE_STATUSES == set(S.values)
        assert not TERMINAL_STATUSES & ACTIVE_STATUSES

    def test_rejected_by_seller_is_not_terminal(self):
        assert is_terminal(S.REJECTED_BY_SELLER) is False
        assert is_terminal(S.REJECTED_BY_ADMIN) is True

    def test_no_transition_leaves_a_terminal_status(self):
        assert all(source not in TERMINAL_STATUSES for source, _ in TRANSITIONS)


class TestTableHelpers:
    """Tests for sources_for(), target_for() and event_for_decision()."""

    def test_sources_for_admin_approve(self):
        assert set(sources_for(E.ADMIN_APPROVE)) == {S.PENDING, S.REJECTED_BY_SELLER}

    def test_sources_for_create_is_empty(self):
        assert sources_for(E.CREATE) == []

    def test_target_for(self):
        assert target_for(E.CANCEL) == S.CANCELLED

    def test_target_for_unknown_event(self):
        with pytest.raises(ValueError):
            target_for("teleport")

    @pytest.mark.parametrize(
        ("action", "admin", "expected"),
        [
            (DecisionAction.APPROVE, False, E.SELLER_APPROVE),
            (DecisionAction.REJECT, False, E.SELLER_REJECT),
            (DecisionAction.APPROVE, True, E.ADMIN_APPROVE),
            (DecisionAction.REJECT, True, E.ADMIN_REJECT),
        ],
    )
    def test_event_for_decision(self, action, admin, expected):
        assert event_for_decision(action, admin=admin) == expected

    def test_event_for_unknown_action(self):
        with pytest.raises(ValueError):
            event_for_decision("escalate", admin=True)
