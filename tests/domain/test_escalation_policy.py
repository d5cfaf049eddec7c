"""Tests for the pure SLA escalation planner."""

from datetime import datetime, timedelta, timezone

import pytest

from alertbridge.config import Severity, TicketKind, TicketStatus
from alertbridge.config.runtime import EscalationConfig
from alertbridge.escalation.domain import (
    EscalationPolicy, count_breaching, plan_escalations
)
from alertbridge.tickets.domain import Ticket

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def make_ticket(
    ticket_id=1,
    age_minutes=0,
    severity=Severity.CRITICAL,
    kind=TicketKind.INCIDENT,
    status=TicketStatus.OPEN,
    labels=(),
    status_age_minutes=None,
):
    created_at = NOW - timedelta(minutes=age_minutes)
    status_changed_at = None
    if status_age_minutes is not None:
        status_changed_at = NOW - timedelta(minutes=status_age_minutes)
    return Ticket(
        id=ticket_id,
        key=f"ITSM-{ticket_id}",
        kind=kind,
        project_key="ITSM",
        summary="Disk full",
        status=status,
        created_at=created_at,
        severity=severity,
        status_changed_at=status_changed_at,
        labels=frozenset(labels),
    )


@pytest.fixture
def policy():
    return EscalationPolicy()


class TestBreachWindow:
    def test_within_sla(self, policy):
        assert policy.breach_window(make_ticket(age_minutes=29), NOW) == 0

    def test_first_window(self, policy):
        assert policy.breach_window(make_ticket(age_minutes=31), NOW) == 1

    def test_later_windows(self, policy):
        assert policy.breach_window(make_ticket(age_minutes=61), NOW) == 2
        assert policy.breach_window(make_ticket(age_minutes=95), NOW) == 3

    def test_threshold_depends_on_severity(self, policy):
        ticket = make_ticket(age_minutes=100, severity=Severity.HIGH)
        assert policy.breach_window(ticket, NOW) == 0

    def test_created_in_the_future_is_not_breaching(self, policy):
        assert policy.breach_window(make_ticket(age_minutes=-10), NOW) == 0

    def test_measure_from_status_change(self):
        ticket = make_ticket(age_minutes=120, status_age_minutes=10)
        assert EscalationPolicy().breach_window(ticket, NOW) == 4
        assert EscalationPolicy(measure_from_status_change=True).breach_window(ticket, NOW) == 0


class TestStatusChangeWindows:
    def test_marker_carries_status_change_time(self):
        policy = EscalationPolicy(measure_from_status_change=True)
        ticket = make_ticket(age_minutes=200, status_age_minutes=45)
        since = int((NOW - timedelta(minutes=45)).timestamp())

        actions = plan_escalations(NOW, [ticket], policy)

        assert [a.marker for a in actions] == [f"sla-escalated-s{since}-w1"]

    def test_markers_from_before_status_change_do_not_suppress(self):
        policy = EscalationPolicy(measure_from_status_change=True)
        ticket = make_ticket(age_minutes=200, status_age_minutes=45, labels=["sla-escalated-w1"])

        actions = plan_escalations(NOW, [ticket], policy)

        assert len(actions) == 1
        assert actions[0].window == 1
        assert actions[0].reassign_to == "l2-support"

    def test_marked_window_after_status_change_is_skipped(self):
        policy = EscalationPolicy(measure_from_status_change=True)
        ticket = make_ticket(age_minutes=200, status_age_minutes=45)
        marker = plan_escalations(NOW, [ticket], policy)[0].marker
        marked = make_ticket(age_minutes=200, status_age_minutes=45, labels=[marker])

        assert plan_escalations(NOW, [marked], policy) == []

    def test_created_markers_unchanged(self, policy):
        ticket = make_ticket(age_minutes=31, status_age_minutes=10)
        assert plan_escalations(NOW, [ticket], policy)[0].marker == "sla-escalated-w1"


class TestPlanEscalations:
    def test_nothing_due(self, policy):
        assert plan_escalations(NOW, [make_ticket(age_minutes=5)], policy) == []

    def test_first_window_reassigns_to_first_tier(self, policy):
        actions = plan_escalations(NOW, [make_ticket(age_minutes=31)], policy)
        assert len(actions) == 1
        action = actions[0]
        assert action.ticket_id == 1
        assert action.window == 1
        assert action.marker == "sla-escalated-w1"
        assert action.reassign_to == "l2-support"
        assert "Escalated to l2-support" in action.comment
        assert "Critical incident open beyond 30 minutes" in action.comment

    def test_marked_window_is_skipped(self, policy):
        ticket = make_ticket(age_minutes=31, labels=["sla-escalated-w1"])
        assert plan_escalations(NOW, [ticket], policy) == []

    def test_next_window_escalates_again(self, policy):
        ticket = make_ticket(age_minutes=61, labels=["sla-escalated-w1"])
        actions = plan_escalations(NOW, [ticket], policy)
        assert [a.marker for a in actions] == ["sla-escalated-w2"]
        assert actions[0].reassign_to == "l3-support"

    def test_exhausted_tiers_only_comment(self, policy):
        ticket = make_ticket(age_minutes=91, labels=["sla-escalated-w1", "sla-escalated-w2"])
        actions = plan_escalations(NOW, [ticket], policy)
        assert actions[0].reassign_to is None
        assert "All escalation tiers exhausted" in actions[0].comment

    def test_changes_are_never_escalated(self, policy):
        ticket = make_ticket(age_minutes=500, kind=TicketKind.CHANGE)
        assert plan_escalations(NOW, [ticket], policy) == []

    def test_closed_tickets_are_ignored(self, policy):
        ticket = make_ticket(age_minutes=500, status=TicketStatus.CLOSED)
        assert plan_escalations(NOW, [ticket], policy) == []

    def test_problems_are_escalated(self, policy):
        ticket = make_ticket(age_minutes=31, kind=TicketKind.PROBLEM)
        actions = plan_escalations(NOW, [ticket], policy)
        assert "problem open beyond" in actions[0].comment

    def test_count_breaching_includes_marked(self, policy):
        tickets = [
            make_ticket(1, age_minutes=31, labels=["sla-escalated-w1"]),
            make_ticket(2, age_minutes=31),
            make_ticket(3, age_minutes=5),
        ]
        assert count_breaching(NOW, tickets, policy) == 2
        assert len(plan_escalations(NOW, tickets, policy)) == 1


class TestFromConfig:
    def test_custom_thresholds_and_tiers(self):
        config = EscalationConfig(
            sla_thresholds_minutes={"Critical": 10},
            tiers=["duty-manager"],
            marker_prefix="esc",
        )
        policy = EscalationPolicy.from_config(config)
        assert policy.threshold_seconds(Severity.CRITICAL) == 600
        assert policy.threshold_seconds(Severity.LOW) == 1440 * 60

        actions = plan_escalations(NOW, [make_ticket(age_minutes=11)], policy)
        assert actions[0].marker == "esc-w1"
        assert actions[0].reassign_to == "duty-manager"

    def test_non_positive_threshold_rejected(self):
        with pytest.raises(ValueError):
            EscalationConfig(sla_thresholds_minutes={"high": 0})
