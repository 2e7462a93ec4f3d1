#!/usr/bin/env python3
"""
Tests for the Eligibility Checker
=================================

Tests canStart against dependency statuses, the skipped-dependency policy
flag, and the navigation helpers built on it.
"""

import pytest

from plan_helpers import build_plan, make_step
from planflow import (
    DependencyGraph,
    EligibilityChecker,
    PlanflowConfig,
    StepNotFoundError,
    StepStatus,
    can_start,
)


def diamond(a="pending", b="pending", c="pending"):
    return build_plan(
        [
            make_step("A", state=a),
            make_step("B", depends_on=["A"], state=b),
            make_step("C", depends_on=["A", "B"], state=c),
        ]
    )


class TestCanStart:
    """Tests for the canStart check."""

    def test_blocked_by_pending_dependency(self):
        """B cannot start while A is pending."""
        result = EligibilityChecker(diamond()).can_start("B")

        assert result.allowed is False
        assert result.missing_dependencies == ["A"]
        assert result.reason == "Step 'B' is waiting on 1 unfinished dependency: A (pending)"

    def test_allowed_once_dependency_done(self):
        result = EligibilityChecker(diamond(a="done")).can_start("B")

        assert result.allowed is True
        assert result.missing_dependencies == []
        assert result.reason is None

    def test_lists_every_missing_dependency(self):
        """All unsatisfied dependencies are reported, not just the first."""
        result = EligibilityChecker(diamond(a="in-progress", b="blocked")).can_start("C")

        assert result.missing_dependencies == ["A", "B"]
        assert "2 unfinished dependencies" in result.reason
        assert "A (in-progress)" in result.reason
        assert "B (blocked)" in result.reason

    def test_partial_satisfaction(self):
        result = EligibilityChecker(diamond(a="done", b="in-progress")).can_start("C")

        assert result.missing_dependencies == ["B"]

    def test_root_step_is_always_allowed(self):
        assert EligibilityChecker(diamond()).can_start("A").allowed

    def test_unknown_step(self):
        with pytest.raises(StepNotFoundError):
            EligibilityChecker(diamond()).can_start("Z")

    def test_to_dict(self):
        assert EligibilityChecker(diamond()).can_start("B").to_dict() == {
            "stepId": "B",
            "allowed": False,
            "missingDependencies": ["A"],
            "reason": "Step 'B' is waiting on 1 unfinished dependency: A (pending)",
        }

    def test_function_form_uses_given_statuses(self):
        """can_start reads statuses from the mapping, not from the steps."""
        graph = DependencyGraph.from_plan(diamond())
        statuses = {"A": StepStatus.DONE, "B": StepStatus.DONE}

        assert can_start("C", graph, statuses).allowed

    def test_reevaluated_after_status_change(self):
        """Results follow the snapshot they are computed from."""
        graph = DependencyGraph.from_plan(diamond())
        statuses = {"A": StepStatus.PENDING}

        assert not can_start("B", graph, statuses).allowed
        statuses["A"] = StepStatus.DONE
        assert can_start("B", graph, statuses).allowed


class TestSkippedPolicy:
    """Tests for the skipped-satisfies-dependencies flag."""

    def test_skipped_does_not_satisfy_by_default(self):
        result = EligibilityChecker(diamond(a="skipped")).can_start("B")

        assert result.allowed is False
        assert result.missing_dependencies == ["A"]
        assert "A (skipped)" in result.reason

    def test_skipped_satisfies_when_enabled(self):
        config = PlanflowConfig(skipped_satisfies_dependencies=True)

        result = EligibilityChecker(diamond(a="skipped"), config).can_start("B")

        assert result.allowed is True

    def test_flag_does_not_accept_other_statuses(self):
        config = PlanflowConfig(skipped_satisfies_dependencies=True)

        result = EligibilityChecker(diamond(a="skipped", b="blocked"), config).can_start("C")

        assert result.missing_dependencies == ["B"]


class TestNavigation:
    """Tests for next/available/waiting step queries."""

    def test_next_step_is_first_available(self):
        plan = build_plan(
            [
                make_step("A", state="done"),
                make_step("B", depends_on=["A"]),
                make_step("C", depends_on=["A"]),
                make_step("D", depends_on=["B"]),
            ]
        )
        checker = EligibilityChecker(plan)

        assert checker.next_step().id == "B"
        assert [s.id for s in checker.available_steps()] == ["B", "C"]
        assert [s.id for s in checker.waiting_on_dependencies()] == ["D"]

    def test_in_progress_and_blocked_are_not_available(self):
        plan = build_plan(
            [
                make_step("A", state="in-progress"),
                make_step("B", state="blocked"),
                make_step("C", depends_on=["A", "B"]),
            ]
        )
        checker = EligibilityChecker(plan)

        assert checker.available_steps() == []
        assert checker.next_step() is None
        assert [s.id for s in checker.waiting_on_dependencies()] == ["C"]

    def test_nothing_left(self):
        checker = EligibilityChecker(diamond(a="done", b="done", c="skipped"))

        assert checker.next_step() is None
        assert checker.waiting_on_dependencies() == []
