#!/usr/bin/env python3
"""
Tests for the Semantic Validator
================================

Tests cross-reference checks between steps:
- Duplicate step IDs
- Dangling dependsOn references
- Cycle detection (full path, multiple independent cycles)
- Self-dependencies
- Warnings (empty plan, orphans, missing validation criteria)
- Short-circuit after structural errors
"""

import pytest

from plan_helpers import make_plan, make_step
from planflow import (
    CyclicDependencyError,
    ErrorKind,
    ReferentialError,
    SelfDependencyError,
    WarningKind,
    validate_plan,
    validate_schema,
    validate_semantics,
)
from planflow.validation import find_cycles
from planflow.validation.validators.semantic_validator import build_adjacency


def is_rotation(cycle, expected):
    """Check a closed cycle path is some rotation of ``expected``."""
    body = cycle[:-1]
    if cycle[0] != cycle[-1] or len(body) != len(expected):
        return False
    doubled = expected + expected
    return any(doubled[i : i + len(body)] == body for i in range(len(expected)))


class TestValidPlans:
    """Tests for plans without semantic problems."""

    def test_valid_plan_has_no_errors(self, sample_document):
        """A consistent plan validates cleanly."""
        result = validate_plan(sample_document)

        assert result.is_valid
        assert result.errors == []
        assert result.warnings == []

    def test_diamond_is_valid(self, diamond_document):
        result = validate_plan(diamond_document)

        assert result.is_valid
        assert result.plan.step_ids == ["A", "B", "C"]

    def test_result_dict_shape(self, diamond_document):
        """Boundary output uses isValid/errors/warnings."""
        assert validate_plan(diamond_document).to_dict() == {
            "isValid": True,
            "errors": [],
            "warnings": [],
        }


class TestDuplicateIds:
    """Tests for duplicate step IDs."""

    def test_each_duplicate_is_an_error(self):
        document = make_plan([make_step("A"), make_step("A"), make_step("B"), make_step("A")])

        result = validate_plan(document)

        duplicates = [e for e in result.errors if e.message.startswith("Duplicate")]
        assert [e.path for e in duplicates] == ["steps[1].id", "steps[3].id"]
        assert all(e.kind is ErrorKind.REFERENTIAL for e in duplicates)
        assert duplicates[0].message == "Duplicate step ID: A"


class TestDanglingReferences:
    """Tests for dependsOn entries pointing nowhere."""

    def test_dangling_reference_names_step_and_missing_id(self):
        document = make_plan([make_step("A"), make_step("B", depends_on=["A", "Z", "Y"])])

        result = validate_plan(document)

        assert not result.is_valid
        assert [e.path for e in result.errors] == [
            "steps[1].dependsOn[1]",
            "steps[1].dependsOn[2]",
        ]
        assert result.errors[0].message == 'Step "B" depends on non-existent step "Z"'
        assert result.errors[0].details == {"stepId": "B", "missingId": "Z"}

    def test_raise_for_errors_gives_referential_error(self):
        result = validate_plan(make_plan([make_step("A", depends_on=["missing"])]))

        with pytest.raises(ReferentialError) as exc_info:
            result.raise_for_errors()

        assert exc_info.value.step_id == "A"


class TestCycles:
    """Tests for dependency cycle detection."""

    def test_introduced_back_edge_is_a_cycle(self, diamond_document):
        """Adding 'A depends on C' to the diamond yields the cycle A -> C -> B -> A."""
        diamond_document["steps"][0]["dependsOn"] = ["C"]

        result = validate_plan(diamond_document)

        assert not result.is_valid
        cycle_errors = [e for e in result.errors if e.kind is ErrorKind.CYCLIC_DEPENDENCY]
        assert len(cycle_errors) == 1
        assert is_rotation(cycle_errors[0].details["cycle"], ["A", "C", "B"])

    def test_interlocking_cycles_are_one_error(self):
        """Cycles sharing an edge are reported as their longest closed path."""
        cycles = find_cycles({"A": ["C"], "B": ["A"], "C": ["A", "B"]})

        assert cycles == [["A", "C", "B", "A"]]

    def test_cycle_reached_through_finished_step_is_grouped(self):
        """A step joined to a cycle by an already-finished node is in the same group."""
        cycles = find_cycles({"A": ["B", "C"], "B": ["A"], "C": ["B"]})

        assert len(cycles) == 1
        assert is_rotation(cycles[0], ["A", "B"])

    def test_find_cycles_ignores_unknown_nodes(self):
        assert find_cycles({"A": ["B", "ghost"], "B": ["A"]}) == [["A", "B", "A"]]
        assert find_cycles({"A": ["ghost"]}) == []

    def test_cycle_reported_once_with_full_path(self):
        """One error per cycle, not one per edge."""
        document = make_plan(
            [
                make_step("A", depends_on=["C"]),
                make_step("B", depends_on=["A"]),
                make_step("C", depends_on=["B"]),
            ]
        )

        result = validate_plan(document)

        assert len(result.errors) == 1
        error = result.errors[0]
        assert error.path == "steps[0].dependsOn"
        assert error.details["cycle"] == ["A", "C", "B", "A"]
        assert error.message == "Cyclic dependency detected: A -> C -> B -> A"

    def test_independent_cycles_are_all_reported(self):
        document = make_plan(
            [
                make_step("A", depends_on=["B"]),
                make_step("B", depends_on=["A"]),
                make_step("C", depends_on=["D"]),
                make_step("D", depends_on=["C"]),
            ]
        )

        result = validate_plan(document)

        cycles = [e.details["cycle"] for e in result.errors]
        assert len(cycles) == 2
        assert is_rotation(cycles[0], ["A", "B"])
        assert is_rotation(cycles[1], ["C", "D"])

    def test_raise_for_errors_carries_cycle(self):
        document = make_plan(
            [make_step("A", depends_on=["B"]), make_step("B", depends_on=["A"])]
        )

        with pytest.raises(CyclicDependencyError) as exc_info:
            validate_plan(document).raise_for_errors()

        assert exc_info.value.cycle == ["A", "B", "A"]

    def test_find_cycles_on_acyclic_graph(self):
        assert find_cycles({"A": [], "B": ["A"], "C": ["A", "B"]}) == []

    def test_find_cycles_deep_chain(self):
        """Traversal is iterative; long chains do not hit the recursion limit."""
        size = 5000
        adjacency = {f"s{i}": [f"s{i - 1}"] if i else [] for i in range(size)}
        adjacency["s0"] = [f"s{size - 1}"]

        cycles = find_cycles(adjacency)

        assert len(cycles) == 1
        assert len(cycles[0]) == size + 1


class TestSelfDependency:
    """Tests for steps depending on themselves."""

    def test_self_dependency_is_distinct_kind(self):
        document = make_plan([make_step("A"), make_step("B", depends_on=["A", "B"])])

        result = validate_plan(document)

        assert [e.kind for e in result.errors] == [ErrorKind.SELF_DEPENDENCY]
        assert result.errors[0].path == "steps[1].dependsOn[1]"
        assert result.errors[0].message == 'Step "B" depends on itself'

    def test_self_dependency_raises_dedicated_error(self):
        result = validate_plan(make_plan([make_step("A", depends_on=["A"])]))

        with pytest.raises(SelfDependencyError):
            result.raise_for_errors()

    def test_adjacency_drops_self_and_unknown_edges(self):
        plan = validate_schema(
            make_plan([make_step("A", depends_on=["A", "Q"]), make_step("B", depends_on=["A"])])
        ).plan

        assert build_adjacency(plan.steps) == {"A": [], "B": ["A"]}


class TestCheckOrder:
    """Tests for the order errors are reported in."""

    def test_errors_follow_check_order(self):
        document = make_plan(
            [
                make_step("A", depends_on=["A"]),
                make_step("B", depends_on=["C"]),
                make_step("C", depends_on=["B", "Z"]),
                make_step("B"),
            ]
        )

        result = validate_plan(document)

        assert [e.kind for e in result.errors] == [
            ErrorKind.REFERENTIAL,  # duplicate B
            ErrorKind.REFERENTIAL,  # dangling Z
            ErrorKind.CYCLIC_DEPENDENCY,  # B <-> C
            ErrorKind.SELF_DEPENDENCY,  # A
        ]


class TestWarnings:
    """Tests for non-blocking findings."""

    def test_empty_plan_warns(self):
        result = validate_plan(make_plan([]))

        assert result.is_valid
        assert [w.kind for w in result.warnings] == [WarningKind.EMPTY_PLAN]
        assert result.warnings[0].message == "Plan has no steps"

    def test_orphan_step_warns(self):
        document = make_plan([make_step("A"), make_step("B", depends_on=["A"]), make_step("Z")])

        result = validate_plan(document)

        assert result.is_valid
        assert [(w.kind, w.path) for w in result.warnings] == [
            (WarningKind.ORPHAN_STEP, "steps[2]")
        ]

    def test_single_step_is_not_an_orphan(self):
        assert validate_plan(make_plan([make_step("A")])).warnings == []

    @pytest.mark.parametrize("kind", ["test", "review"])
    def test_missing_validation_criteria(self, kind):
        document = make_plan([make_step("A"), make_step("B", depends_on=["A"], kind=kind)])

        result = validate_plan(document)

        assert result.is_valid
        assert [w.kind for w in result.warnings] == [WarningKind.MISSING_VALIDATION_CRITERIA]
        assert result.warnings[0].path == "steps[1].validation"

    def test_empty_criteria_block_still_warns(self):
        document = make_plan(
            [
                make_step("A"),
                make_step(
                    "B",
                    depends_on=["A"],
                    kind="test",
                    validation={"criteria": [], "automatedTests": []},
                ),
            ]
        )

        assert validate_plan(document).warnings[0].kind is WarningKind.MISSING_VALIDATION_CRITERIA


class TestShortCircuit:
    """Tests for skipping semantic checks after structural errors."""

    def test_semantic_checks_skipped_on_structural_errors(self):
        """Only structural errors are reported when the shape is wrong."""
        document = make_plan(
            [make_step("A", kind="bogus"), make_step("A", depends_on=["missing"])]
        )

        result = validate_plan(document)

        assert not result.is_valid
        assert result.error_kinds() == {ErrorKind.STRUCTURAL}
        assert result.plan is None

    def test_validate_semantics_on_steps(self, diamond_document):
        """The semantic pass also accepts a bare step sequence."""
        plan = validate_schema(diamond_document).plan

        result = validate_semantics(plan.steps)

        assert result.is_valid
        assert result.plan is None
