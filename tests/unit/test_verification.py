"""Tests for whole-tree verification."""

import logging

import pytest

from inputdeck.lib.errors import DiagnosticKind, VerificationError
from inputdeck.lib.types import ValueType


class TestRequired:
    """Tests for required/optional propagation."""

    def test_missing_required_field(self, make_deck):
        """Exactly one diagnostic, naming the field's full path."""
        deck = make_deck({"thermal_solver": {"mesh": {}}})
        deck.add_string("thermal_solver/mesh/filename").required()
        result = deck.verify()

        assert not result
        assert len(result.diagnostics) == 1
        diagnostic = result.diagnostics[0]
        assert diagnostic.kind is DiagnosticKind.MISSING_REQUIRED
        assert diagnostic.path == "thermal_solver/mesh/filename"

    def test_optional_absent_passes(self, make_deck):
        deck = make_deck({})
        deck.add_double("solver/dt")
        assert deck.verify().ok

    def test_default_satisfies_required(self, make_deck):
        deck = make_deck({})
        deck.add_int("solver/steps").required().add_default(10)
        assert deck.verify().ok

    def test_required_table_absent_skips_children(self, make_deck):
        """Children of a missing required table are not reported."""
        deck = make_deck({})
        mesh = deck.add_table("mesh").required()
        mesh.add_string("filename").required()
        mesh.add_int("serial").required()
        result = deck.verify()

        assert result.paths() == ["mesh"]
        assert result.diagnostics[0].kind is DiagnosticKind.MISSING_REQUIRED

    def test_optional_table_absent_skips_children(self, make_deck):
        deck = make_deck({})
        mesh = deck.add_table("mesh")
        mesh.add_string("filename").required()
        assert deck.verify().ok

    def test_optional_table_present_checks_children(self, make_deck):
        deck = make_deck({"mesh": {"serial": 1}})
        mesh = deck.add_table("mesh")
        mesh.add_string("filename").required()
        result = deck.verify()
        assert result.paths() == ["mesh/filename"]

    def test_missing_siblings_all_reported(self, make_deck):
        """Verification does not stop at the first problem."""
        deck = make_deck({"solver": {}})
        deck.add_double("solver/dt").required()
        deck.add_int("solver/steps").required()
        deck.add_string("solver/name").required()
        result = deck.verify()
        assert result.paths() == ["solver/dt", "solver/steps", "solver/name"]

    def test_none_counts_as_absent(self, make_deck):
        deck = make_deck({"dt": None})
        deck.add_double("dt").required()
        assert deck.verify().by_kind(DiagnosticKind.MISSING_REQUIRED)


class TestTypeChecks:
    """Tests for type compatibility of present values."""

    def test_scalar_type_mismatch(self, make_deck):
        deck = make_deck({"steps": "ten"})
        deck.add_int("steps")
        result = deck.verify()
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.TYPE_MISMATCH]
        assert result.diagnostics[0].path == "steps"

    def test_bool_is_not_an_int(self, make_deck):
        deck = make_deck({"steps": True})
        deck.add_int("steps")
        assert deck.verify().by_kind(DiagnosticKind.TYPE_MISMATCH)

    def test_int_is_a_double(self, make_deck):
        deck = make_deck({"dt": 1})
        deck.add_double("dt")
        assert deck.verify().ok

    def test_array_expected(self, make_deck):
        deck = make_deck({"attrs": 3})
        deck.add_int_array("attrs")
        result = deck.verify()
        assert result.paths() == ["attrs"]

    def test_array_element_mismatch_reported_per_index(self, make_deck):
        deck = make_deck({"attrs": [1, "two", 3, 4.5]})
        deck.add_int_array("attrs")
        result = deck.verify()
        assert result.paths() == ["attrs/1", "attrs/3"]
        assert all(d.kind is DiagnosticKind.TYPE_MISMATCH for d in result.diagnostics)

    def test_struct_array_expected(self, make_deck):
        deck = make_deck({"bcs": "none"})
        deck.add_struct_array("bcs").add_double("constant")
        result = deck.verify()
        assert result.by_kind(DiagnosticKind.TYPE_MISMATCH)[0].path == "bcs"


class TestConstraints:
    """Tests for ranges and discrete sets."""

    @pytest.mark.parametrize("value,ok", [(0.0, True), (1.0, True), (0.5, True), (-1e-9, False), (1.0 + 1e-9, False)])
    def test_range_inclusive(self, make_deck, value, ok):
        deck = make_deck({"dt": value})
        deck.add_double("dt").add_range(0.0, 1.0)
        result = deck.verify()
        assert result.ok is ok
        if not ok:
            assert result.diagnostics[0].kind is DiagnosticKind.RANGE_VIOLATION

    @pytest.mark.parametrize("value,ok", [(1, True), (4, True), (0, False), (5, False)])
    def test_int_range(self, make_deck, value, ok):
        deck = make_deck({"order": value})
        deck.add_int("order").add_range(1, 4)
        assert deck.verify().ok is ok

    @pytest.mark.parametrize("value", ["a", "b", "c"])
    def test_discrete_set_members_pass(self, make_deck, value):
        deck = make_deck({"mode": value})
        deck.add_string("mode").add_discrete_set(["a", "b", "c"])
        assert deck.verify().ok

    def test_discrete_set_other_fails(self, make_deck):
        deck = make_deck({"mode": "d"})
        deck.add_string("mode").add_discrete_set(["a", "b", "c"])
        result = deck.verify()
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.DISCRETE_SET_VIOLATION]

    def test_range_checked_per_array_element(self, make_deck):
        deck = make_deck({"weights": [0.5, 2.0, 0.1]})
        deck.add_double_array("weights").add_range(0.0, 1.0)
        result = deck.verify()
        assert result.paths() == ["weights/1"]
        assert result.diagnostics[0].kind is DiagnosticKind.RANGE_VIOLATION

    def test_default_outside_range_reported(self, make_deck):
        """A default stands in for the deck value, so the range applies to it."""
        deck = make_deck({})
        deck.add_int("steps").add_range(1, 10).add_default(0)
        result = deck.verify()
        assert not result
        assert result.paths() == ["steps"]
        assert result.diagnostics[0].kind is DiagnosticKind.RANGE_VIOLATION
        assert result.diagnostics[0].message.startswith("Default 0")

    def test_default_outside_discrete_set_reported(self, make_deck):
        deck = make_deck({})
        deck.add_string("mode").add_default("slow").add_discrete_set(["fast", "exact"])
        result = deck.verify()
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.DISCRETE_SET_VIOLATION]

    def test_array_default_checked_per_element(self, make_deck):
        deck = make_deck({})
        deck.add_int_array("attrs").add_range(1, 5).add_default({0: 2, 3: 9})
        result = deck.verify()
        assert result.paths() == ["attrs/3"]
        assert result.diagnostics[0].kind is DiagnosticKind.RANGE_VIOLATION

    def test_default_unused_when_value_present(self, make_deck):
        deck = make_deck({"steps": 4})
        deck.add_int("steps").add_range(1, 10).add_default(0)
        assert deck.verify().ok


class TestVerifiers:
    """Tests for custom verifier predicates."""

    def test_field_verifier_receives_value(self, make_deck):
        seen = []
        deck = make_deck({"dt": 0.25})
        deck.add_double("dt").register_verifier(lambda v: seen.append(v) or True)
        assert deck.verify().ok
        assert seen == [0.25]

    def test_verifier_runs_on_default(self, make_deck):
        deck = make_deck({})
        deck.add_int("steps").add_default(0).register_verifier(lambda v: v > 0, "steps must be positive")
        result = deck.verify()
        assert result.diagnostics[0].kind is DiagnosticKind.VERIFIER_FAILED
        assert "steps must be positive" in result.diagnostics[0].message

    def test_verifiers_are_conjunctive(self, make_deck):
        """Both verifiers must pass; a later one never overrides an earlier one."""
        for first, second, expected in [(True, True, True), (False, True, False), (True, False, False), (False, False, False)]:
            deck = make_deck({"x": 1})
            field = deck.add_int("x")
            field.register_verifier(lambda v, r=first: r)
            field.register_verifier(lambda v, r=second: r)
            assert deck.verify().ok is expected, (first, second)

    def test_failing_verifiers_each_reported(self, make_deck):
        deck = make_deck({"x": 1})
        deck.add_int("x").register_verifier(lambda v: False, "first").register_verifier(lambda v: False, "second")
        result = deck.verify()
        assert len(result.by_kind(DiagnosticKind.VERIFIER_FAILED)) == 2

    def test_table_verifier_receives_view(self, make_deck):
        deck = make_deck({"mesh": {"serial": 1, "parallel": 3}})
        mesh = deck.add_table("mesh")
        mesh.add_int("serial")
        mesh.add_int("parallel")
        mesh.register_verifier(lambda view: view["serial"] < view["parallel"], "serial below parallel")
        assert deck.verify().ok

        deck2 = make_deck({"mesh": {"serial": 5, "parallel": 3}})
        mesh2 = deck2.add_table("mesh")
        mesh2.add_int("serial")
        mesh2.add_int("parallel")
        mesh2.register_verifier(lambda view: view["serial"] < view["parallel"], "serial below parallel")
        result = deck2.verify()
        assert result.paths() == ["mesh"]

    def test_verifier_reading_missing_required_fails_cleanly(self, make_deck):
        deck = make_deck({"mesh": {}})
        mesh = deck.add_table("mesh")
        mesh.add_int("serial").required()
        mesh.register_verifier(lambda view: view["serial"] > 0, "serial positive")
        result = deck.verify()
        kinds = [d.kind for d in result.diagnostics]
        assert kinds == [DiagnosticKind.VERIFIER_FAILED, DiagnosticKind.MISSING_REQUIRED]

    def test_verifier_exception_reported_and_walk_continues(self, make_deck):
        """A predicate that raises on bad data adds a diagnostic and the walk goes on."""
        deck = make_deck({"mesh": {"serial": "one", "parallel": 3}, "dt": "x"})
        mesh = deck.add_table("mesh")
        mesh.add_int("serial")
        mesh.add_int("parallel")
        mesh.register_verifier(lambda view: view["serial"] < view["parallel"], "serial below parallel")
        deck.add_double("dt").required()

        result = deck.verify()

        assert not result
        assert result.paths() == ["mesh", "mesh/serial", "dt"]
        failed = result.diagnostics[0]
        assert failed.kind is DiagnosticKind.VERIFIER_FAILED
        assert "serial below parallel" in failed.message
        assert "TypeError" in failed.message
        assert result.diagnostics[2].kind is DiagnosticKind.TYPE_MISMATCH

    def test_verifier_exception_on_field_value(self, make_deck):
        deck = make_deck({"name": "abc"})
        deck.add_string("name").register_verifier(lambda v: int(v) > 0, "numeric name")
        result = deck.verify()
        assert result.by_kind(DiagnosticKind.VERIFIER_FAILED)[0].path == "name"
        assert "ValueError" in result.diagnostics[0].message

    def test_verifier_not_run_for_absent_optional(self, make_deck):
        calls = []
        deck = make_deck({})
        deck.add_int("x").register_verifier(lambda v: calls.append(v) or False)
        assert deck.verify().ok
        assert calls == []

    def test_deck_level_verifier(self, make_deck):
        deck = make_deck({"a": 1, "b": 2})
        deck.add_int("a")
        deck.add_int("b")
        deck.register_verifier(lambda view: view["a"] + view["b"] == 3, "a + b == 3")
        assert deck.verify().ok


class TestStructArrays:
    """Tests for per-instance verification of struct arrays."""

    def test_each_present_instance_verified(self, make_deck):
        deck = make_deck({"bcs": {7: {"constant": 1.0}, 12: {}}})
        bcs = deck.add_struct_array("bcs")
        bcs.add_double("constant").required()
        result = deck.verify()
        assert result.paths() == ["bcs/12/constant"]

    def test_instance_verifiers(self, make_deck):
        deck = make_deck({"bcs": [{"constant": 1.0}, {"constant": -1.0}]})
        bcs = deck.add_struct_array("bcs")
        bcs.add_double("constant")
        bcs.register_verifier(lambda view: view["constant"] >= 0, "non-negative")
        result = deck.verify()
        assert result.paths() == ["bcs/1"]

    def test_required_struct_array_missing(self, make_deck):
        deck = make_deck({})
        deck.add_struct_array("bcs").required().add_double("constant").required()
        result = deck.verify()
        assert result.paths() == ["bcs"]

    def test_empty_struct_array_passes(self, make_deck):
        deck = make_deck({"bcs": {}})
        deck.add_struct_array("bcs").add_double("constant").required()
        assert deck.verify().ok

    def test_quoted_index_keys_verified(self, make_deck):
        """Instances keyed by digit text are still checked against the template."""
        deck = make_deck({"bcs": {"7": {"constant": 1.0}, "12": {}}})
        deck.add_struct_array("bcs").add_double("constant").required()
        result = deck.verify()
        assert result.paths() == ["bcs/12/constant"]


class TestFunctionVerification:
    """Tests for function binding checks."""

    def test_missing_required_function(self, make_deck):
        deck = make_deck({})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.DOUBLE]).required()
        assert deck.verify().paths() == ["f"]

    def test_not_callable(self, make_deck):
        deck = make_deck({"f": 3.0})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.DOUBLE])
        result = deck.verify()
        assert result.diagnostics[0].kind is DiagnosticKind.TYPE_MISMATCH

    def test_arity_mismatch(self, make_deck):
        """A vector argument needs a callable taking three numbers."""
        deck = make_deck({"f": lambda x: x})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.VEC3D])
        result = deck.verify()
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.SIGNATURE_MISMATCH]

    def test_arity_match(self, make_deck):
        deck = make_deck({"f": lambda x, y, z, t: x})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.VEC3D, ValueType.DOUBLE])
        assert deck.verify().ok

    def test_verifier_calls_function(self, make_deck):
        deck = make_deck({"f": lambda x, y, z: x + y + z})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.VEC3D]).register_verifier(
            lambda func: func.call((1, 2, 3)) == 6.0, "sums components"
        )
        assert deck.verify().ok

    def test_verifier_calls_function_and_fails(self, make_deck):
        deck = make_deck({"f": lambda x, y, z: x * y * z})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.VEC3D]).register_verifier(
            lambda func: func.call((1, 2, 3)) == 7.0, "sums components"
        )
        result = deck.verify()
        assert result.diagnostics[0].kind is DiagnosticKind.VERIFIER_FAILED

    def test_function_error_in_verifier_becomes_call_error(self, make_deck):
        deck = make_deck({"f": lambda x: 1 / x})
        deck.add_function("f", ValueType.DOUBLE, [ValueType.DOUBLE]).register_verifier(
            lambda func: func(0.0) > 0, "positive"
        )
        result = deck.verify()
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.CALL_ERROR]
        assert result.diagnostics[0].path == "f"


class TestVerificationResult:
    """Tests for reporting."""

    def test_success_has_no_diagnostics(self, make_deck):
        deck = make_deck({"dt": 0.5})
        deck.add_double("dt").required()
        result = deck.verify()
        assert result
        assert result.diagnostics == []
        assert result.format_report() == "Input deck is valid."
        result.raise_if_failed()

    def test_raise_if_failed(self, make_deck):
        deck = make_deck({})
        deck.add_double("dt").required()
        result = deck.verify()
        with pytest.raises(VerificationError) as exc_info:
            result.raise_if_failed()
        assert exc_info.value.diagnostics == result.diagnostics

    def test_format_report(self, make_deck):
        deck = make_deck({})
        deck.add_double("dt").required()
        report = deck.verify().format_report()
        assert "Found 1 problem(s)" in report
        assert "[MISSING_REQUIRED] dt" in report

    def test_diagnostics_logged(self, make_deck, caplog):
        deck = make_deck({})
        deck.add_double("dt").required()
        with caplog.at_level(logging.WARNING, logger="inputdeck.lib.verification"):
            deck.verify()
        assert any("MISSING_REQUIRED" in record.getMessage() for record in caplog.records)

    def test_verify_is_repeatable(self, make_deck):
        deck = make_deck({"steps": 0})
        deck.add_int("steps").add_range(1, 10)
        first = deck.verify()
        second = deck.verify()
        assert first.paths() == second.paths() == ["steps"]
