"""
Tests for function literal capture analysis.
"""

import dataclasses

import pytest
from zemscript import parse_source, FunctionLiteral, ScopeTracker, CaptureResult, analyze_function


def _literal(source):
    """Parse ``f = function ...;`` and return the function literal."""
    node = parse_source(source).statements[0].value
    assert isinstance(node, FunctionLiteral)
    return node


def _analyze(source, outer=(), global_names=()):
    return analyze_function(_literal(source), outer, global_names)


# --- ScopeTracker ---

class TestScopeTracker:
    """Name-set bookkeeping for one function body."""

    def test_child_sees_parent_names_as_outer(self):
        parent = ScopeTracker()
        parent.outer.add("a")
        parent.mark_local("b")
        parent.mark_global("g")
        child = parent.child()
        assert child.outer == {"a", "b"}
        assert child.global_names == {"g"}
        assert child.local == set()

    def test_child_global_set_is_a_copy(self):
        parent = ScopeTracker()
        child = parent.child()
        child.mark_global("x")
        assert "x" not in parent.global_names

    def test_read_outer_is_upvalue(self):
        tracker = ScopeTracker.enclosing(["x"]).child()
        tracker.read_variable("x")
        assert tracker.upvalues == {"x"}

    def test_read_unknown_is_ignored(self):
        tracker = ScopeTracker()
        tracker.read_variable("nope")
        assert tracker.upvalues == set()
        assert tracker.local == set()

    def test_write_unknown_is_local(self):
        tracker = ScopeTracker()
        tracker.write_variable("x")
        assert tracker.local == {"x"}

    def test_write_outer_is_upvalue_not_local(self):
        """Assigning an enclosing variable updates it rather than shadowing it."""
        tracker = ScopeTracker.enclosing(["x"]).child()
        tracker.write_variable("x")
        assert tracker.upvalues == {"x"}
        assert tracker.local == set()

    def test_global_wins_over_outer(self):
        tracker = ScopeTracker.enclosing(["x"]).child()
        tracker.mark_global("x")
        tracker.read_variable("x")
        tracker.write_variable("x")
        assert tracker.upvalues == set()
        assert tracker.local == set()

    def test_end_scope_skips_own_locals(self):
        parent = ScopeTracker.enclosing(["a"]).child()
        parent.mark_local("b")
        child = parent.child()
        child.read_variable("a")
        child.read_variable("b")
        parent.end_scope(child)
        assert parent.upvalues == {"a"}


# --- analyze_function ---

class TestAnalyzeFunction:
    """Captures computed for whole function literals."""

    def test_no_captures(self):
        result = _analyze("f = function(a) { b = a; return b; };")
        assert result.upvalues == frozenset()
        assert result.locals == {"a", "b"}

    def test_result_is_immutable(self):
        result = _analyze("f = function() { };")
        assert isinstance(result, CaptureResult)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.upvalues = frozenset({"x"})

    def test_captures_outer_read(self):
        result = _analyze("f = function() { return i; };", outer=["i"])
        assert result.upvalues == {"i"}

    def test_counter_body(self):
        """The counter closure both reads and writes the captured variable."""
        result = _analyze("f = function() { i = i + 1; return i; };", outer=["i"])
        assert result.upvalues == {"i"}
        assert result.locals == frozenset()

    def test_parameter_shadows_outer(self):
        result = _analyze("f = function(a) { return a; };", outer=["a"])
        assert result.upvalues == frozenset()

    def test_default_resolved_before_parameter(self):
        """A default reads the enclosing binding, not the parameter itself."""
        result = _analyze("f = function(y = x) { return y; };", outer=["x"])
        assert result.upvalues == {"x"}
        assert result.locals == {"y"}

    def test_later_default_sees_earlier_parameter(self):
        result = _analyze("f = function(a, b = a) { return b; };", outer=["a"])
        assert result.upvalues == frozenset()

    def test_unresolved_read_is_not_captured(self):
        result = _analyze("f = function() { return missing; };")
        assert result.upvalues == frozenset()
        assert result.locals == frozenset()

    def test_nested_function_propagates_upvalue(self):
        result = _analyze(
            "f = function() { return function() { return x; }; };", outer=["x"]
        )
        assert result.upvalues == {"x"}

    def test_nested_capture_of_own_local(self):
        result = _analyze("f = function() { x = 1; return function() { return x; }; };")
        assert result.upvalues == frozenset()
        assert result.locals == {"x"}

    def test_global_declaration(self):
        result = _analyze("f = function() { global x; x = 1; };", outer=["x"])
        assert result.upvalues == frozenset()
        assert result.locals == frozenset()
        assert result.global_names == {"x"}

    def test_inherited_global_names(self):
        result = _analyze("f = function() { x = 2; };", outer=["x"], global_names=["x"])
        assert result.upvalues == frozenset()
        assert result.global_names == {"x"}

    def test_global_applies_to_nested_functions(self):
        result = _analyze(
            "f = function() { global g; g = 1; h = function() { g = 2; }; };", outer=["g"]
        )
        assert result.upvalues == frozenset()
        assert result.locals == {"h"}

    def test_foreach_variables(self):
        result = _analyze(
            "f = function() { foreach (xs as k : v) { t = v; } };", outer=["xs"]
        )
        assert result.upvalues == {"xs"}
        assert result.locals == {"k", "v", "t"}

    def test_lookup_target_is_a_read(self):
        result = _analyze("f = function() { d['k'] = 1; };", outer=["d"])
        assert result.upvalues == {"d"}
        assert result.locals == frozenset()

    def test_call_arguments_are_reads(self):
        result = _analyze("f = function() { g(a, b[c]); };", outer=["g", "a", "b", "c"])
        assert result.upvalues == {"g", "a", "b", "c"}

    def test_analysis_is_repeatable(self):
        """Analysis does not modify the tree."""
        node = _literal("f = function() { return function() { return x; }; };")
        first = analyze_function(node, ["x"])
        second = analyze_function(node, ["x"])
        assert first == second
