"""Tests for formula evaluation ordering."""

import pytest

from fermi_tool.core.data_models import Variable, VariableKind
from fermi_tool.core.dependency import DependencyResolver, index_by_name, resolve_evaluation_order
from fermi_tool.core.exceptions import CircularDependencyError, DuplicateVariableError
from fermi_tool.core.expressions import ExpressionEvaluator


def formula(name, expression):
    return Variable.create(name, VariableKind.FORMULA, {"expression": expression})


def constant(name, value=1):
    return Variable.create(name, VariableKind.CONSTANT, {"value": value})


def order_of(variables):
    evaluator = ExpressionEvaluator(v.name for v in variables)
    formulas = [v for v in variables if v.is_formula]
    return [v.name for v in resolve_evaluation_order(formulas, variables, evaluator.extract_refs)]


class TestDependencyResolver:
    """Test dependency resolution."""

    def test_chain_resolved(self):
        """A = B + 1, B = C * 2 resolves to [B, A]."""
        variables = [formula("A", "B + 1"), formula("B", "C * 2"), constant("C")]
        assert order_of(variables) == ["B", "A"]

    def test_two_cycle_detected(self):
        """A = B, B = A is a cycle."""
        variables = [formula("A", "B"), formula("B", "A")]

        with pytest.raises(CircularDependencyError) as exc_info:
            order_of(variables)

        assert exc_info.value.variable == "A"
        assert "Circular dependency detected involving A" in str(exc_info.value)
        assert exc_info.value.cycle == ["A", "B", "A"]

    def test_self_reference_is_cycle(self):
        """A formula referencing itself is a cycle."""
        with pytest.raises(CircularDependencyError):
            order_of([formula("A", "A + 1")])

    def test_longer_cycle(self):
        """Cycle detection through several formulas."""
        variables = [constant("X"), formula("A", "C + X"), formula("B", "A"), formula("C", "B")]
        with pytest.raises(CircularDependencyError) as exc_info:
            order_of(variables)
        assert exc_info.value.cycle == ["A", "C", "B", "A"]

    @pytest.mark.parametrize("expression", ["B*0 + 1", "B - B + 1", "0 * B"])
    def test_cycle_through_cancelling_terms(self, expression):
        """A reference multiplied by zero or cancelled out is still a dependency."""
        variables = [formula("A", expression), formula("B", "A")]

        with pytest.raises(CircularDependencyError) as exc_info:
            order_of(variables)

        assert exc_info.value.cycle == ["A", "B", "A"]

    def test_declared_order_kept_for_independent_formulas(self):
        """Independent formulas keep their declared order."""
        variables = [constant("X"), formula("P", "X * 2"), formula("Q", "X + 1"), formula("R", "X")]
        assert order_of(variables) == ["P", "Q", "R"]

    def test_diamond(self):
        """Shared dependencies appear once, before every dependant."""
        variables = [
            constant("X"),
            formula("Top", "Left + Right"),
            formula("Left", "Base * 2"),
            formula("Right", "Base + 1"),
            formula("Base", "X"),
        ]
        order = order_of(variables)

        assert order == ["Base", "Left", "Right", "Top"]
        assert len(order) == len(set(order))

    def test_non_formula_references_ignored(self):
        """Sampled variables are not part of the order."""
        variables = [constant("A"), constant("B"), formula("F", "A * B")]
        assert order_of(variables) == ["F"]

    def test_unknown_names_ignored(self):
        """References to undefined names do not invent variables."""
        variables = [constant("A"), formula("F", "A * Missing")]
        assert order_of(variables) == ["F"]

    def test_extraction_failure_treated_as_no_dependencies(self):
        """A formula that fails to parse still gets ordered, with a warning."""
        variables = [constant("A"), formula("Bad", "A +* ("), formula("Good", "A + 1")]
        evaluator = ExpressionEvaluator(v.name for v in variables)
        resolver = DependencyResolver(variables, evaluator.extract_refs)

        order = resolver.resolve([v for v in variables if v.is_formula])

        assert [v.name for v in order] == ["Bad", "Good"]
        assert len(resolver.warnings) == 1
        assert "Failed to parse dependencies for Bad" in resolver.warnings[0]

    def test_extraction_failure_does_not_hide_dependants(self):
        """Formulas depending on an unparsable formula are still ordered after it."""
        variables = [formula("Top", "Bad * 2"), formula("Bad", "(((")]
        assert order_of(variables) == ["Bad", "Top"]

    def test_custom_extractor(self):
        """Any callable returning referenced names can drive the resolver."""
        variables = [formula("A", "uses B"), formula("B", "nothing")]
        refs = {"uses B": ["B"], "nothing": []}

        order = resolve_evaluation_order(variables, variables, lambda e: refs[e])

        assert [v.name for v in order] == ["B", "A"]

    def test_duplicate_names_rejected(self):
        """Duplicate names are rejected before resolution."""
        variables = [constant("A"), formula("A", "1")]
        with pytest.raises(DuplicateVariableError):
            DependencyResolver(variables, lambda e: [])

    def test_index_by_name(self):
        variables = [constant("A"), constant("B")]
        assert list(index_by_name(variables)) == ["A", "B"]
