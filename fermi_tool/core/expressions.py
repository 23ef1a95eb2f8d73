"""Formula expressions: parsing, referenced names and evaluation.

Expressions are parsed with sympy. Every model variable name is bound to a
plain ``Symbol`` so that names like ``E``, ``N`` or ``beta`` refer to the
variable rather than to a sympy built-in. ``^`` is exponentiation and the
usual calculator functions (``min``, ``max``, ``abs``, ``sqrt``, ``log``,
``exp``, trigonometric functions) as well as ``e`` and ``pi`` are available.

Parsing keeps the expression exactly as written (no automatic
simplification), so every name the formula mentions stays a dependency
and an input that is NaN or undefined still makes the result NaN.

Compiled expressions are cached per evaluator, so a simulation run parses
each formula once and only calls the compiled function per trial.
"""

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Set, Tuple

import sympy
from sympy.core.function import AppliedUndef
from sympy.parsing.sympy_parser import convert_xor, parse_expr, standard_transformations

from .exceptions import ExpressionError
from .logging_config import get_logger

logger = get_logger(__name__)

_TRANSFORMATIONS = standard_transformations + (convert_xor,)

_BUILTINS = {
    "min": sympy.Min,
    "max": sympy.Max,
    "abs": sympy.Abs,
    "e": sympy.E,
    "pi": sympy.pi,
}


class CompiledExpression:
    """A parsed formula ready to be evaluated against a context."""

    def __init__(self, expression: str, argument_names: Tuple[str, ...], function: Callable):
        self.expression = expression
        self.argument_names = argument_names
        self.function = function

    def __call__(self, context: Mapping[str, float]) -> float:
        missing = [name for name in self.argument_names if name not in context]
        if missing:
            raise ExpressionError(self.expression, f"Undefined symbol {missing[0]}")

        try:
            value = self.function(*(context[name] for name in self.argument_names))
        except ZeroDivisionError as e:
            raise ExpressionError(self.expression, "division by zero", cause=e) from e
        except (ArithmeticError, ValueError, TypeError, NameError) as e:
            raise ExpressionError(self.expression, str(e), cause=e) from e

        if isinstance(value, complex):
            if value.imag != 0:
                raise ExpressionError(self.expression, f"non-real result {value}")
            value = value.real
        try:
            return float(value)
        except (TypeError, ValueError) as e:
            raise ExpressionError(self.expression, f"non-numeric result {value}", cause=e) from e


class ExpressionEvaluator:
    """Parses and evaluates formula expressions over a fixed set of variable names."""

    def __init__(self, known_names: Iterable[str] = ()):
        """Initialize evaluator.

        Args:
            known_names: Variable names of the model, in declaration order
        """
        self.known_names: List[str] = list(dict.fromkeys(known_names))
        self._order = {name: i for i, name in enumerate(self.known_names)}
        self._local_dict = dict(_BUILTINS)
        self._local_dict.update({name: sympy.Symbol(name) for name in self.known_names})
        self._parsed: Dict[str, sympy.Expr] = {}
        self._compiled: Dict[str, CompiledExpression] = {}
        self._failures: Dict[str, str] = {}

    def parse(self, expression: Optional[str]) -> sympy.Expr:
        """Parse an expression string.

        Args:
            expression: Expression text

        Returns:
            Parsed sympy expression

        Raises:
            ExpressionError: If the expression is empty or malformed
        """
        if expression is None or not str(expression).strip():
            raise ExpressionError(str(expression or ""), "empty expression")

        if expression in self._parsed:
            return self._parsed[expression]
        if expression in self._failures:
            raise ExpressionError(expression, self._failures[expression])

        try:
            parsed = parse_expr(
                expression,
                local_dict=dict(self._local_dict),
                transformations=_TRANSFORMATIONS,
                evaluate=False,
            )
        except Exception as e:
            # parse_expr surfaces tokenizer, syntax and sympify failures alike
            self._failures[expression] = f"parse error: {e}"
            raise ExpressionError(expression, self._failures[expression], cause=e) from e

        if not isinstance(parsed, sympy.Basic):
            self._failures[expression] = "not an arithmetic expression"
            raise ExpressionError(expression, self._failures[expression])

        self._parsed[expression] = parsed
        return parsed

    def _sort_key(self, name: str):
        return (0, self._order[name], name) if name in self._order else (1, 0, name)

    def referenced_names(self, expression: str) -> List[str]:
        """Every free identifier of an expression, known names first in declaration order."""
        parsed = self.parse(expression)
        names = {symbol.name for symbol in parsed.free_symbols}
        names.update(
            function.func.__name__
            for function in parsed.atoms(AppliedUndef)
        )
        return sorted(names, key=self._sort_key)

    def extract_refs(self, expression: str) -> List[str]:
        """Referenced names that are known variables; unknown identifiers are ignored."""
        parsed = self.parse(expression)
        names: Set[str] = {symbol.name for symbol in parsed.free_symbols}
        return [name for name in self.known_names if name in names]

    def unknown_names(self, expression: str) -> List[str]:
        """Referenced identifiers that are not model variables."""
        known = set(self.known_names)
        return [name for name in self.referenced_names(expression) if name not in known]

    def compile(self, expression: str) -> CompiledExpression:
        """Compile an expression once for repeated evaluation."""
        if expression in self._compiled:
            return self._compiled[expression]

        parsed = self.parse(expression)
        undefined_functions = parsed.atoms(AppliedUndef)
        if undefined_functions:
            name = sorted(f.func.__name__ for f in undefined_functions)[0]
            raise ExpressionError(expression, f"Unknown function {name}")
        if parsed.has(sympy.zoo, sympy.nan):
            raise ExpressionError(expression, "undefined result (division by zero)")

        symbols = sorted(parsed.free_symbols, key=lambda s: self._sort_key(s.name))
        argument_names = tuple(symbol.name for symbol in symbols)
        function = sympy.lambdify(symbols, parsed, modules="math")

        logger.debug(f"Compiled expression '{expression}' over {list(argument_names)}")
        compiled = CompiledExpression(expression, argument_names, function)
        self._compiled[expression] = compiled
        return compiled

    def evaluate(self, expression: str, context: Mapping[str, float]) -> float:
        """Evaluate an expression against a name-to-value mapping.

        Raises:
            ExpressionError: On malformed expressions, unknown functions,
                undefined symbols or arithmetic failures
        """
        return self.compile(expression)(context)
