"""Evaluation order for formula variables.

Formulas reference other variables by name. Sampled variables are known
before any formula runs, so only formula-to-formula references constrain
the order. The resolver walks those references depth first with three-state
colouring and reports a cycle as soon as it re-enters a formula that is
still being visited.
"""

from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence

from .data_models import Variable
from .exceptions import CircularDependencyError, DuplicateVariableError
from .logging_config import get_logger

logger = get_logger(__name__)

ExtractRefs = Callable[[str], Iterable[str]]


class VisitState(Enum):
    """Traversal colour of a formula."""
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def index_by_name(variables: Sequence[Variable]) -> Dict[str, Variable]:
    """Map names to variables, rejecting duplicate names."""
    by_name: Dict[str, Variable] = {}
    for variable in variables:
        if variable.name in by_name:
            raise DuplicateVariableError(variable.name)
        by_name[variable.name] = variable
    return by_name


class DependencyResolver:
    """Orders formula variables so each runs after the formulas it references."""

    def __init__(self, variables: Sequence[Variable], extract_refs: ExtractRefs):
        """Initialize resolver.

        Args:
            variables: Full variable set of the model, used for name lookup
            extract_refs: Returns the known variable names an expression references
        """
        self.by_name = index_by_name(variables)
        self.extract_refs = extract_refs
        self.warnings: List[str] = []

    def resolve(self, formulas: Sequence[Variable]) -> List[Variable]:
        """Compute the evaluation order.

        Args:
            formulas: Formula variables in declared order

        Returns:
            Formulas ordered so that dependencies come first

        Raises:
            CircularDependencyError: If formulas reference each other in a cycle
        """
        state: Dict[str, VisitState] = {}
        path: List[str] = []
        order: List[Variable] = []

        def visit(variable: Variable) -> None:
            current = state.get(variable.name, VisitState.UNVISITED)
            if current == VisitState.IN_PROGRESS:
                cycle = path[path.index(variable.name):] + [variable.name]
                raise CircularDependencyError(variable.name, cycle)
            if current == VisitState.DONE:
                return

            state[variable.name] = VisitState.IN_PROGRESS
            path.append(variable.name)

            for name in self._references(variable):
                referenced = self.by_name.get(name)
                if referenced is not None and referenced.is_formula:
                    visit(referenced)

            path.pop()
            state[variable.name] = VisitState.DONE
            order.append(variable)

        for formula in formulas:
            if state.get(formula.name, VisitState.UNVISITED) == VisitState.UNVISITED:
                visit(formula)

        logger.debug(f"Formula evaluation order: {[v.name for v in order]}")
        return order

    def _references(self, variable: Variable) -> List[str]:
        """Referenced names of a formula; extraction failures count as no references."""
        try:
            return list(self.extract_refs(variable.expression or ""))
        except Exception as e:
            message = f"Failed to parse dependencies for {variable.name}: {e}"
            logger.warning(message)
            self.warnings.append(message)
            return []


def resolve_evaluation_order(
    formulas: Sequence[Variable],
    variables: Sequence[Variable],
    extract_refs: ExtractRefs,
) -> List[Variable]:
    """Order formula variables so each is evaluated after the formulas it depends on.

    Args:
        formulas: Formula variables in declared order
        variables: Full variable set, for name lookup
        extract_refs: Returns the known variable names an expression references

    Returns:
        Formulas in a valid evaluation order

    Raises:
        CircularDependencyError: If a cycle exists
        DuplicateVariableError: If two variables share a name
    """
    return DependencyResolver(variables, extract_refs).resolve(formulas)
