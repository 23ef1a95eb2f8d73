"""Validation engine for models and simulation settings.

Checks a model before it is run and reports problems as readable messages,
split into errors (the run would abort or a variable would only produce NaN)
and warnings (the run goes ahead but the result is probably not what was
meant).
"""

from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as PydanticValidationError

from .data_models import SimulationConfig, Variable, VariableKind
from .dependency import DependencyResolver
from .distributions import build_distribution
from .exceptions import CircularDependencyError, DistributionParameterError, ExpressionError
from .expressions import ExpressionEvaluator


class ValidationEngine:
    """Model validation engine."""

    def __init__(self, fail_on_warnings: bool = False):
        """Initialize validation engine.

        Args:
            fail_on_warnings: Whether to treat warnings as errors
        """
        self.fail_on_warnings = fail_on_warnings
        self.errors: List[str] = []
        self.warnings: List[str] = []

    def _result(self) -> Tuple[bool, List[str], List[str]]:
        is_valid = len(self.errors) == 0 and (not self.fail_on_warnings or len(self.warnings) == 0)
        return is_valid, self.errors.copy(), self.warnings.copy()

    def validate_model(self, records: List[Any]) -> Tuple[bool, List[str], List[str]]:
        """Validate a model.

        Args:
            records: Variable records (dicts or ``Variable`` instances) in declared order

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors = []
        self.warnings = []

        if not isinstance(records, list):
            self.errors.append("Model must be a list of variable records")
            return self._result()

        if not records:
            self.warnings.append("Model has no variables - simulation will produce no outcomes")
            return self._result()

        variables = self._parse_records(records)
        unique = self._check_names(variables)

        for variable in variables:
            if variable.is_formula:
                continue
            self._validate_parameters(variable)

        evaluator = ExpressionEvaluator(v.name for v in unique)
        formulas = [v for v in unique if v.is_formula]
        for formula in formulas:
            self._validate_formula(formula, evaluator)

        # Cycles only make sense once names are unique
        if len(unique) == len(variables):
            self._check_cycles(unique, formulas, evaluator)

        return self._result()

    def _parse_records(self, records: List[Any]) -> List[Variable]:
        variables = []
        for i, record in enumerate(records):
            if isinstance(record, Variable):
                variables.append(record)
                continue
            if not isinstance(record, dict):
                self.errors.append(f"Variable {i}: record must be an object")
                continue
            try:
                variables.append(Variable(**record))
            except PydanticValidationError as e:
                label = record.get('name') or i
                for error in e.errors():
                    field = ".".join(str(part) for part in error['loc'])
                    self.errors.append(f"Variable {label}: {field}: {error['msg']}")
        return variables

    def _check_names(self, variables: List[Variable]) -> List[Variable]:
        """Report empty and duplicate names; returns the first variable of each name."""
        seen: Dict[str, Variable] = {}
        ids = set()
        for variable in variables:
            if not variable.name.strip():
                self.errors.append(f"Variable {variable.id}: name must not be empty")
            if variable.name in seen:
                self.errors.append(f"Duplicate variable name '{variable.name}'")
            else:
                seen[variable.name] = variable
            if variable.id in ids:
                self.warnings.append(f"Duplicate variable id '{variable.id}'")
            ids.add(variable.id)
        return list(seen.values())

    def _validate_parameters(self, variable: Variable):
        """Distribution parameter checks."""
        try:
            distribution = build_distribution(variable)
        except DistributionParameterError as e:
            self.errors.append(f"{variable.name}: {e.message}")
            return

        if variable.type == VariableKind.UNIFORM and distribution.max < distribution.min:
            self.warnings.append(
                f"{variable.name}: Uniform max {distribution.max} is below min {distribution.min}"
            )
        elif variable.type == VariableKind.UNIFORM and distribution.max == distribution.min:
            self.warnings.append(f"{variable.name}: Uniform range is empty - variable is constant")
        elif variable.type == VariableKind.NORMAL and distribution.std_dev < 0:
            self.warnings.append(
                f"{variable.name}: Normal stdDev {distribution.std_dev} is negative"
            )

    def _validate_formula(self, formula: Variable, evaluator: ExpressionEvaluator):
        expression = formula.expression
        try:
            evaluator.compile(expression or "")
        except ExpressionError as e:
            self.errors.append(f"{formula.name}: {e.message}")
            return

        unknown = evaluator.unknown_names(expression)
        if unknown:
            self.warnings.append(
                f"{formula.name}: references undefined names {unknown} - every trial will be NaN"
            )

    def _check_cycles(self, variables: List[Variable], formulas: List[Variable],
                      evaluator: ExpressionEvaluator):
        resolver = DependencyResolver(variables, evaluator.extract_refs)
        try:
            resolver.resolve(formulas)
        except CircularDependencyError as e:
            self.errors.append(f"{e.message}: {' -> '.join(e.cycle)}")

    def validate_simulation_config(self, config_data: Dict[str, Any]) -> Tuple[bool, List[str], List[str]]:
        """Validate simulation configuration.

        Args:
            config_data: Configuration dictionary

        Returns:
            Tuple of (is_valid, errors, warnings)
        """
        self.errors = []
        self.warnings = []

        try:
            config = SimulationConfig(**config_data)
        except PydanticValidationError as e:
            for error in e.errors():
                field = ".".join(str(part) for part in error['loc'])
                self.errors.append(f"Configuration {field}: {error['msg']}")
            return self._result()

        if config.iterations < 1000:
            self.warnings.append(
                f"Low iteration count ({config.iterations}) - percentiles may be unstable"
            )
        elif config.iterations > 1000000:
            self.warnings.append(
                f"Very high iteration count ({config.iterations:,}) - simulation may be slow"
            )

        return self._result()


def validate_simulation_inputs(model_data: List[Any],
                               config_data: Optional[Dict[str, Any]] = None,
                               fail_on_warnings: bool = False) -> Tuple[bool, List[str], List[str]]:
    """Validate a model and its configuration.

    Args:
        model_data: Variable records
        config_data: Optional configuration data
        fail_on_warnings: Whether to treat warnings as errors

    Returns:
        Tuple of (is_valid, all_errors, all_warnings)
    """
    validator = ValidationEngine(fail_on_warnings)

    all_errors = []
    all_warnings = []

    _, errors, warnings = validator.validate_model(model_data)
    all_errors.extend(errors)
    all_warnings.extend(warnings)

    if config_data:
        _, errors, warnings = validator.validate_simulation_config(config_data)
        all_errors.extend(errors)
        all_warnings.extend(warnings)

        output = config_data.get('output')
        names = {r.get('name') if isinstance(r, dict) else getattr(r, 'name', None)
                 for r in model_data if isinstance(r, (dict, Variable))}
        if output and output not in names:
            all_errors.append(f"Output variable '{output}' is not defined in the model")

    is_valid = len(all_errors) == 0 and (not fail_on_warnings or len(all_warnings) == 0)
    return is_valid, all_errors, all_warnings
