"""Monte Carlo simulation orchestration.

The engine runs independent trials over a model. Each trial samples every
non-formula variable, evaluates the formulas in dependency order and records
the value of the output variable. A failing formula yields NaN for that
trial only; a dependency cycle aborts the run before any sampling.
"""

import math
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from .data_models import SimulationConfig, Variable, parse_variables
from .dependency import DependencyResolver, index_by_name
from .distributions import Distribution, build_distribution, sample
from .exceptions import DistributionParameterError, ExpressionError, SimulationConfigError
from .expressions import ExpressionEvaluator
from .logging_config import LoggingContext, get_logger, log_performance
from .performance import PerformanceTimer
from ..reporting.reporting import ResultsCalculator, SimulationResults

logger = get_logger(__name__)


@dataclass
class SimulationRun:
    """Raw output of a run. Unpacks as ``outcomes, errors``."""
    outcomes: np.ndarray
    errors: int
    error_counts: Dict[str, int] = field(default_factory=dict)
    evaluation_order: List[str] = field(default_factory=list)
    output_variable: Optional[str] = None
    configuration_errors: Dict[str, str] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __iter__(self):
        return iter((self.outcomes, self.errors))


class SimulationEngine:
    """Main Monte Carlo simulation engine."""

    def __init__(self, config: Optional[SimulationConfig] = None) -> None:
        """Initialize simulation engine.

        Args:
            config: Simulation configuration
        """
        self.config: SimulationConfig = config or SimulationConfig()
        self.random_state: np.random.RandomState = np.random.RandomState(self.config.random_seed)

    def run(self, variables: Sequence[Variable], iterations: Optional[int] = None) -> SimulationRun:
        """Run ``iterations`` independent trials.

        Args:
            variables: Model variables in declared order
            iterations: Number of trials; defaults to ``config.iterations``

        Returns:
            Outcome array (one entry per trial, NaN for failed trials) and
            the number of failed formula evaluations

        Raises:
            CircularDependencyError: If formulas reference each other in a cycle
            DuplicateVariableError: If two variables share a name
            SimulationConfigError: If the iteration count or output variable is invalid
        """
        iterations = self.config.iterations if iterations is None else iterations
        if iterations <= 0:
            raise SimulationConfigError(
                f"Number of iterations must be positive, got {iterations}",
                config_key='iterations', config_value=iterations
            )

        variables = list(variables)
        by_name = index_by_name(variables)
        if not variables:
            logger.warning("Model has no variables; no outcomes produced")
            return SimulationRun(outcomes=np.empty(0), errors=0)

        output_name = self._output_name(variables, by_name)

        evaluator = ExpressionEvaluator(by_name)
        resolver = DependencyResolver(variables, evaluator.extract_refs)
        order = resolver.resolve([v for v in variables if v.is_formula])

        distributions, configuration_errors = self._build_distributions(variables)
        formulas = self._compile_formulas(order, evaluator)

        run_id = uuid.uuid4().hex[:8]
        with LoggingContext(logger, run_id=run_id, component='engine'):
            logger.info(
                f"Running {iterations:,} trials over {len(variables)} variables "
                f"({len(order)} formulas), output '{output_name}'"
            )
            outcomes, error_counts = self._run_trials(
                variables, distributions, formulas, output_name, iterations
            )

        errors = sum(error_counts.values())
        if errors:
            logger.warning(
                f"{errors:,} formula evaluations failed and were recorded as NaN: {error_counts}"
            )

        return SimulationRun(
            outcomes=outcomes,
            errors=errors,
            error_counts=error_counts,
            evaluation_order=[v.name for v in order],
            output_variable=output_name,
            configuration_errors=configuration_errors,
            warnings=list(resolver.warnings),
        )

    def _output_name(self, variables: List[Variable], by_name: Dict[str, Variable]) -> str:
        """The configured output variable, or the last declared one."""
        if self.config.output is None:
            return variables[-1].name
        if self.config.output not in by_name:
            raise SimulationConfigError(
                f"Output variable '{self.config.output}' is not defined in the model",
                config_key='output', config_value=self.config.output
            )
        return self.config.output

    def _build_distributions(self, variables: List[Variable]):
        """One distribution per sampled variable; invalid parameters map to None."""
        distributions: Dict[str, Optional[Distribution]] = {}
        configuration_errors: Dict[str, str] = {}

        for variable in variables:
            if variable.is_formula:
                continue
            try:
                distributions[variable.name] = build_distribution(variable)
            except DistributionParameterError as e:
                if self.config.strict:
                    raise
                logger.warning(f"{e.message}; '{variable.name}' will be sampled as NaN")
                configuration_errors[variable.name] = e.message
                distributions[variable.name] = None

        return distributions, configuration_errors

    def _compile_formulas(self, order: List[Variable], evaluator: ExpressionEvaluator):
        """Compile each formula once; a formula that does not compile fails every trial."""
        formulas = []
        for variable in order:
            expression = variable.expression or ""
            try:
                formulas.append((variable.name, evaluator.compile(expression)))
            except ExpressionError as e:
                logger.warning(f"Error evaluating {variable.name}: {e.message}")
                formulas.append((variable.name, None))
        return formulas

    def _run_trials(self,
                    variables: List[Variable],
                    distributions: Dict[str, Optional[Distribution]],
                    formulas: List[tuple],
                    output_name: str,
                    iterations: int):
        """The per-trial loop."""
        sampled = [(v.name, distributions[v.name]) for v in variables if not v.is_formula]
        error_counts: Dict[str, int] = {}
        outcomes = np.empty(iterations, dtype=float)
        random_state = self.random_state

        for trial in range(iterations):
            context: Dict[str, float] = {}

            for name, distribution in sampled:
                context[name] = math.nan if distribution is None else sample(distribution, random_state)

            for name, compiled in formulas:
                if compiled is None:
                    context[name] = math.nan
                    error_counts[name] = error_counts.get(name, 0) + 1
                    continue
                try:
                    context[name] = compiled(context)
                except ExpressionError as e:
                    context[name] = math.nan
                    count = error_counts.get(name, 0) + 1
                    error_counts[name] = count
                    if count == 1:
                        logger.warning(f"Error evaluating {name} (trial {trial}): {e.reason}")
                    else:
                        logger.debug(f"Error evaluating {name} (trial {trial}): {e.reason}")

            outcomes[trial] = context.get(output_name, math.nan)

        return outcomes, error_counts


@log_performance
def run_simulation(model_data: Sequence[Any],
                   config_data: Optional[Dict[str, Any]] = None) -> SimulationResults:
    """Main entry point for running simulations.

    Args:
        model_data: Variable records (dicts or ``Variable`` instances) in declared order
        config_data: Optional configuration dictionary

    Returns:
        Simulation results including summary statistics and histogram
    """
    variables = parse_variables(list(model_data))
    config = SimulationConfig(**(config_data or {}))

    engine = SimulationEngine(config)
    with PerformanceTimer("simulation") as timer:
        run = engine.run(variables)

    statistics, histogram = ResultsCalculator.summarize(run.outcomes, config.bin_count)
    if statistics is None and len(run.outcomes):
        logger.warning("No finite outcomes; statistics are not available")

    return SimulationResults(
        output_variable=run.output_variable,
        iterations=len(run.outcomes),
        random_seed=config.random_seed,
        outcomes=run.outcomes.tolist(),
        failed_evaluations=run.errors,
        error_counts=run.error_counts,
        evaluation_order=run.evaluation_order,
        configuration_errors=run.configuration_errors,
        warnings=run.warnings,
        statistics=statistics,
        histogram=histogram,
        simulation_time=timer.duration,
    )
