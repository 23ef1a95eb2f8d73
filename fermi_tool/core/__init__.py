"""Core Fermi estimation engine."""

# Model and distributions
from .data_models import Variable, VariableKind, SimulationConfig, parse_variables
from .distributions import (
    UniformDistribution, NormalDistribution, LogNormalDistribution,
    PERTDistribution, ConstantDistribution, Distribution,
    build_distribution, sample, draw, get_distribution_stats,
)

# Formulas and ordering
from .expressions import ExpressionEvaluator
from .dependency import DependencyResolver, resolve_evaluation_order

# Simulation
from .engine import SimulationEngine, SimulationRun, run_simulation

# Validation
from .validation import ValidationEngine, validate_simulation_inputs

# Exception handling and logging
from .exceptions import (
    FermiToolError, ValidationError, ComputationError,
    CircularDependencyError, ExpressionError, DistributionParameterError,
)
from .logging_config import setup_logging, get_logger

__all__ = [
    # Model and distributions
    'Variable', 'VariableKind', 'SimulationConfig', 'parse_variables',
    'UniformDistribution', 'NormalDistribution', 'LogNormalDistribution',
    'PERTDistribution', 'ConstantDistribution', 'Distribution',
    'build_distribution', 'sample', 'draw', 'get_distribution_stats',

    # Formulas and ordering
    'ExpressionEvaluator', 'DependencyResolver', 'resolve_evaluation_order',

    # Simulation
    'SimulationEngine', 'SimulationRun', 'run_simulation',

    # Validation
    'ValidationEngine', 'validate_simulation_inputs',

    # Exception handling and logging
    'FermiToolError', 'ValidationError', 'ComputationError',
    'CircularDependencyError', 'ExpressionError', 'DistributionParameterError',
    'setup_logging', 'get_logger',
]
