"""Fermi Estimation Tool.

A Monte Carlo engine for Fermi estimates: decompose an uncertain quantity
into component random variables, sample them many times and propagate the
samples through formulas to get a distribution of the result.
"""

__version__ = "1.0.0"
__author__ = "Fermi Estimation Team"

# Core functionality
from .core.engine import SimulationEngine, run_simulation
from .core.data_models import Variable, VariableKind, SimulationConfig

# Results and reporting
from .reporting.reporting import SimulationResults, summarize

# Exception handling
from .core.exceptions import (
    FermiToolError,
    ValidationError,
    ComputationError,
    CircularDependencyError,
    ModelIOError,
)

# Logging configuration
from .core.logging_config import setup_logging, get_logger

__all__ = [
    # Core functionality
    "SimulationEngine",
    "run_simulation",
    "Variable",
    "VariableKind",
    "SimulationConfig",
    # Results and reporting
    "SimulationResults",
    "summarize",
    # Exception handling
    "FermiToolError",
    "ValidationError",
    "ComputationError",
    "CircularDependencyError",
    "ModelIOError",
    # Logging
    "setup_logging",
    "get_logger",
]
