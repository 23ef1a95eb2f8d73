"""Probability distributions for Monte Carlo simulation.

Every supported kind is a small frozen parameter model, and ``sample``
dispatches on its ``kind``. Distributions carry no sampling state: all
randomness comes from the ``numpy.random.RandomState`` handed to ``sample``,
so one generator per engine (or per thread) is all that is needed.
"""

import math
from typing import Any, Dict, Literal, Tuple, Union

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, model_validator
from scipy import stats

from .data_models import Variable, VariableKind
from .exceptions import DistributionParameterError

# Two-sided 90% interval z-score, used for every LogNormal interval
LOGNORMAL_INTERVAL_Z = 1.645
DEFAULT_PERT_LAMBDA = 4.0


class BaseDistribution(BaseModel):
    """Base distribution parameters."""

    model_config = ConfigDict(frozen=True)


class UniformDistribution(BaseDistribution):
    """Uniform distribution on [min, max)."""

    kind: Literal[VariableKind.UNIFORM] = VariableKind.UNIFORM
    min: float
    max: float


class NormalDistribution(BaseDistribution):
    """Normal distribution, sampled with the Box-Muller transform."""

    kind: Literal[VariableKind.NORMAL] = VariableKind.NORMAL
    mean: float
    std_dev: float


class LogNormalDistribution(BaseDistribution):
    """Log-normal distribution; ``mu`` and ``sigma`` describe ln(X)."""

    kind: Literal[VariableKind.LOGNORMAL] = VariableKind.LOGNORMAL
    mu: float
    sigma: float

    @classmethod
    def from_confidence_interval(
        cls, low: float, high: float, confidence: float = 0.90
    ) -> "LogNormalDistribution":
        """Build a log-normal whose 5th/95th percentiles are ``low``/``high``.

        ``confidence`` is accepted for interface compatibility only: the
        z-score is always 1.645, i.e. the interval is read as a 90% interval
        whatever value is passed.

        Args:
            low: Lower bound of the interval, strictly positive
            high: Upper bound of the interval, greater than ``low``
            confidence: Nominal confidence level (ignored)

        Returns:
            Log-normal distribution

        Raises:
            DistributionParameterError: If ``0 < low < high`` does not hold
        """
        if not low > 0:
            raise DistributionParameterError(
                f"Low {low} must be positive", "LogNormal", "low", low
            )
        if not high > low:
            raise DistributionParameterError(
                f"High {high} must be greater than low {low}", "LogNormal", "high", high
            )

        log_low = math.log(low)
        log_high = math.log(high)
        mu = (log_low + log_high) / 2
        sigma = (log_high - log_low) / (2 * LOGNORMAL_INTERVAL_Z)
        return cls(mu=mu, sigma=sigma)


class PERTDistribution(BaseDistribution):
    """PERT distribution: a Beta scaled to [min, max] with a most likely value."""

    kind: Literal[VariableKind.PERT] = VariableKind.PERT
    min: float
    mode: float
    max: float
    lambda_: float = Field(DEFAULT_PERT_LAMBDA, ge=0, description="Shape parameter")

    @model_validator(mode="after")
    def validate_mode(self):
        if not (self.min < self.mode < self.max):
            raise ValueError(
                f"Mode {self.mode} must be strictly between min {self.min} and max {self.max}"
            )
        return self

    @property
    def range(self) -> float:
        return self.max - self.min

    @property
    def alpha(self) -> float:
        return 1 + self.lambda_ * (self.mode - self.min) / self.range

    @property
    def beta(self) -> float:
        return 1 + self.lambda_ * (self.max - self.mode) / self.range


class ConstantDistribution(BaseDistribution):
    """Degenerate distribution always returning ``value``."""

    kind: Literal[VariableKind.CONSTANT] = VariableKind.CONSTANT
    value: float


Distribution = Union[
    UniformDistribution,
    NormalDistribution,
    LogNormalDistribution,
    PERTDistribution,
    ConstantDistribution,
]


def _open_unit_draw(random_state: np.random.RandomState) -> float:
    """Uniform draw in (0, 1); an exact 0 is redrawn."""
    u = 0.0
    while u == 0.0:
        u = random_state.random_sample()
    return u


def standard_normal(random_state: np.random.RandomState) -> float:
    """Standard normal draw via the Box-Muller transform."""
    u = _open_unit_draw(random_state)
    v = _open_unit_draw(random_state)
    return math.sqrt(-2.0 * math.log(u)) * math.cos(2.0 * math.pi * v)


def gamma_variate(alpha: float, random_state: np.random.RandomState) -> float:
    """Gamma(alpha, 1) draw with the Marsaglia-Tsang method.

    Args:
        alpha: Shape parameter, strictly positive
        random_state: Random number generator

    Returns:
        One Gamma sample
    """
    if alpha < 1:
        # Boost: Gamma(alpha) = Gamma(1 + alpha) * U^(1/alpha)
        return gamma_variate(1 + alpha, random_state) * random_state.random_sample() ** (1 / alpha)

    d = alpha - 1 / 3
    c = 1 / math.sqrt(9 * d)
    while True:
        x = standard_normal(random_state)
        v = 1 + c * x
        while v <= 0:
            x = standard_normal(random_state)
            v = 1 + c * x
        v = v * v * v
        u = random_state.random_sample()
        if u < 1 - 0.0331 * x * x * x * x:
            return d * v
        # log(0) is -inf, which always accepts
        if u == 0.0 or math.log(u) < 0.5 * x * x + d * (1 - v + math.log(v)):
            return d * v


def sample(distribution: Distribution, random_state: np.random.RandomState) -> float:
    """Draw one independent sample.

    Args:
        distribution: Distribution parameters
        random_state: Random number generator

    Returns:
        Sampled value
    """
    kind = distribution.kind

    if kind == VariableKind.UNIFORM:
        return distribution.min + random_state.random_sample() * (distribution.max - distribution.min)
    elif kind == VariableKind.NORMAL:
        return distribution.mean + standard_normal(random_state) * distribution.std_dev
    elif kind == VariableKind.LOGNORMAL:
        try:
            return math.exp(distribution.mu + standard_normal(random_state) * distribution.sigma)
        except OverflowError:
            return math.inf
    elif kind == VariableKind.PERT:
        x = gamma_variate(distribution.alpha, random_state)
        y = gamma_variate(distribution.beta, random_state)
        return distribution.min + (x / (x + y)) * distribution.range
    elif kind == VariableKind.CONSTANT:
        return distribution.value
    else:
        raise ValueError(f"Unknown distribution type: {kind}")


def draw(distribution: Distribution, size: int, random_state: np.random.RandomState) -> np.ndarray:
    """Draw ``size`` independent samples into an array."""
    return np.fromiter(
        (sample(distribution, random_state) for _ in range(size)), dtype=float, count=size
    )


def _number(params: Dict[str, Any], key: str, variable: Variable) -> float:
    """Fetch a numeric parameter, raising a parameter error when absent or non-numeric."""
    kind = variable.type.value
    if key not in params or params[key] is None:
        raise DistributionParameterError(
            f"Variable '{variable.name}': missing parameter '{key}'", kind, key, None
        )

    value = params[key]
    if isinstance(value, bool):
        raise DistributionParameterError(
            f"Variable '{variable.name}': parameter '{key}' must be a number", kind, key, value
        )
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise DistributionParameterError(
            f"Variable '{variable.name}': parameter '{key}' must be a number",
            kind, key, value, cause=e
        ) from e


def build_distribution(variable: Variable) -> Distribution:
    """Construct the distribution for a sampled variable.

    Args:
        variable: Non-formula variable

    Returns:
        Distribution parameters

    Raises:
        DistributionParameterError: If parameters are missing or invalid
        ValueError: If the variable is a formula
    """
    params = variable.params
    kind = variable.type

    if kind == VariableKind.FORMULA:
        raise ValueError(f"Formula variable '{variable.name}' is evaluated, not sampled")

    try:
        if kind == VariableKind.UNIFORM:
            return UniformDistribution(
                min=_number(params, "min", variable), max=_number(params, "max", variable)
            )
        elif kind == VariableKind.NORMAL:
            return NormalDistribution(
                mean=_number(params, "mean", variable), std_dev=_number(params, "stdDev", variable)
            )
        elif kind == VariableKind.LOGNORMAL:
            return LogNormalDistribution.from_confidence_interval(
                _number(params, "low", variable), _number(params, "high", variable)
            )
        elif kind == VariableKind.PERT:
            lambda_ = _number(params, "lambda", variable) if "lambda" in params else DEFAULT_PERT_LAMBDA
            return PERTDistribution(
                min=_number(params, "min", variable),
                mode=_number(params, "mode", variable),
                max=_number(params, "max", variable),
                lambda_=lambda_,
            )
        elif kind == VariableKind.CONSTANT:
            return ConstantDistribution(value=_number(params, "value", variable))
        else:
            raise ValueError(f"Unknown distribution type: {kind}")
    except PydanticValidationError as e:
        message = "; ".join(error["msg"] for error in e.errors())
        raise DistributionParameterError(
            f"Variable '{variable.name}': {message}", kind.value, cause=e
        ) from e


def get_distribution_stats(distribution: Distribution) -> Tuple[float, float]:
    """Get analytical mean and variance for a distribution.

    Args:
        distribution: Distribution parameters

    Returns:
        Tuple of (mean, variance)
    """
    kind = distribution.kind

    if kind == VariableKind.UNIFORM:
        a, b = distribution.min, distribution.max
        return (a + b) / 2, (b - a) ** 2 / 12

    elif kind == VariableKind.NORMAL:
        return distribution.mean, distribution.std_dev ** 2

    elif kind == VariableKind.LOGNORMAL:
        mu, sigma = distribution.mu, distribution.sigma
        mean = np.exp(mu + sigma**2 / 2)
        var = (np.exp(sigma**2) - 1) * np.exp(2*mu + sigma**2)
        return float(mean), float(var)

    elif kind == VariableKind.PERT:
        beta_mean, beta_var = stats.beta.stats(distribution.alpha, distribution.beta, moments='mv')
        mean = distribution.min + float(beta_mean) * distribution.range
        var = float(beta_var) * distribution.range ** 2
        return mean, var

    elif kind == VariableKind.CONSTANT:
        return distribution.value, 0.0

    else:
        raise ValueError(f"Unknown distribution type: {kind}")
