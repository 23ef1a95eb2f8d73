"""Pydantic data models for the Fermi estimation tool.

A model is an ordered list of ``Variable`` records. The record layout
(``id``, ``name``, ``type``, ``params``) is the persisted save/load contract,
so params are kept verbatim rather than coerced into per-kind models; the
distribution library converts them when a simulation run starts.
"""

import uuid
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class VariableKind(str, Enum):
    """Supported variable kinds (persisted as these exact strings)."""

    UNIFORM = "Uniform"
    NORMAL = "Normal"
    LOGNORMAL = "LogNormal"
    PERT = "PERT"
    CONSTANT = "Constant"
    FORMULA = "Formula"


# Parameters given to a freshly created or re-typed variable
DEFAULT_PARAMS: Dict[VariableKind, Dict[str, Any]] = {
    VariableKind.NORMAL: {"mean": 0, "stdDev": 1},
    VariableKind.UNIFORM: {"min": 0, "max": 10},
    VariableKind.LOGNORMAL: {"low": 1, "high": 10},
    VariableKind.PERT: {"min": 0, "mode": 5, "max": 10},
    VariableKind.CONSTANT: {"value": 0},
    VariableKind.FORMULA: {"expression": ""},
}

# Human-readable labels, as offered in the variable type picker
KIND_LABELS: Dict[VariableKind, str] = {
    VariableKind.NORMAL: "Bell Curve (Normal)",
    VariableKind.UNIFORM: "Simple Range (Uniform)",
    VariableKind.LOGNORMAL: "Estimated Range (90% CI)",
    VariableKind.PERT: "Three-Point Estimate (PERT)",
    VariableKind.CONSTANT: "Constant",
    VariableKind.FORMULA: "Formula",
}


def new_variable_id() -> str:
    """Generate an opaque, stable variable identifier."""
    return f"var_{uuid.uuid4().hex[:12]}"


class Variable(BaseModel):
    """One named quantity of a model: a distribution, a constant or a formula."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str = Field(..., description="Opaque identifier, distinct from name")
    name: str = Field(..., description="Name used to reference the variable in formulas")
    type: VariableKind = Field(..., description="Variable kind")
    params: Dict[str, Any] = Field(default_factory=dict, description="Kind-specific parameters")

    @property
    def kind(self) -> VariableKind:
        """Alias of ``type``."""
        return self.type

    @property
    def is_formula(self) -> bool:
        """Whether the variable is computed from an expression."""
        return self.type == VariableKind.FORMULA

    @property
    def expression(self) -> Optional[str]:
        """Formula expression, or None for sampled variables."""
        if not self.is_formula:
            return None
        expression = self.params.get("expression")
        return expression if isinstance(expression, str) else None

    @classmethod
    def create(
        cls,
        name: str,
        kind: VariableKind = VariableKind.LOGNORMAL,
        params: Optional[Dict[str, Any]] = None,
        variable_id: Optional[str] = None,
    ) -> "Variable":
        """Create a variable with a fresh id and default parameters for its kind."""
        kind = VariableKind(kind)
        return cls(
            id=variable_id or new_variable_id(),
            name=name,
            type=kind,
            params=dict(DEFAULT_PARAMS[kind]) if params is None else dict(params),
        )

    def to_record(self) -> Dict[str, Any]:
        """Persisted representation, keys in ``id, name, type, params`` order."""
        return self.model_dump(mode="json")


def parse_variables(records: List[Dict[str, Any]]) -> List[Variable]:
    """Parse persisted records into variables, preserving order."""
    return [record if isinstance(record, Variable) else Variable(**record)
            for record in records]


class SimulationConfig(BaseModel):
    """Simulation configuration."""

    iterations: int = Field(10000, gt=0, description="Number of Monte Carlo trials")
    random_seed: Optional[int] = Field(None, description="Seed for reproducible runs")
    bin_count: int = Field(50, gt=0, description="Histogram bins")
    output: Optional[str] = Field(
        None, description="Output variable name; defaults to the last declared variable"
    )
    strict: bool = Field(
        False, description="Abort on invalid distribution parameters instead of sampling NaN"
    )

    @field_validator("output")
    @classmethod
    def validate_output(cls, v):
        if v is not None and not v.strip():
            return None
        return v
