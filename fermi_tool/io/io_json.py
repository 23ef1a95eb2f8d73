"""JSON file I/O for models, configuration and results.

A saved model is a JSON array of variable records (``id``, ``name``,
``type``, ``params``) written with two-space indentation. Loading a saved
file and saving it again reproduces the same bytes.
"""

import json
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union

import numpy as np
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.data_models import SimulationConfig, Variable, parse_variables
from ..core.exceptions import FileFormatError, ModelIOError
from ..core.logging_config import get_logger
from ..reporting.reporting import SimulationResults

logger = get_logger(__name__)

DEFAULT_MODEL_FILENAME = "fermi_estimation.json"
INVALID_FORMAT_MESSAGE = "Invalid file format."


class JSONEncoder(json.JSONEncoder):
    """Custom JSON encoder for numpy arrays and other types."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        elif isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, (datetime, date)):
            return obj.isoformat()
        elif isinstance(obj, BaseModel):
            return obj.model_dump(mode="json")
        return super().default(obj)


def dumps_model(variables: Sequence[Union[Variable, Dict[str, Any]]]) -> str:
    """Serialize a model to its persisted text form."""
    records = [v.to_record() if isinstance(v, Variable) else v for v in variables]
    return json.dumps(records, indent=2, ensure_ascii=False, cls=JSONEncoder)


def loads_model(text: str, file_path: str = None) -> List[Variable]:
    """Parse the persisted text form of a model.

    Raises:
        FileFormatError: If the text is not a JSON array of variable records
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise FileFormatError(INVALID_FORMAT_MESSAGE, file_path, "JSON", cause=e) from e

    if not isinstance(data, list):
        raise FileFormatError(INVALID_FORMAT_MESSAGE, file_path, "JSON array of variables")

    try:
        return parse_variables(data)
    except (PydanticValidationError, TypeError) as e:
        raise FileFormatError(
            f"{INVALID_FORMAT_MESSAGE} {e}", file_path, "JSON array of variables", cause=e
        ) from e


class JSONImporter:
    """Imports models and configuration from JSON files."""

    def import_model(self, file_path: str) -> List[Variable]:
        """Import a model from a JSON file.

        Args:
            file_path: Path to a saved model

        Returns:
            Variables in saved order
        """
        try:
            text = Path(file_path).read_text(encoding="utf-8")
        except OSError as e:
            raise ModelIOError(
                f"Error reading model from {file_path}: {e}", str(file_path), "read", cause=e
            ) from e

        variables = loads_model(text, str(file_path))
        logger.info(f"Loaded {len(variables)} variables from {file_path}")
        return variables

    def import_configuration(self, file_path: str) -> Dict[str, Any]:
        """Import simulation configuration from JSON file.

        Args:
            file_path: Path to JSON configuration file

        Returns:
            Configuration dictionary
        """
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config_data = json.load(f)
        except json.JSONDecodeError as e:
            raise FileFormatError(
                f"Error importing configuration from {file_path}: {e}",
                str(file_path), "JSON", cause=e
            ) from e
        except OSError as e:
            raise ModelIOError(
                f"Error reading configuration from {file_path}: {e}",
                str(file_path), "read", cause=e
            ) from e

        if not isinstance(config_data, dict):
            raise FileFormatError(
                f"Configuration in {file_path} must be an object", str(file_path), "JSON object"
            )

        # Validate against the configuration model
        return SimulationConfig(**config_data).model_dump()


class JSONExporter:
    """Exports models and results to JSON files."""

    def export_model(self, variables: Sequence[Union[Variable, Dict[str, Any]]],
                     file_path: str = DEFAULT_MODEL_FILENAME) -> None:
        """Save a model.

        Args:
            variables: Variables in declared order
            file_path: Output file path
        """
        try:
            Path(file_path).write_text(dumps_model(variables), encoding="utf-8")
        except OSError as e:
            raise ModelIOError(
                f"Error saving model to {file_path}: {e}", str(file_path), "write", cause=e
            ) from e
        logger.info(f"Saved {len(variables)} variables to {file_path}")

    def export_results(
        self,
        results: SimulationResults,
        file_path: str,
        include_outcomes: bool = False,
    ) -> None:
        """Export simulation results to JSON file.

        Args:
            results: Simulation results
            file_path: Output file path
            include_outcomes: Whether to include the raw outcome array
        """
        export_data: Dict[str, Any] = {
            "metadata": {
                "export_timestamp": datetime.now().isoformat(),
                "output_variable": results.output_variable,
                "iterations": results.iterations,
                "random_seed": results.random_seed,
                "simulation_time": results.simulation_time,
            },
            "statistics": results.statistics,
            "histogram": results.histogram,
            "failures": {
                "failed_evaluations": results.failed_evaluations,
                "invalid_outcomes": results.invalid_outcomes,
                "error_counts": results.error_counts,
                "configuration_errors": results.configuration_errors,
                "warnings": results.warnings,
            },
            "evaluation_order": results.evaluation_order,
        }

        if include_outcomes:
            # JSON has no NaN; failed trials are written as null
            export_data["outcomes"] = [
                v if np.isfinite(v) else None for v in results.outcomes
            ]

        try:
            with open(file_path, "w", encoding="utf-8") as f:
                json.dump(export_data, f, indent=2, cls=JSONEncoder)
        except OSError as e:
            raise ModelIOError(
                f"Error exporting results to {file_path}: {e}", str(file_path), "write", cause=e
            ) from e
