"""YAML configuration files."""

from typing import Any, Dict

import yaml

from ..core.data_models import SimulationConfig
from ..core.exceptions import FileFormatError, ModelIOError


class YAMLImporter:
    """Imports simulation configuration from YAML files."""

    def import_configuration(self, file_path: str) -> Dict[str, Any]:
        """Import simulation configuration from a YAML file.

        An empty file yields the default configuration.

        Args:
            file_path: Path to YAML configuration file

        Returns:
            Configuration dictionary
        """
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                config_data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FileFormatError(
                f"Error importing configuration from {file_path}: {e}",
                str(file_path), "YAML", cause=e
            ) from e
        except OSError as e:
            raise ModelIOError(
                f"Error reading configuration from {file_path}: {e}",
                str(file_path), "read", cause=e
            ) from e

        if config_data is None:
            config_data = {}
        if not isinstance(config_data, dict):
            raise FileFormatError(
                f"Configuration in {file_path} must be a mapping", str(file_path), "YAML mapping"
            )

        return SimulationConfig(**config_data).model_dump()
