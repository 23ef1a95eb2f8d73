"""Example models.

Example models ship as saved model files next to this module, so they are
exactly what a user would get from saving the same model.
"""

from pathlib import Path
from typing import Dict, List, Optional

from ..core.data_models import Variable
from ..core.logging_config import get_logger
from ..io.io_json import JSONExporter, JSONImporter

logger = get_logger(__name__)

EXAMPLES: Dict[str, str] = {
    "piano_tuners": "How many piano tuners work in a city of 2.5-3 million people?",
    "project_cost": "Cost of a small design project from three-point and interval estimates",
}


class ExampleModelGenerator:
    """Loads and writes the bundled example models."""

    def __init__(self):
        """Initialize example generator."""
        self.templates_dir = Path(__file__).parent

    def available(self) -> Dict[str, str]:
        """Example names with a one-line description."""
        return dict(EXAMPLES)

    def load(self, name: str) -> List[Variable]:
        """Variables of the named example."""
        if name not in EXAMPLES:
            raise ValueError(
                f"Unknown example '{name}'. Available: {', '.join(EXAMPLES)}"
            )
        return JSONImporter().import_model(str(self.templates_dir / f"{name}.json"))

    def piano_tuners(self) -> List[Variable]:
        """The classic Fermi problem: piano tuners in a large city."""
        return self.load("piano_tuners")

    def project_cost(self) -> List[Variable]:
        """A project cost model mixing PERT, Normal, LogNormal and Constant inputs."""
        return self.load("project_cost")

    def create(self, name: str, output_path: Optional[str] = None) -> Path:
        """Write an example model to disk.

        Args:
            name: Example name
            output_path: Destination; defaults to ``<name>.json`` in the working directory

        Returns:
            Path of the written model
        """
        path = Path(output_path) if output_path else Path(f"{name}.json")
        JSONExporter().export_model(self.load(name), str(path))
        logger.info(f"Created example model '{name}': {path}")
        return path
