"""End-to-end tests: example models through simulation, summary and export."""

import math
import tempfile
from pathlib import Path

import numpy as np
import pytest

from fermi_tool import run_simulation
from fermi_tool.io.io_csv import CSVExporter, CSVImporter
from fermi_tool.io.io_json import JSONExporter, JSONImporter
from fermi_tool.reporting.reporting import summarize
from fermi_tool.templates.template_generator import ExampleModelGenerator


@pytest.fixture
def temp_dir():
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


class TestPianoTuners:
    """The classic estimate, end to end."""

    @pytest.fixture(scope="class")
    def results(self):
        variables = ExampleModelGenerator().piano_tuners()
        return run_simulation(variables, {"iterations": 10000, "random_seed": 42})

    def test_completes_without_failures(self, results):
        assert results.iterations == 10000
        assert results.failed_evaluations == 0
        assert results.invalid_outcomes == 0
        assert results.evaluation_order == ["TotalTunings", "TunersNeeded"]

    def test_plausible_range(self, results):
        """Every outcome lies within the bounds implied by the input ranges."""
        lowest = 2500000 / 3 * 0.05 * 0.5 / 1000
        highest = 3000000 / 2 * 0.10 * 1 / 500
        outcomes = np.asarray(results.outcomes)

        assert np.all(outcomes >= lowest)
        assert np.all(outcomes <= highest)

    def test_statistics_ordered(self, results):
        stats = results.statistics
        assert stats.min <= stats.p05 <= stats.median <= stats.p95 <= stats.max
        assert 60 < stats.median < 120

    def test_histogram_covers_outcomes(self, results):
        assert sum(results.histogram.counts) == 10000
        assert any(results.histogram.highlighted)

    def test_csv_export_summary_matches(self, results, temp_dir):
        path = temp_dir / "posterior_distribution.csv"
        CSVExporter().export_outcomes(results.outcomes, str(path))

        stats, _ = summarize(CSVImporter().import_outcomes(str(path)))

        assert stats.median == pytest.approx(results.statistics.median)
        assert stats.p95 == pytest.approx(results.statistics.p95)


class TestProjectCost:
    """Mixed distribution kinds, end to end."""

    def test_run(self):
        results = run_simulation(ExampleModelGenerator().project_cost(),
                                 {"iterations": 5000, "random_seed": 8})

        assert results.output_variable == "TotalCost"
        assert results.failed_evaluations == 0
        assert results.statistics.min > 0
        assert results.statistics.p05 < results.statistics.median < results.statistics.p95

    def test_saved_model_runs_identically(self, temp_dir):
        variables = ExampleModelGenerator().project_cost()
        path = temp_dir / "cost.json"
        JSONExporter().export_model(variables, str(path))
        reloaded = JSONImporter().import_model(str(path))

        config = {"iterations": 500, "random_seed": 99}
        a = run_simulation(variables, config)
        b = run_simulation(reloaded, config)

        assert a.outcomes == b.outcomes
        assert not any(math.isnan(v) for v in a.outcomes)
