"""CLI functionality tests.

Runs every command through Typer's test runner against real model files.
"""

import json
import logging
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from fermi_tool.cli import app
from fermi_tool.templates.template_generator import ExampleModelGenerator


def write_model(path: Path, records):
    path.write_text(json.dumps(records, indent=2), encoding="utf-8")
    return str(path)


class TestCLI:
    """Test CLI command functionality."""

    @pytest.fixture
    def runner(self):
        """Create CLI test runner."""
        return CliRunner()

    @pytest.fixture
    def temp_dir(self):
        """Create temporary directory for test files."""
        with tempfile.TemporaryDirectory() as tmp_dir:
            yield Path(tmp_dir)

    @pytest.fixture
    def piano_model(self, temp_dir):
        path = temp_dir / "piano.json"
        ExampleModelGenerator().create("piano_tuners", str(path))
        return str(path)

    def test_cli_help(self, runner):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "Monte Carlo engine for Fermi estimates" in result.output
        for command in ("run", "validate", "example", "summarize", "info"):
            assert command in result.output

    def test_example_written(self, runner, temp_dir):
        output_file = temp_dir / "example.json"

        result = runner.invoke(app, ["example", "piano_tuners", "--output", str(output_file)])

        assert result.exit_code == 0
        assert output_file.exists()
        bundled = ExampleModelGenerator().templates_dir / "piano_tuners.json"
        assert output_file.read_bytes() == bundled.read_bytes()

    def test_example_list(self, runner):
        result = runner.invoke(app, ["example", "--list"])
        assert result.exit_code == 0
        assert "piano_tuners" in result.output
        assert "project_cost" in result.output

    def test_example_unknown(self, runner, temp_dir):
        result = runner.invoke(app, ["example", "nonexistent", "-o", str(temp_dir / "x.json")])
        assert result.exit_code == 1
        assert "Unknown example" in result.output

    def test_run_piano_tuners(self, runner, piano_model):
        result = runner.invoke(app, ["run", piano_model, "--iterations", "2000", "--seed", "1"])

        assert result.exit_code == 0
        assert "Median" in result.output
        assert "90% interval" in result.output

    def test_run_exports(self, runner, piano_model, temp_dir):
        csv_path = temp_dir / "posterior_distribution.csv"
        json_path = temp_dir / "results.json"
        xlsx_path = temp_dir / "results.xlsx"
        chart_path = temp_dir / "chart.html"

        result = runner.invoke(app, [
            "run", piano_model, "-n", "500", "--seed", "2",
            "--csv", str(csv_path),
            "--json", str(json_path),
            "--xlsx", str(xlsx_path),
            "--chart", str(chart_path),
        ])

        assert result.exit_code == 0
        lines = csv_path.read_text().splitlines()
        assert lines[0] == "Value"
        assert len(lines) == 501
        assert json.loads(json_path.read_text())["metadata"]["iterations"] == 500
        assert xlsx_path.exists()
        assert chart_path.exists()

    def test_run_histogram(self, runner, piano_model):
        result = runner.invoke(app, ["run", piano_model, "-n", "500", "--histogram", "--bins", "10"])
        assert result.exit_code == 0
        assert "Distribution" in result.output

    def test_run_cycle_exits(self, runner, temp_dir):
        model = write_model(temp_dir / "cycle.json", [
            {"id": "1", "name": "A", "type": "Formula", "params": {"expression": "B"}},
            {"id": "2", "name": "B", "type": "Formula", "params": {"expression": "A"}},
        ])

        result = runner.invoke(app, ["run", model, "-n", "10"])

        assert result.exit_code == 1
        assert "Circular dependency detected involving A" in result.output

    def test_run_reports_failed_evaluations(self, runner, temp_dir):
        model = write_model(temp_dir / "nan.json", [
            {"id": "1", "name": "U", "type": "Uniform", "params": {"min": -1, "max": 1}},
            {"id": "2", "name": "R", "type": "Formula", "params": {"expression": "1 / floor(U)"}},
        ])

        result = runner.invoke(app, ["run", model, "-n", "200", "--seed", "3"])

        assert result.exit_code == 0
        assert "Failed formula evaluations" in result.output

    def test_run_all_failed(self, runner, temp_dir):
        model = write_model(temp_dir / "ghost.json", [
            {"id": "1", "name": "F", "type": "Formula", "params": {"expression": "Ghost * 2"}},
        ])

        result = runner.invoke(app, ["run", model, "-n", "20"])

        assert result.exit_code == 0
        assert "No finite outcomes" in result.output

    def test_run_with_yaml_config(self, runner, piano_model, temp_dir):
        config = temp_dir / "config.yaml"
        config.write_text("iterations: 300\nrandom_seed: 5\noutput: TotalTunings\n")
        csv_path = temp_dir / "out.csv"

        result = runner.invoke(app, ["run", piano_model, "--config", str(config), "--csv", str(csv_path)])

        assert result.exit_code == 0
        assert "TotalTunings" in result.output
        assert len(csv_path.read_text().splitlines()) == 301

    def test_cli_options_override_config(self, runner, piano_model, temp_dir):
        config = temp_dir / "config.json"
        config.write_text(json.dumps({"iterations": 300}))
        csv_path = temp_dir / "out.csv"

        result = runner.invoke(app, [
            "run", piano_model, "--config", str(config), "-n", "100", "--csv", str(csv_path)
        ])

        assert result.exit_code == 0
        assert len(csv_path.read_text().splitlines()) == 101

    def test_config_file_seed_kept_with_cli_iterations(self, runner, piano_model, temp_dir):
        """Settings from the file and from options combine; the file's seed makes runs repeatable."""
        config = temp_dir / "config.yaml"
        config.write_text("random_seed: 11\n")
        first, second = temp_dir / "a.csv", temp_dir / "b.csv"

        for path in (first, second):
            result = runner.invoke(app, [
                "run", piano_model, "-c", str(config), "-n", "50", "--csv", str(path)
            ])
            assert result.exit_code == 0

        assert len(first.read_text().splitlines()) == 51
        assert first.read_text() == second.read_text()

    def test_run_structured_log_file(self, runner, piano_model, temp_dir):
        log_file = temp_dir / "logs" / "run.log"

        result = runner.invoke(app, [
            "run", piano_model, "-n", "50", "-v", "--log-json", "--log-file", str(log_file)
        ])

        assert result.exit_code == 0
        for handler in logging.getLogger("fermi_tool").handlers:
            handler.flush()
        records = [json.loads(line) for line in log_file.read_text().splitlines()]
        assert any(r.get("component") == "engine" and "run_id" in r for r in records)
        assert all("elapsed" in r for r in records)

    def test_run_unknown_output_variable(self, runner, piano_model):
        result = runner.invoke(app, ["run", piano_model, "-n", "10", "--output-var", "Nope"])
        assert result.exit_code == 1
        assert "Nope" in result.output

    def test_run_strict_invalid_parameters(self, runner, temp_dir):
        model = write_model(temp_dir / "bad.json", [
            {"id": "1", "name": "P", "type": "PERT", "params": {"min": 0, "mode": 20, "max": 10}},
        ])

        lenient = runner.invoke(app, ["run", model, "-n", "10"])
        strict = runner.invoke(app, ["run", model, "-n", "10", "--strict"])

        assert lenient.exit_code == 0
        assert strict.exit_code == 1

    def test_run_invalid_file(self, runner, temp_dir):
        path = temp_dir / "bad.json"
        path.write_text('{"not": "a list"}')

        result = runner.invoke(app, ["run", str(path)])

        assert result.exit_code == 1
        assert "Invalid file format." in result.output

    def test_validate_valid_model(self, runner, piano_model):
        result = runner.invoke(app, ["validate", piano_model])
        assert result.exit_code == 0
        assert "Validation passed" in result.output

    def test_validate_invalid_model(self, runner, temp_dir):
        model = write_model(temp_dir / "cycle.json", [
            {"id": "1", "name": "A", "type": "Formula", "params": {"expression": "B"}},
            {"id": "2", "name": "B", "type": "Formula", "params": {"expression": "A"}},
        ])

        result = runner.invoke(app, ["validate", model, "--detailed"])

        assert result.exit_code == 1
        assert "Validation failed" in result.output
        assert "Circular dependency" in result.output

    def test_info(self, runner, piano_model):
        result = runner.invoke(app, ["info", piano_model])

        assert result.exit_code == 0
        assert "Population" in result.output
        assert "Output variable: TunersNeeded" in result.output

    def test_summarize_csv(self, runner, temp_dir):
        csv_path = temp_dir / "values.csv"
        csv_path.write_text("Value\n" + "\n".join(str(i) for i in range(1, 11)) + "\nNaN\n")

        result = runner.invoke(app, ["summarize", str(csv_path), "--histogram"])

        assert result.exit_code == 0
        assert "Median" in result.output
        assert "Invalid outcomes" in result.output

    def test_summarize_missing_file(self, runner, temp_dir):
        result = runner.invoke(app, ["summarize", str(temp_dir / "missing.csv")])
        assert result.exit_code == 1
