"""Command-line interface for the Fermi Estimation Tool.

Commands for running simulations on saved models, validating them, writing
example models and summarizing previously exported outcomes. Built with
Typer, output rendered with Rich.
"""

from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .core.data_models import KIND_LABELS, Variable
from .core.engine import run_simulation
from .core.exceptions import FermiToolError, FileFormatError, handle_exception
from .core.logging_config import get_logger, setup_logging
from .core.validation import validate_simulation_inputs
from .io.io_csv import CSVExporter, CSVImporter
from .io.io_excel import ExcelExporter
from .io.io_json import JSONExporter, JSONImporter
from .io.io_yaml import YAMLImporter
from .reporting.reporting import (
    ChartGenerator, Histogram, SimulationResults, SummaryStatistics,
    format_number, summarize,
)
from .templates.template_generator import ExampleModelGenerator

app: typer.Typer = typer.Typer(help="Monte Carlo engine for Fermi estimates")
console: Console = Console()
logger = get_logger(__name__)

BAR_WIDTH = 40


@app.command()
def run(
    model: str = typer.Argument(..., help="Saved model (JSON array of variables)"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file (JSON or YAML)"),
    iterations: Optional[int] = typer.Option(None, "--iterations", "-n", help="Number of iterations"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for reproducibility"),
    bins: Optional[int] = typer.Option(None, "--bins", help="Number of histogram bins"),
    output_var: Optional[str] = typer.Option(None, "--output-var", help="Output variable (default: last variable)"),
    strict: bool = typer.Option(False, "--strict", help="Abort on invalid distribution parameters"),
    csv: Optional[str] = typer.Option(None, "--csv", help="Export outcomes to CSV"),
    json_path: Optional[str] = typer.Option(None, "--json", help="Export results to JSON"),
    xlsx: Optional[str] = typer.Option(None, "--xlsx", help="Export results to Excel"),
    chart: Optional[str] = typer.Option(None, "--chart", help="Save histogram chart (.html for plotly, image otherwise)"),
    histogram: bool = typer.Option(False, "--histogram", help="Print histogram to the terminal"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    log_file: Optional[str] = typer.Option(None, "--log-file", help="Also write the run log to this file"),
    log_json: bool = typer.Option(False, "--log-json", help="Log JSON records with run context and timings"),
):
    """Run a Monte Carlo simulation of a saved model."""
    _configure_logging(verbose, log_file=log_file, structured=log_json)

    try:
        variables = JSONImporter().import_model(model)
        config_data = _load_config_data(config)

        # Override config with CLI parameters
        if iterations is not None:
            config_data['iterations'] = iterations
        if seed is not None:
            config_data['random_seed'] = seed
        if bins is not None:
            config_data['bin_count'] = bins
        if output_var is not None:
            config_data['output'] = output_var
        if strict:
            config_data['strict'] = True

        if verbose:
            console.print("\n[bold blue]Fermi Estimation - Monte Carlo Simulation[/bold blue]")
            console.print("=" * 60)

        n = config_data.get('iterations', 10000)
        if n > 100000:
            with console.status("[bold green]Running Monte Carlo simulation..."):
                results = run_simulation(variables, config_data)
        else:
            results = run_simulation(variables, config_data)

        _display_results_summary(results, verbose)
        if histogram and results.histogram is not None:
            _display_histogram(results.histogram)

        _export_results(results, csv=csv, json_path=json_path, xlsx=xlsx, chart=chart)

    except FermiToolError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)
    except ValueError as e:
        error = handle_exception(e, logger, context={"command": "run", "model": model}, reraise=False)
        console.print(f"[red]Error: {escape(error.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)


@app.command()
def validate(
    model: str = typer.Argument(..., help="Saved model"),
    config: Optional[str] = typer.Option(None, "--config", "-c", help="Configuration file"),
    detailed: bool = typer.Option(False, "--detailed", "-d", help="Show detailed validation results"),
):
    """Validate a model without running it."""
    _configure_logging(False)

    console.print("[yellow]Validating model...[/yellow]")

    try:
        records = [v.to_record() for v in JSONImporter().import_model(model)]
        config_data = _load_config_data(config)
    except FermiToolError as e:
        console.print(f"[red]Validation error: {escape(e.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    is_valid, errors, warnings = validate_simulation_inputs(records, config_data)

    if detailed:
        _display_detailed_validation_results(errors, warnings)
    _display_validation_summary(is_valid, len(errors), len(warnings))

    if not is_valid:
        raise typer.Exit(1)


@app.command()
def example(
    name: str = typer.Argument("piano_tuners", help="Example name"),
    output: Optional[str] = typer.Option(None, "--output", "-o", help="Output file"),
    list_examples: bool = typer.Option(False, "--list", "-l", help="List available examples"),
):
    """Write an example model."""
    generator = ExampleModelGenerator()

    if list_examples:
        table = Table(title="Example Models")
        table.add_column("Name", style="cyan")
        table.add_column("Description")
        for example_name, description in generator.available().items():
            table.add_row(example_name, description)
        console.print(table)
        return

    try:
        path = generator.create(name, output)
    except (ValueError, FermiToolError) as e:
        console.print(f"[red]Error creating example: {escape(str(e))}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    console.print(f"[green]Example model created: {path}[/green]", soft_wrap=True)


@app.command(name="summarize")
def summarize_outcomes(
    outcomes_file: str = typer.Argument(..., help="Outcome CSV with a Value column"),
    bins: int = typer.Option(50, "--bins", help="Number of histogram bins"),
    histogram: bool = typer.Option(False, "--histogram", help="Print histogram to the terminal"),
):
    """Summarize a previously exported outcome CSV."""
    try:
        outcomes = CSVImporter().import_outcomes(outcomes_file)
    except FermiToolError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    statistics, hist = summarize(outcomes, bins)
    if statistics is None:
        console.print("[orange3]No finite outcomes - statistics not available[/orange3]")
        return

    _display_statistics(statistics, title=f"Summary of {Path(outcomes_file).name}")
    if histogram and hist is not None:
        _display_histogram(hist)


@app.command()
def info(
    model: str = typer.Argument(..., help="Saved model"),
):
    """Show the variables of a model."""
    try:
        variables = JSONImporter().import_model(model)
    except FermiToolError as e:
        console.print(f"[red]Error analyzing model: {escape(e.message)}[/red]", soft_wrap=True)
        raise typer.Exit(1)

    console.print(f"[yellow]Model: {escape(model)}[/yellow]", soft_wrap=True)

    table = Table(title="Variables")
    table.add_column("Name", style="cyan")
    table.add_column("Type")
    table.add_column("Parameters")

    for variable in variables:
        table.add_row(
            escape(variable.name),
            KIND_LABELS.get(variable.type, variable.type.value),
            escape(_describe_params(variable)),
        )

    console.print(table)
    if variables:
        console.print(f"Output variable: [bold]{escape(variables[-1].name)}[/bold]")
    else:
        console.print("[orange3]Model has no variables[/orange3]")


def _configure_logging(verbose: bool, log_file: Optional[str] = None, structured: bool = False):
    setup_logging(
        log_level="DEBUG" if verbose else "WARNING",
        log_file=Path(log_file) if log_file else None,
        enable_structured=structured,
    )


def _load_config_data(file_path: Optional[str]) -> Dict[str, Any]:
    """Load configuration data from a JSON or YAML file."""
    if not file_path:
        return {}

    suffix = Path(file_path).suffix.lower()
    if suffix == '.json':
        config_data = JSONImporter().import_configuration(file_path)
    elif suffix in ('.yaml', '.yml'):
        config_data = YAMLImporter().import_configuration(file_path)
    else:
        raise FileFormatError(
            f"Unsupported configuration file format: {suffix}", file_path, "JSON or YAML"
        )

    # Importers return the full validated configuration; unset optional fields are None
    return {k: v for k, v in config_data.items() if v is not None}


def _describe_params(variable: Variable) -> str:
    if variable.is_formula:
        return variable.expression or ""
    return ", ".join(f"{key}={value}" for key, value in variable.params.items())


def _display_statistics(statistics: SummaryStatistics, title: str = "Simulation Results"):
    table = Table(title=title)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    table.add_row("Mean", format_number(statistics.mean))
    table.add_row("Median", format_number(statistics.median))
    table.add_row("90% interval",
                  f"{format_number(statistics.p05)} - {format_number(statistics.p95)}")
    table.add_row("Min", format_number(statistics.min))
    table.add_row("Max", format_number(statistics.max))
    table.add_row("Std Dev", format_number(statistics.std))
    table.add_row("Valid outcomes", f"{statistics.count:,}")
    table.add_row("Invalid outcomes", f"{statistics.invalid_count:,}")

    console.print(table)


def _display_results_summary(results: SimulationResults, verbose: bool):
    """Display results summary table."""
    if results.iterations == 0:
        console.print("[orange3]Model has no variables - nothing to simulate[/orange3]")
        return

    for name, message in results.configuration_errors.items():
        console.print(f"[orange3]{escape(name)}: {escape(message)}[/orange3]", soft_wrap=True)
    for warning in results.warnings:
        console.print(f"[orange3]{escape(warning)}[/orange3]", soft_wrap=True)

    if results.statistics is None:
        console.print("[orange3]No finite outcomes - statistics not available[/orange3]")
    else:
        _display_statistics(results.statistics,
                            title=f"Simulation Results: {escape(results.output_variable or '')}")

    if results.failed_evaluations:
        console.print(
            f"[orange3]Failed formula evaluations: {results.failed_evaluations:,}[/orange3]"
        )
        for name, count in results.error_counts.items():
            console.print(f"  • {escape(name)}: {count:,}")

    if verbose:
        console.print(f"Iterations: {results.iterations:,}")
        console.print(f"Evaluation order: {escape(', '.join(results.evaluation_order))}")
        console.print(f"Simulation time: {results.simulation_time:.2f}s")
        if results.iterations_per_second:
            console.print(f"Performance: {results.iterations_per_second:,.0f} iterations/second")


def _display_histogram(histogram: Histogram):
    """Print a horizontal bar chart; bins inside the 90% interval are highlighted."""
    peak = max(histogram.counts) or 1
    table = Table(title="Distribution", show_header=True)
    table.add_column("Value", justify="right")
    table.add_column("Count", justify="right")
    table.add_column("")

    for b in histogram.bins:
        bar = "█" * int(round(b.count / peak * BAR_WIDTH))
        style = "yellow" if b.highlighted else "cyan"
        table.add_row(b.label, f"{b.count:,}", f"[{style}]{bar}[/{style}]")

    console.print(table)


def _display_validation_summary(is_valid: bool, error_count: int, warning_count: int):
    """Display validation summary."""
    if is_valid:
        console.print("[green]Validation passed[/green]")
    else:
        console.print("[red]Validation failed[/red]")

    if error_count > 0:
        console.print(f"[red]Errors: {error_count}[/red]")
    if warning_count > 0:
        console.print(f"[orange3]Warnings: {warning_count}[/orange3]")


def _display_detailed_validation_results(errors: List[str], warnings: List[str]):
    """Display detailed validation results."""
    if errors:
        console.print(f"[red]Errors ({len(errors)}):[/red]")
        for i, error in enumerate(errors, 1):
            console.print(f"  {i}. {escape(error)}", soft_wrap=True)
        console.print()

    if warnings:
        console.print(f"[orange3]Warnings ({len(warnings)}):[/orange3]")
        for i, warning in enumerate(warnings, 1):
            console.print(f"  {i}. {escape(warning)}", soft_wrap=True)


def _export_results(results: SimulationResults, csv: Optional[str] = None,
                    json_path: Optional[str] = None, xlsx: Optional[str] = None,
                    chart: Optional[str] = None):
    """Export results in the requested formats."""
    if csv:
        CSVExporter().export_outcomes(results.outcomes, csv)
        console.print(f"[blue]Outcomes saved to: {csv}[/blue]", soft_wrap=True)

    if json_path:
        JSONExporter().export_results(results, json_path, include_outcomes=True)
        console.print(f"[blue]Results saved to: {json_path}[/blue]", soft_wrap=True)

    if xlsx:
        ExcelExporter().export_results(results, xlsx)
        console.print(f"[blue]Workbook saved to: {xlsx}[/blue]", soft_wrap=True)

    if chart:
        if results.histogram is None:
            console.print("[orange3]No histogram to chart[/orange3]")
            return
        style = 'plotly' if Path(chart).suffix.lower() == '.html' else 'matplotlib'
        generator = ChartGenerator(style)
        figure = generator.create_histogram(
            results.histogram, title=f"Distribution of {results.output_variable}"
        )
        generator.save(figure, chart)
        console.print(f"[blue]Chart saved to: {chart}[/blue]", soft_wrap=True)


if __name__ == "__main__":
    app()
