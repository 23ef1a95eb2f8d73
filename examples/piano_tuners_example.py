"""Example: the piano tuner Fermi problem.

Runs the bundled piano tuner model, prints the 90% interval of the number of
tuners and shows how a formula failure surfaces as NaN trials instead of
aborting the run.
"""

import sys
import os

sys.path.append(os.path.join(os.path.dirname(__file__), ".."))

from fermi_tool import Variable, VariableKind, run_simulation
from fermi_tool.reporting.reporting import format_number
from fermi_tool.templates.template_generator import ExampleModelGenerator


def main():
    variables = ExampleModelGenerator().piano_tuners()
    results = run_simulation(variables, {"iterations": 10000, "random_seed": 42})

    stats = results.statistics
    print(f"Output: {results.output_variable}")
    print(f"Median: {format_number(stats.median)}")
    print(f"90% interval: {format_number(stats.p05)} - {format_number(stats.p95)}")

    # Sometimes-zero denominator: trials where Idle rounds to 0 fail
    broken = variables + [
        Variable.create("Idle", VariableKind.UNIFORM, {"min": -1, "max": 1}),
        Variable.create("PerIdle", VariableKind.FORMULA,
                        {"expression": "TunersNeeded / floor(Idle)"}),
    ]
    results = run_simulation(broken, {"iterations": 10000, "random_seed": 42})
    print(f"Failed evaluations: {results.failed_evaluations:,} of {results.iterations:,}")
    print(f"Invalid outcomes: {results.invalid_outcomes:,}")


if __name__ == "__main__":
    main()
