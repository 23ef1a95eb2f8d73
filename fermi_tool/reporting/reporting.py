"""Results summarization and visualization.

Turns the raw outcome array of a run into summary statistics and a
fixed-count histogram, and renders that histogram as a chart.
"""

import math
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
import plotly.graph_objects as go
from pydantic import BaseModel, Field

from ..core.performance import fast_histogram

DEFAULT_BIN_COUNT = 50

INK_COLOR = '#264653'
TEAL_COLOR = 'rgba(42, 157, 143, 0.7)'
MUSTARD_COLOR = 'rgba(233, 196, 106, 0.9)'


def format_number(num: float) -> str:
    """Format a value for display.

    Small non-zero magnitudes use scientific notation, everything else
    thousands separators and at most two decimals.
    """
    if not math.isfinite(num):
        return str(num)
    if abs(num) < 0.01 and num != 0:
        return f"{num:.2e}"
    text = f"{num:,.2f}"
    text = text.rstrip('0').rstrip('.')
    return "0" if text in ("-0", "") else text


class SummaryStatistics(BaseModel):
    """Statistics over the finite outcomes of a run."""
    count: int = Field(..., description="Number of finite outcomes")
    invalid_count: int = Field(0, description="Outcomes dropped as NaN or infinite")
    mean: float
    median: float
    p05: float
    p95: float
    min: float
    max: float
    std: float

    @property
    def interval(self) -> Tuple[float, float]:
        """The 90% interval (p05, p95)."""
        return self.p05, self.p95


class HistogramBin(BaseModel):
    """One histogram bar."""
    index: int
    lower: float
    upper: float
    midpoint: float
    count: int
    label: str
    highlighted: bool = Field(..., description="Midpoint lies within [p05, p95]")


class Histogram(BaseModel):
    """Equal-width histogram over [min, max] of the finite outcomes."""
    bin_count: int
    bin_width: float
    min: float
    max: float
    bins: List[HistogramBin]

    @property
    def counts(self) -> List[int]:
        return [b.count for b in self.bins]

    @property
    def midpoints(self) -> List[float]:
        return [b.midpoint for b in self.bins]

    @property
    def labels(self) -> List[str]:
        return [b.label for b in self.bins]

    @property
    def highlighted(self) -> List[bool]:
        return [b.highlighted for b in self.bins]


class SimulationResults(BaseModel):
    """Container for simulation results."""
    output_variable: Optional[str]
    iterations: int
    random_seed: Optional[int]
    outcomes: List[float]
    failed_evaluations: int = 0
    error_counts: Dict[str, int] = Field(default_factory=dict)
    evaluation_order: List[str] = Field(default_factory=list)
    configuration_errors: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)
    statistics: Optional[SummaryStatistics] = None
    histogram: Optional[Histogram] = None
    simulation_time: float = 0.0

    @property
    def invalid_outcomes(self) -> int:
        """Outcomes that are NaN or infinite."""
        return int(np.count_nonzero(~np.isfinite(np.asarray(self.outcomes, dtype=float))))

    @property
    def iterations_per_second(self) -> Optional[float]:
        if self.simulation_time > 0:
            return self.iterations / self.simulation_time
        return None

    def summary_dict(self) -> Dict[str, Any]:
        """Flat summary used by exporters."""
        summary: Dict[str, Any] = {
            'output_variable': self.output_variable,
            'iterations': self.iterations,
            'random_seed': self.random_seed,
            'failed_evaluations': self.failed_evaluations,
            'invalid_outcomes': self.invalid_outcomes,
            'simulation_time': self.simulation_time,
        }
        if self.statistics:
            summary.update(self.statistics.model_dump())
        return summary


class ResultsCalculator:
    """Calculates summary statistics from outcome arrays."""

    @staticmethod
    def valid_sorted(outcomes: Sequence[float]) -> np.ndarray:
        """Finite outcomes in ascending order."""
        data = np.asarray(outcomes, dtype=float)
        return np.sort(data[np.isfinite(data)])

    @staticmethod
    def nearest_rank(sorted_data: np.ndarray, fraction: float) -> float:
        """Element at ``floor(n * fraction)`` of sorted data (no interpolation)."""
        index = int(math.floor(len(sorted_data) * fraction))
        index = min(index, len(sorted_data) - 1)
        return float(sorted_data[index])

    @staticmethod
    def calculate_statistics(outcomes: Sequence[float]) -> Optional[SummaryStatistics]:
        """Mean, nearest-rank median/p05/p95 and spread of the finite outcomes.

        Args:
            outcomes: Raw outcomes, possibly containing NaN or infinities

        Returns:
            Statistics, or None when no finite outcome exists
        """
        total = len(outcomes)
        data = ResultsCalculator.valid_sorted(outcomes)
        n = len(data)
        if n == 0:
            return None

        return SummaryStatistics(
            count=n,
            invalid_count=total - n,
            mean=float(np.mean(data)),
            median=float(data[n // 2]),
            p05=ResultsCalculator.nearest_rank(data, 0.05),
            p95=ResultsCalculator.nearest_rank(data, 0.95),
            min=float(data[0]),
            max=float(data[-1]),
            std=float(np.std(data)),
        )

    @staticmethod
    def calculate_histogram(outcomes: Sequence[float],
                            p05: float,
                            p95: float,
                            bin_count: int = DEFAULT_BIN_COUNT) -> Optional[Histogram]:
        """Bin the finite outcomes into ``bin_count`` equal-width bins.

        Args:
            outcomes: Raw outcomes
            p05: Lower bound of the highlighted interval
            p95: Upper bound of the highlighted interval
            bin_count: Number of bins

        Returns:
            Histogram, or None when no finite outcome exists
        """
        data = ResultsCalculator.valid_sorted(outcomes)
        if len(data) == 0:
            return None

        minimum = float(data[0])
        maximum = float(data[-1])
        bin_width = (maximum - minimum) / bin_count
        counts = fast_histogram(data, minimum, bin_width, bin_count)

        bins = []
        for i in range(bin_count):
            midpoint = minimum + (i + 0.5) * bin_width
            bins.append(HistogramBin(
                index=i,
                lower=minimum + i * bin_width,
                upper=minimum + (i + 1) * bin_width,
                midpoint=midpoint,
                count=int(counts[i]),
                label=format_number(midpoint),
                highlighted=bool(p05 <= midpoint <= p95),
            ))

        return Histogram(
            bin_count=bin_count,
            bin_width=bin_width,
            min=minimum,
            max=maximum,
            bins=bins,
        )

    @staticmethod
    def summarize(outcomes: Sequence[float],
                  bin_count: int = DEFAULT_BIN_COUNT
                  ) -> Tuple[Optional[SummaryStatistics], Optional[Histogram]]:
        """Statistics and histogram of an outcome array."""
        statistics = ResultsCalculator.calculate_statistics(outcomes)
        if statistics is None:
            return None, None
        histogram = ResultsCalculator.calculate_histogram(
            outcomes, statistics.p05, statistics.p95, bin_count
        )
        return statistics, histogram


def summarize(outcomes: Sequence[float],
              bin_count: int = DEFAULT_BIN_COUNT
              ) -> Tuple[Optional[SummaryStatistics], Optional[Histogram]]:
    """Summarize outcomes; returns ``(None, None)`` when nothing finite remains."""
    return ResultsCalculator.summarize(outcomes, bin_count)


class ChartGenerator:
    """Renders outcome histograms."""

    def __init__(self, style: str = 'plotly'):
        """Initialize chart generator.

        Args:
            style: Chart style ('plotly' or 'matplotlib')
        """
        if style not in ('plotly', 'matplotlib'):
            raise ValueError(f"Unknown chart style: {style}")
        self.style = style

    def create_histogram(self, histogram: Histogram,
                         title: str = "Outcome Distribution",
                         x_label: str = "Value") -> Any:
        """Create a bar chart of a histogram, highlighting the 90% interval.

        Args:
            histogram: Histogram to draw
            title: Chart title
            x_label: X-axis label

        Returns:
            plotly Figure or matplotlib Figure
        """
        colors = [MUSTARD_COLOR if b.highlighted else TEAL_COLOR for b in histogram.bins]

        if self.style == 'plotly':
            fig = go.Figure()
            fig.add_trace(go.Bar(
                x=histogram.labels,
                y=histogram.counts,
                name='Frequency',
                marker=dict(color=colors, line=dict(color=INK_COLOR, width=1)),
                hovertemplate="Value: %{x}<br>Count: %{y}<extra></extra>",
            ))
            fig.update_layout(
                title=title,
                xaxis_title=x_label,
                yaxis_title="Frequency",
                bargap=0,
                showlegend=False,
            )
            return fig

        fig, ax = plt.subplots(figsize=(10, 6))
        mpl_colors = [_rgba_to_mpl(c) for c in colors]
        width = histogram.bin_width if histogram.bin_width > 0 else 1.0
        ax.bar(histogram.midpoints, histogram.counts, width=width,
               color=mpl_colors, edgecolor=INK_COLOR, linewidth=1)
        ax.set_title(title)
        ax.set_xlabel(x_label)
        ax.set_ylabel('Frequency')
        return fig

    def save(self, figure: Any, path: str) -> None:
        """Write a chart created by ``create_histogram`` to disk."""
        if self.style == 'plotly':
            figure.write_html(path)
        else:
            figure.savefig(path, bbox_inches='tight')
            plt.close(figure)


def _rgba_to_mpl(css: str) -> Tuple[float, float, float, float]:
    """Convert a CSS ``rgba(r, g, b, a)`` string to a matplotlib RGBA tuple."""
    r, g, b, a = (float(part) for part in css[css.index('(') + 1:css.index(')')].split(','))
    return r / 255, g / 255, b / 255, a
