"""Reporting and visualization modules."""

from .reporting import (
    SimulationResults, SummaryStatistics, Histogram, HistogramBin,
    ResultsCalculator, ChartGenerator, summarize, format_number,
)

__all__ = [
    'SimulationResults', 'SummaryStatistics', 'Histogram', 'HistogramBin',
    'ResultsCalculator', 'ChartGenerator', 'summarize', 'format_number',
]
