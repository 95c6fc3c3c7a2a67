"""Markdown reports and plots for analysis results."""

from src.reporting.plotting import plot_analysis_output
from src.reporting.report import ReportCollector, generate_markdown_report

__all__ = [
    "ReportCollector",
    "generate_markdown_report",
    "plot_analysis_output",
]
