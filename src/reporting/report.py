"""
Report generation for analysis results.

This module collects the response payloads of one or more analysis runs and
renders them as a Markdown report laid out like the usual epidemiology
cross-tab output (cross-table, chi-square tests, risk estimate).
"""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from src.stats_engine.schema import RESULT_KEYS

logger = logging.getLogger(__name__)


@dataclass
class AnalysisRun:
    """Results of one analysis request."""

    run_id: str
    source: str
    kind: str
    variables: list = field(default_factory=list)
    tests: list = field(default_factory=list)
    error: str = None

    @property
    def n_significant(self) -> int:
        return sum(1 for t in self.tests if t.get("significant"))


class ReportCollector:
    """Collects analysis results from multiple runs for report generation."""

    def __init__(self):
        self.results: list[AnalysisRun] = []

    def add_result(
        self,
        run_id: str,
        source: str,
        kind: str,
        output: dict = None,
        variables: list = None,
        error: str = None,
    ):
        """
        Add the result of one analysis run.

        Parameters
        ----------
        run_id : str
            Identifier of the run.
        source : str
            Where the data came from (e.g. file name).
        kind : str
            Analysis kind (``chi2``, ``correlation``, ``ttest``, ``anova``,
            ``regression``).
        output : dict, optional
            Response payload of the analysis.
        variables : list, optional
            Variables selected for the run.
        error : str, optional
            Error message if the analysis failed.
        """
        run = AnalysisRun(
            run_id=run_id, source=source, kind=kind, variables=variables or [], error=error
        )

        if output and not error:
            if "error" in output:
                run.error = output["error"]
            else:
                run.tests = list(output.get(RESULT_KEYS.get(kind, ""), []))

        self.results.append(run)

    def get_summary_stats(self) -> dict:
        """
        Calculate summary statistics across all runs.

        Returns
        -------
        dict
            Counts of runs, failures, tests and significant tests.
        """
        successful = [r for r in self.results if r.error is None]
        n_tests = sum(len(r.tests) for r in successful)
        n_significant = sum(r.n_significant for r in successful)

        return {
            "total_runs": len(self.results),
            "successful_runs": len(successful),
            "failed_runs": len(self.results) - len(successful),
            "total_tests": n_tests,
            "significant_tests": n_significant,
            "significant_rate": n_significant / n_tests if n_tests else 0,
        }


def _fmt(value, digits: int = 4) -> str:
    if value is None:
        return "-"
    if isinstance(value, float) and math.isinf(value):
        return "∞" if value > 0 else "-∞"
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return f"{value:.{digits}f}"
    return str(value)


def _fmt_ci(ci) -> str:
    if not ci:
        return "-"
    return f"[{_fmt(ci[0], 3)} - {_fmt(ci[1], 3)}]"


def _significance(test: dict) -> str:
    return "Yes" if test.get("significant") else "No"


def _chi2_lines(test: dict) -> list[str]:
    lines = []
    table = test["contingencyTable"]
    var1, var2 = test["variable1"], test["variable2"]

    lines.append(f"#### {var1} by {var2}")
    lines.append("")
    lines.append(f"| {var1} \\ {var2} | " + " | ".join(table["cols"]) + " | Total |")
    lines.append("|:---|" + "---:|" * (len(table["cols"]) + 1))
    for row in table["rows"]:
        cells = [str(table["data"][row][col]) for col in table["cols"]]
        lines.append(f"| {row} | " + " | ".join(cells) + f" | {table['rowTotals'][row]} |")
    totals = [str(table["colTotals"][col]) for col in table["cols"]]
    lines.append("| **Total** | " + " | ".join(totals) + f" | {table['grandTotal']} |")
    lines.append("")

    df = test["degreesOfFreedom"]
    lines.append("| Chi-Square Tests | Value | df | Asymptotic Significance (2-sided) |")
    lines.append("|:---|---:|---:|---:|")
    lines.append(f"| Pearson Chi-Square | {_fmt(test['chi2'])} | {df} | {_fmt(test['pValue'])} |")
    lines.append(
        f"| Likelihood Ratio | {_fmt(test['likelihoodRatio'])} | {df} | "
        f"{_fmt(test['likelihoodRatioPValue'])} |"
    )
    lines.append(
        f"| Linear-by-Linear Association | {_fmt(test['linearByLinear'])} | 1 | "
        f"{_fmt(test['linearByLinearPValue'])} |"
    )
    lines.append(f"| N of Valid Cases | {test['nValidCases']} | - | - |")
    lines.append("")

    n_cells = len(table["rows"]) * len(table["cols"])
    lines.append(
        f"*{test['lowExpectedCells']} of {n_cells} cells have expected count less than 5.*"
    )
    lines.append("")

    risk = test["riskMeasures"]
    if risk["is2x2"]:
        lines.append("| Risk Estimate | Value | 95% Confidence Interval |")
        lines.append("|:---|---:|---:|")
        lines.append(
            f"| Odds Ratio (OR) | {_fmt(risk['oddsRatio'], 3)} | {_fmt_ci(risk['oddsRatioCI'])} |"
        )
        lines.append(
            f"| Relative Risk (RR) | {_fmt(risk['relativeRisk'], 3)} | "
            f"{_fmt_ci(risk['relativeRiskCI'])} |"
        )
        lines.append("")

    return lines


def _correlation_lines(tests: list[dict]) -> list[str]:
    lines = ["| Variable 1 | Variable 2 | r | p-value | N | Significant |"]
    lines.append("|:---|:---|---:|---:|---:|:---|")
    for t in tests:
        lines.append(
            f"| {t['variable1']} | {t['variable2']} | {_fmt(t['correlation'])} | "
            f"{_fmt(t['pValue'])} | {t['n']} | {_significance(t)} |"
        )
    return lines + [""]


def _ttest_lines(tests: list[dict]) -> list[str]:
    lines = [
        "| Variable | Grouping | Group 1 (mean ± sd, n) | Group 2 (mean ± sd, n) "
        "| t | df | p-value | Significant |"
    ]
    lines.append("|:---|:---|:---|:---|---:|---:|---:|:---|")
    for t in tests:
        group1 = f"{t['group1']}: {_fmt(t['mean1'], 3)} ± {_fmt(t['sd1'], 3)} ({t['n1']})"
        group2 = f"{t['group2']}: {_fmt(t['mean2'], 3)} ± {_fmt(t['sd2'], 3)} ({t['n2']})"
        lines.append(
            f"| {t['variable']} | {t['groupingVariable']} | {group1} | {group2} | "
            f"{_fmt(t['tStatistic'])} | {t['degreesOfFreedom']} | {_fmt(t['pValue'])} | "
            f"{_significance(t)} |"
        )
    return lines + [""]


def _anova_lines(tests: list[dict]) -> list[str]:
    lines = ["| Dependent | Factor | Groups | F | df | p-value | Significant |"]
    lines.append("|:---|:---|---:|---:|:---|---:|:---|")
    for t in tests:
        lines.append(
            f"| {t['dependentVariable']} | {t['independentVariable']} | {len(t['groups'])} | "
            f"{_fmt(t['fStatistic'])} | {t['dfBetween']}, {t['dfWithin']} | "
            f"{_fmt(t['pValue'])} | {_significance(t)} |"
        )
    return lines + [""]


def _regression_lines(tests: list[dict]) -> list[str]:
    lines = ["| Dependent | Predictor | Intercept | Slope (SE) | R² | Adj. R² | F | p-value |"]
    lines.append("|:---|:---|---:|---:|---:|---:|---:|---:|")
    for t in tests:
        intercept, slope = t["coefficients"]
        lines.append(
            f"| {t['dependentVariable']} | {slope['variable']} | "
            f"{_fmt(intercept['coefficient'])} | "
            f"{_fmt(slope['coefficient'])} ({_fmt(slope['standardError'])}) | "
            f"{_fmt(t['rSquared'])} | {_fmt(t['adjustedRSquared'])} | "
            f"{_fmt(t['fStatistic'])} | {_fmt(t['pValue'])} |"
        )
    return lines + [""]


_KIND_TITLES = {
    "chi2": "Chi-squared tests",
    "correlation": "Pearson correlations",
    "ttest": "Two-sample t-tests",
    "anova": "One-way ANOVA",
    "regression": "Simple linear regression",
}


def _run_lines(run: AnalysisRun) -> list[str]:
    if run.kind == "chi2":
        lines = []
        for test in run.tests:
            lines.extend(_chi2_lines(test))
        return lines
    if run.kind == "correlation":
        return _correlation_lines(run.tests)
    if run.kind == "ttest":
        return _ttest_lines(run.tests)
    if run.kind == "anova":
        return _anova_lines(run.tests)
    if run.kind == "regression":
        return _regression_lines(run.tests)
    return []


def generate_markdown_report(
    collector: ReportCollector, output_path: str, plot_paths: dict = None
) -> str:
    """
    Generate a Markdown report from collected analysis results.

    Parameters
    ----------
    collector : ReportCollector
        Collector containing analysis results.
    output_path : str
        Path to save the Markdown report.
    plot_paths : dict, optional
        Mapping of run id to a saved plot image, embedded under the run.

    Returns
    -------
    str
        Path to the generated report.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    plot_paths = plot_paths or {}

    stats = collector.get_summary_stats()
    timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")

    lines = []

    # Header
    lines.append("# Statistical Analysis Report")
    lines.append("")
    lines.append(f"**Generated:** {timestamp}")
    lines.append("")

    # Summary section
    lines.append("## Summary")
    lines.append("")
    lines.append(f"- **Analyses run:** {stats['total_runs']}")
    lines.append(f"- **Failed analyses:** {stats['failed_runs']}")
    lines.append(f"- **Tests reported:** {stats['total_tests']}")
    lines.append(
        f"- **Significant tests:** {stats['significant_tests']} "
        f"({stats['significant_rate']:.1%})"
    )
    lines.append("")

    # Results table
    lines.append("## Results Overview")
    lines.append("")
    lines.append("| ID | Source | Analysis | Tests | Significant | Status |")
    lines.append("|:---|:-------|:---------|:------|:------------|:-------|")

    for r in collector.results:
        if r.error:
            n_tests, n_sig, status = "-", "-", "Error"
        else:
            n_tests, n_sig, status = str(len(r.tests)), str(r.n_significant), "OK"

        source_display = r.source
        if len(source_display) > 40:
            source_display = source_display[:37] + "..."

        lines.append(
            f"| {r.run_id} | {source_display} | {_KIND_TITLES.get(r.kind, r.kind)} | "
            f"{n_tests} | {n_sig} | {status} |"
        )

    lines.append("")

    # Detailed results section
    lines.append("## Detailed Results")
    lines.append("")

    for r in collector.results:
        lines.append(f"### Analysis {r.run_id}: {_KIND_TITLES.get(r.kind, r.kind)}")
        lines.append("")
        lines.append(f"**Source:** {r.source}")
        lines.append("")
        if r.variables:
            lines.append(f"**Variables:** {', '.join(r.variables)}")
            lines.append("")

        if r.error:
            lines.append(f"**Error:** {r.error}")
            lines.append("")
            continue

        if not r.tests:
            lines.append("No testable variable pairs.")
            lines.append("")
            continue

        lines.extend(_run_lines(r))

        plot_path = plot_paths.get(r.run_id)
        if plot_path:
            plot_rel_path = Path(plot_path).name
            lines.append(
                f'<img src="figures/{plot_rel_path}" alt="Plots for analysis {r.run_id}" height="250">'
            )
            lines.append("")

    # Write report
    report_content = "\n".join(lines)
    output_path.write_text(report_content)

    logger.info(f"Report generated: {output_path}")
    return str(output_path)
