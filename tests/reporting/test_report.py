"""Tests for report module."""

from pathlib import Path

import pytest

from src.reporting.report import ReportCollector, generate_markdown_report
from src.stats_engine import handle_request


@pytest.fixture
def cohort_records():
    counts = {
        ("exposed", "case"): 20,
        ("exposed", "control"): 10,
        ("unexposed", "case"): 10,
        ("unexposed", "control"): 20,
    }
    return [
        {"exposure": exposure, "outcome": outcome, "age": 30 + i % 25}
        for (exposure, outcome), n in counts.items()
        for i in range(n)
    ]


def test_generate_markdown_report_creates_valid_report(tmp_path, cohort_records):
    """Test that generate_markdown_report creates a valid Markdown file."""
    output = handle_request(
        {"data": cohort_records, "variables": ["exposure", "outcome"], "analysisSubType": "chi2"}
    )
    collector = ReportCollector()
    collector.add_result(
        run_id="1",
        source="cohort.csv",
        kind="chi2",
        output=output,
        variables=["exposure", "outcome"],
    )

    report_path = tmp_path / "report.md"
    result = generate_markdown_report(collector, str(report_path))

    assert Path(result).exists()
    content = report_path.read_text()
    assert "# Statistical Analysis Report" in content
    assert "cohort.csv" in content
    assert "| Pearson Chi-Square | 6.6667 | 1 |" in content
    assert "Odds Ratio (OR)" in content
    assert "0 of 4 cells have expected count less than 5" in content


def test_report_lists_failed_runs(tmp_path):
    collector = ReportCollector()
    collector.add_result(
        run_id="1", source="empty.csv", kind="ttest", output={"error": "No data provided"}
    )

    report_path = tmp_path / "report.md"
    generate_markdown_report(collector, str(report_path))

    content = report_path.read_text()
    assert "**Error:** No data provided" in content
    assert "| Error |" in content


def test_report_embeds_plots(tmp_path, cohort_records):
    output = handle_request(
        {"data": cohort_records, "variables": ["age", "exposure"], "analysisSubType": "ttest"}
    )
    collector = ReportCollector()
    collector.add_result(run_id="1", source="cohort.csv", kind="ttest", output=output)

    report_path = tmp_path / "report.md"
    generate_markdown_report(
        collector,
        str(report_path),
        plot_paths={"1": str(tmp_path / "figures" / "analysis_1_plots.png")},
    )

    assert 'src="figures/analysis_1_plots.png"' in report_path.read_text()


def test_summary_stats():
    collector = ReportCollector()
    collector.add_result(
        run_id="1",
        source="a.csv",
        kind="correlation",
        output={"correlations": [{"significant": True}, {"significant": False}]},
    )
    collector.add_result(run_id="2", source="b.csv", kind="chi2", error="boom")

    stats = collector.get_summary_stats()
    assert stats["total_runs"] == 2
    assert stats["successful_runs"] == 1
    assert stats["failed_runs"] == 1
    assert stats["total_tests"] == 2
    assert stats["significant_tests"] == 1
    assert stats["significant_rate"] == 0.5


def test_empty_result_list(tmp_path):
    collector = ReportCollector()
    collector.add_result(run_id="1", source="a.csv", kind="anova", output={"anovaTests": []})

    report_path = tmp_path / "nested" / "report.md"
    generate_markdown_report(collector, str(report_path))

    assert "No testable variable pairs." in report_path.read_text()
