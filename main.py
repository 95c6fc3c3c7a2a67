import argparse
import json
import logging
import pathlib
import sys
from datetime import datetime

import pandas as pd
from dotenv import load_dotenv

load_dotenv()

from src.reporting.plotting import plot_analysis_output
from src.reporting.report import ReportCollector, generate_markdown_report
from src.stats_engine import describe_variables, get_default_config, handle_request
from src.stats_engine.schema import ASSOCIATION_KINDS, COMPARISON_KINDS


def configure_logging(log_level: str):
    """Configure logging with the specified level."""
    logging.basicConfig(
        level=getattr(logging, log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        force=True,
    )
    return logging.getLogger(__name__)


def load_records(path: pathlib.Path) -> list[dict]:
    """Load dataset records from a CSV file or a JSON array of objects.

    A JSON object with a ``data`` key (a saved request payload) is accepted too.
    """
    if not path.is_file():
        raise SystemExit(f"Path does not exist: {path}")

    suffix = path.suffix.lower()
    if suffix == ".csv":
        return pd.read_csv(path).to_dict(orient="records")
    if suffix == ".json":
        with open(path) as f:
            data = json.load(f)
        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise SystemExit(f"JSON file must contain an array of records: {path}")
        return data

    raise SystemExit(f"Unsupported data file (expected .csv or .json): {path}")


def _resolve_data_files(data_arg: str) -> list[pathlib.Path]:
    """Resolve --data into a list of files: a single file or every CSV/JSON in a directory."""
    path = pathlib.Path(data_arg)
    if path.is_dir():
        files = sorted(p for p in path.iterdir() if p.suffix.lower() in (".csv", ".json"))
        if not files:
            raise SystemExit(f"No CSV or JSON files found in directory: {path}")
        return files
    return [path]


def cmd_analyze(args):
    """Run one analysis kind on one or more datasets."""
    logger = configure_logging(args.log_level)
    config = get_default_config()

    report_collector = ReportCollector() if args.report else None
    report_plots_enabled = args.report and args.report_plots
    plot_paths = {}

    if args.report:
        if args.report is True:
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            report_path = pathlib.Path(f"reports/analysis_report_{timestamp}.md")
        else:
            report_path = pathlib.Path(args.report)

        if report_plots_enabled:
            figures_dir = report_path.parent / "figures"
            figures_dir.mkdir(parents=True, exist_ok=True)

    files = _resolve_data_files(args.data)
    logger.info(f"Found {len(files)} dataset(s) to analyze")

    plot_enabled = args.plot and len(files) == 1
    if args.plot and len(files) > 1:
        logger.warning(
            "Interactive plotting is only supported for a single dataset. Plotting will be disabled."
        )

    outputs = {}
    for idx, data_file in enumerate(files):
        run_id = str(idx + 1)
        logger.info(f"Processing: {data_file.name}")
        output = None
        error_msg = None

        try:
            payload = {
                "data": load_records(data_file),
                "variables": args.variables,
                "analysisSubType": args.type,
                "baseVariable": args.base,
                "crossingVariables": args.crossing,
            }
            output = handle_request(payload, config)
            if "error" in output:
                error_msg = output["error"]
        except Exception as e:
            error_msg = str(e)
            logger.error(f"Error processing {data_file.name}: {error_msg}")

        if output is not None:
            outputs[data_file.name] = output

        if output and not error_msg:
            try:
                if report_plots_enabled:
                    plot_path = str(figures_dir / f"analysis_{run_id}_plots.png")
                    plot_analysis_output(output, args.type, save_path=plot_path, alpha=config.alpha)
                    plot_paths[run_id] = plot_path
                elif plot_enabled:
                    plot_analysis_output(output, args.type, alpha=config.alpha)
            except Exception as e:
                logger.error(f"Plotting failed: {str(e)}")

        if report_collector:
            report_collector.add_result(
                run_id=run_id,
                source=data_file.name,
                kind=args.type,
                output=output,
                variables=args.variables,
                error=error_msg,
            )

    result = outputs if len(files) > 1 else next(iter(outputs.values()), {})
    if args.output:
        output_path = pathlib.Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(json.dumps(result, indent=2, allow_nan=False))
        logger.info(f"Results written to {output_path}")
    else:
        print(json.dumps(result, indent=2, allow_nan=False))

    if report_collector:
        generate_markdown_report(report_collector, str(report_path), plot_paths=plot_paths)
        logger.info(f"Report generated: {report_path}")


def cmd_describe(args):
    """Print descriptive statistics for the variables of a dataset."""
    configure_logging(args.log_level)
    records = load_records(pathlib.Path(args.data))
    summaries = describe_variables(records, args.variables)

    print(f"\n{'Variable':<20} {'Type':<8} {'N':>6} {'Missing':>8} {'Unique':>7}  Summary")
    print("-" * 90)

    for s in summaries:
        name = s.name if len(s.name) <= 20 else s.name[:17] + "..."
        if s.type == "numeric":
            detail = f"mean={s.mean} median={s.median} sd={s.std} range=[{s.min}, {s.max}]"
        else:
            detail = f"mode={s.mode}"
        print(f"{name:<20} {s.type:<8} {s.count:>6} {s.missing:>8} {s.unique:>7}  {detail}")

    print(f"\nTotal: {len(records)} record(s), {len(summaries)} variable(s)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        description="Epi Stats - Statistical analysis of tabular study data",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Run a statistical analysis")
    analyze_parser.add_argument(
        "--data",
        required=True,
        help="CSV/JSON data file, or a directory of them",
    )
    analyze_parser.add_argument(
        "--type",
        required=True,
        choices=[*ASSOCIATION_KINDS, *COMPARISON_KINDS],
        help="Analysis to run",
    )
    analyze_parser.add_argument(
        "--variables",
        nargs="+",
        required=True,
        help="Variables to analyze",
    )
    analyze_parser.add_argument(
        "--base",
        help="Base variable crossed with each --crossing variable (chi2 only)",
    )
    analyze_parser.add_argument(
        "--crossing",
        nargs="+",
        help="Variables crossed with --base (chi2 only)",
    )
    analyze_parser.add_argument(
        "--output",
        metavar="PATH",
        help="Write the JSON results to PATH instead of printing them",
    )
    analyze_parser.add_argument(
        "--plot",
        action="store_true",
        help="Show p-value and odds-ratio plots (only works with a single dataset)",
    )
    analyze_parser.add_argument(
        "--report",
        nargs="?",
        const=True,
        default=False,
        metavar="PATH",
        help="Generate a Markdown report. Optionally specify output path (default: reports/analysis_report_<timestamp>.md)",
    )
    analyze_parser.add_argument(
        "--report-plots",
        action="store_true",
        help="Include plots in the report (requires --report)",
    )
    analyze_parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: INFO)",
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    # Describe command
    describe_parser = subparsers.add_parser(
        "describe", help="Show descriptive statistics for each variable"
    )
    describe_parser.add_argument("--data", required=True, help="CSV or JSON data file")
    describe_parser.add_argument(
        "--variables",
        nargs="+",
        help="Variables to describe (default: all)",
    )
    describe_parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set logging level (default: WARNING)",
    )
    describe_parser.set_defaults(func=cmd_describe)

    args = parser.parse_args(sys.argv[1:] if argv is None else argv)

    if args.command is None:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
