import argparse
import json
import logging
import sys
from pathlib import Path

from analysis_core import LogStats, summarize_stats
from console_report import print_report
from log_collection import LogCollection
from log_records import AnalyzerError

logger = logging.getLogger(__name__)


def analyze_file(path, level=None, start=None, end=None, endpoint=None):
    """Parse a log file, apply the optional filters and aggregate the result."""
    collection, report = LogCollection.from_file(path)

    records = collection
    if level:
        records = records.filter_by_level(level)
    if start and end:
        records = records.filter_by_date_range(start, end)
    if endpoint:
        records = records.filter_by_endpoint(endpoint)

    return LogStats.from_records(records), report


def build_plot(stats: LogStats, output_path: Path, top_k: int = 10):
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    top = stats.top_endpoints(top_k)
    names = [endpoint for endpoint, _ in top]
    counts = [count for _, count in top]
    latencies = stats.response_times()

    fig, axes = plt.subplots(1, 2, figsize=(12, 4))

    axes[0].barh(names[::-1], counts[::-1], color="#4f81bd")
    axes[0].set_title(f"Top {top_k} endpoints")
    axes[0].set_xlabel("Requests")

    if latencies:
        axes[1].hist(latencies, bins=30, color="#c0504d")
        for key, value in stats.percentiles().items():
            if value is not None:
                axes[1].axvline(value, linestyle="--", linewidth=1, label=f"{key.upper()} {value:.0f}ms")
        axes[1].legend()
    axes[1].set_title("Response time distribution")
    axes[1].set_xlabel("Milliseconds")

    fig.tight_layout()
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(output_path, dpi=150)
    plt.close(fig)


def write_summary(stats: LogStats, output_path: Path, top_k: int = 10):
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as handle:
        json.dump(summarize_stats(stats, top_k=top_k), handle, indent=2)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="log-analyzer", description="Server logs file analyzer")
    parser.add_argument("-i", "--input-file", required=True, help="Path to the server log file.")
    parser.add_argument("--output", help="Where to write the JSON summary.")
    parser.add_argument("--plot", help="Optional path to write a summary plot (PNG).")
    parser.add_argument("--level", help="Only analyze entries with this level (INFO, WARNING, ERROR).")
    parser.add_argument("--start", help="First day to include (YYYY-MM-DD).")
    parser.add_argument("--end", help="Last day to include (YYYY-MM-DD).")
    parser.add_argument("--endpoint", help="Only analyze entries whose endpoint contains this path as a whole word.")
    parser.add_argument("--top", type=int, default=10, help="Rows per ranking in the report.")
    parser.add_argument("--no-color", action="store_true", help="Disable ANSI colors.")
    parser.add_argument("--show-warnings", action="store_true", help="List every line that could not be parsed.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    input_path = Path(args.input_file)
    if not input_path.is_file():
        raise SystemExit(f"Log file not found: {input_path}")
    if bool(args.start) != bool(args.end):
        raise SystemExit("--start and --end must be given together")

    try:
        stats, report = analyze_file(
            input_path,
            level=args.level,
            start=args.start,
            end=args.end,
            endpoint=args.endpoint,
        )
    except AnalyzerError as exc:
        raise SystemExit(str(exc)) from exc

    if report.has_warnings:
        logger.warning("%d lines could not be parsed", report.warning_count)
        if args.show_warnings:
            for warning in report.warnings:
                print(warning, file=sys.stderr)

    print_report(stats, color=False if args.no_color else None, top_n=args.top)

    if args.output:
        output_path = Path(args.output)
        write_summary(stats, output_path, top_k=args.top)
        print(f"- JSON summary: {output_path}")

    if args.plot:
        build_plot(stats, Path(args.plot), top_k=args.top)
        print(f"- Plot: {Path(args.plot)}")


if __name__ == "__main__":
    main()
