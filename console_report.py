import os
import sys
from typing import List, Optional, TextIO

from analysis_core import LogStats

WIDTH = 65
TOP_N = 10
BAR_WIDTH = 30

HIGH_ERROR_RATE = 5.0
MODERATE_ERROR_RATE = 1.0
SLOW_MS = 1000.0
SLUGGISH_MS = 500.0

ANSI = {
    "bold": "1",
    "red": "31",
    "green": "32",
    "yellow": "33",
    "blue": "34",
    "cyan": "36",
    "grey": "90",
    "bright_blue": "94",
    "bright_cyan": "96",
    "white": "97",
}


def color_enabled(stream: TextIO) -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    return hasattr(stream, "isatty") and stream.isatty()


def truncate(text: str, max_len: int) -> str:
    if len(text) > max_len:
        return text[: max_len - 3] + "..."
    return text


class ConsoleReport:
    """Fixed-section text report of a LogStats, optionally colored with ANSI codes."""

    def __init__(self, stats: LogStats, color: bool = False, top_n: int = TOP_N):
        self.stats = stats
        self.color = color
        self.top_n = top_n
        self.lines: List[str] = []

    def paint(self, text: str, *styles: str) -> str:
        if not self.color or not styles:
            return text
        codes = ";".join(ANSI[s] for s in styles)
        return f"\033[{codes}m{text}\033[0m"

    def pad(self, text: str, width: int, *styles: str, align: str = "<") -> str:
        # pad before painting so escape codes do not count toward the width
        return self.paint(f"{text:{align}{width}}", *styles)

    def rule(self, char: str = "─", *styles: str) -> str:
        return self.paint(char * WIDTH, *(styles or ("grey",)))

    def emit(self, line: str = "") -> None:
        self.lines.append(line)

    def section(self, title: str) -> None:
        self.emit()
        self.emit(self.paint(title, "bold", "white"))
        self.emit(self.rule())

    def render(self) -> str:
        self.lines = []
        self.header()
        self.summary()
        self.performance()
        self.top_endpoints()
        self.error_analysis()
        self.slowest_requests()
        self.footer()
        return "\n".join(self.lines) + "\n"

    # ---------- Sections ----------

    def header(self) -> None:
        self.emit()
        self.emit(self.paint("╔" + "═" * (WIDTH - 2) + "╗", "bright_cyan"))
        self.emit(self.paint("║" + f"{'LOG ANALYSIS REPORT':^{WIDTH - 2}}" + "║", "bright_cyan", "bold"))
        self.emit(self.paint("╚" + "═" * (WIDTH - 2) + "╝", "bright_cyan"))

    def footer(self) -> None:
        self.emit(self.rule("═", "bright_cyan"))

    def summary(self) -> None:
        stats = self.stats
        self.section("SUMMARY STATISTICS")
        self.emit(f"{'Total Requests:':<30} " + self.pad(str(stats.total_requests), 10, "white", "bold", align=">"))

        pct = stats.level_percentages()
        self.emit()
        self.emit(self.paint("Status Breakdown:", "white"))
        rows = (
            ("INFO", stats.info_count, ("green",)),
            ("WARNING", stats.warning_count, ("yellow",)),
            ("ERROR", stats.error_count, ("red", "bold")),
        )
        for name, count, styles in rows:
            self.emit(
                "  "
                + self.pad(name, 26, styles[0])
                + " "
                + self.pad(str(count), 8, *styles, align=">")
                + "  "
                + self.paint(f"({pct[name]:.1f}%)", "grey")
            )
        if stats.unclassified_count:
            self.emit("  " + self.pad("UNCLASSIFIED", 26, "grey") + " " + self.pad(str(stats.unclassified_count), 8, "grey", align=">"))

        error_pct = pct["ERROR"]
        if error_pct > HIGH_ERROR_RATE:
            self.emit()
            self.emit("  " + self.paint(f"⚠ High error rate detected: {error_pct:.1f}%", "yellow", "bold"))
        elif error_pct > MODERATE_ERROR_RATE:
            self.emit()
            self.emit("  " + self.paint(f"ℹ Moderate error rate: {error_pct:.1f}%", "bright_blue"))

    def performance(self) -> None:
        stats = self.stats
        self.section("PERFORMANCE METRICS")
        self.emit(f"{'Average Response Time:':<30} " + self.pad(f"{stats.avg_response_time:.2f}ms", 10, "bright_cyan", align=">"))

        percentiles = stats.percentiles()
        styles = {"p50": "green", "p95": "yellow", "p99": "red"}
        for key, value in percentiles.items():
            if value is None:
                continue
            label = f"{key.upper()} Response Time:"
            self.emit(f"{label:<30} " + self.pad(f"{value:.2f}ms", 10, styles.get(key, "white"), align=">"))

    def top_endpoints(self) -> None:
        stats = self.stats
        self.section(f"TOP {self.top_n} ENDPOINTS BY REQUEST COUNT")
        self.emit(self.pad("#", 4, "grey") + " " + self.pad("Endpoint", 40, "grey") + " " + self.pad("Count", 10, "grey", align=">"))
        self.emit(self.rule())

        for i, (endpoint, count) in enumerate(stats.top_endpoints(self.top_n), 1):
            width = int(count / stats.total_requests * BAR_WIDTH) if stats.total_requests else 0
            self.emit(
                self.pad(str(i), 4, "bright_cyan")
                + " "
                + f"{truncate(endpoint, 40):<40}"
                + " "
                + self.pad(str(count), 10, "white", "bold", align=">")
                + " "
                + self.paint("█" * width, "blue")
            )

    def error_analysis(self) -> None:
        stats = self.stats
        if not stats.errors_by_endpoint:
            self.emit()
            self.emit(self.paint("ERROR ANALYSIS: No errors detected", "bold", "green"))
            return

        self.section("ERROR ANALYSIS")
        self.emit(self.pad("#", 4, "grey") + " " + self.pad("Endpoint", 40, "grey") + " " + self.pad("Errors", 10, "grey", align=">"))
        self.emit(self.rule())
        for i, (endpoint, count) in enumerate(stats.top_error_endpoints(self.top_n), 1):
            self.emit(
                self.pad(str(i), 4, "bright_cyan")
                + " "
                + f"{truncate(endpoint, 40):<40}"
                + " "
                + self.pad(str(count), 10, "red", "bold", align=">")
            )

    def slowest_requests(self) -> None:
        self.section(f"TOP {self.top_n} SLOWEST REQUESTS")
        self.emit(
            self.pad("#", 4, "grey")
            + " "
            + self.pad("Endpoint", 35, "grey")
            + " "
            + self.pad("Method", 10, "grey")
            + " "
            + self.pad("Time", 10, "grey", align=">")
        )
        self.emit(self.rule())

        for i, record in enumerate(self.stats.slowest(self.top_n), 1):
            if record.response_time is None:
                continue
            endpoint = record.endpoint or "N/A"
            method = record.method.value if record.method else "N/A"
            if record.response_time > SLOW_MS:
                styles = ("red", "bold")
            elif record.response_time > SLUGGISH_MS:
                styles = ("yellow",)
            else:
                styles = ("white",)
            self.emit(
                self.pad(str(i), 4, "bright_cyan")
                + " "
                + f"{truncate(endpoint, 35):<35}"
                + " "
                + f"{method:<10}"
                + " "
                + self.pad(f"{record.response_time:.2f}ms", 10, *styles, align=">")
            )


def render_report(stats: LogStats, color: bool = False, top_n: int = TOP_N) -> str:
    return ConsoleReport(stats, color=color, top_n=top_n).render()


def print_report(stats: LogStats, stream: Optional[TextIO] = None, color: Optional[bool] = None, top_n: int = TOP_N) -> None:
    stream = stream or sys.stdout
    if color is None:
        color = color_enabled(stream)
    stream.write(render_report(stats, color=color, top_n=top_n))


def render_plain_summary(stats: LogStats) -> str:
    pct = stats.level_percentages()
    lines = [
        "=== Log Analysis Report ===",
        f"Total Requests: {stats.total_requests}",
        "",
        "Status Breakdown:",
        f"  INFO:    {stats.info_count} ({pct['INFO']:.1f}%)",
        f"  WARNING: {stats.warning_count} ({pct['WARNING']:.1f}%)",
        f"  ERROR:   {stats.error_count} ({pct['ERROR']:.1f}%)",
        "",
        "Performance:",
        f"  Avg Response Time: {stats.avg_response_time:.2f}ms",
    ]
    return "\n".join(lines) + "\n"
