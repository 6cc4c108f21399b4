import re
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Callable, Dict, Optional

from log_records import ExtractionError, HttpMethod, LogLevel, LogRecord


@dataclass(frozen=True)
class PatternSet:
    """
    Compiled patterns used by the field extractors, one per field.

    Instances are immutable; build a new set with `dataclasses.replace` to try
    a different pattern for a single field.
    """
    timestamp: re.Pattern
    level: re.Pattern
    ip_address: re.Pattern
    method: re.Pattern
    endpoint: re.Pattern
    status_code: re.Pattern
    response_time: re.Pattern


def build_default_patterns() -> PatternSet:
    return PatternSet(
        # [10/Oct/2000:13:55:36 -0700] or 2024-01-15 10:30:45.123Z
        timestamp=re.compile(
            r"\[(?P<apache>\d{2}/[A-Za-z]{3}/\d{4}:\d{2}:\d{2}:\d{2} [+\-]\d{4})\]"
            r"|(?P<iso>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}(?:\.\d{3})?Z?)"
        ),
        level=re.compile(r"\b(DEBUG|INFO|WARNING|ERROR|FATAL)\b"),
        ip_address=re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
        method=re.compile(r"\b(GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS)\b"),
        endpoint=re.compile(r"\b(?:GET|POST|PUT|DELETE|PATCH|HEAD|OPTIONS) ([^\s\"]+)"),
        status_code=re.compile(r"(?<=\s)(\d{3})(?=\s)"),
        response_time=re.compile(r"(?<![\w.])(\d+(?:\.\d+)?)(ms|s)\b"),
    )


DEFAULT_PATTERNS = build_default_patterns()


# ---------------------------------------------------------------------------
# Field extractors: (line, patterns) -> value or None
# ---------------------------------------------------------------------------

def extract_timestamp(line: str, patterns: PatternSet) -> Optional[str]:
    match = patterns.timestamp.search(line)
    if not match:
        return None
    return match.group("apache") or match.group("iso")


def extract_level(line: str, patterns: PatternSet) -> Optional[LogLevel]:
    # DEBUG and FATAL are matched so they do not shadow a later token, but have no level
    match = patterns.level.search(line)
    if not match:
        return None
    return LogLevel.parse(match.group(1))


def extract_ip_address(line: str, patterns: PatternSet) -> Optional[IPv4Address]:
    match = patterns.ip_address.search(line)
    if not match:
        return None
    try:
        return IPv4Address(match.group(0))
    except ValueError:
        return None


def extract_method(line: str, patterns: PatternSet) -> Optional[HttpMethod]:
    match = patterns.method.search(line)
    if not match:
        return None
    return HttpMethod.parse(match.group(1))


def extract_endpoint(line: str, patterns: PatternSet) -> Optional[str]:
    match = patterns.endpoint.search(line)
    if not match:
        return None
    return match.group(1)


def extract_status_code(line: str, patterns: PatternSet) -> Optional[int]:
    match = patterns.status_code.search(line)
    if not match:
        return None
    try:
        return int(match.group(1))
    except ValueError:
        return None


def extract_response_time(line: str, patterns: PatternSet) -> Optional[float]:
    """Latency number as written. The `ms`/`s` suffix only delimits it; no unit conversion is applied."""
    match = patterns.response_time.search(line)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value


def extract_message(line: str, patterns: PatternSet) -> Optional[str]:
    """Free text after the latency token. Without a latency there is no message."""
    match = patterns.response_time.search(line)
    if not match:
        return None
    message = line[match.end():].strip()
    return message or None


FIELD_EXTRACTORS: Dict[str, Callable[[str, PatternSet], object]] = {
    "timestamp": extract_timestamp,
    "level": extract_level,
    "ip_address": extract_ip_address,
    "method": extract_method,
    "endpoint": extract_endpoint,
    "status_code": extract_status_code,
    "response_time": extract_response_time,
    "message": extract_message,
}


class FieldExtractor:
    """
    Turns raw log lines into LogRecords.

    Each field is produced by its own extractor run against the whole line, so
    the order of the extractors does not matter and no field depends on
    another having matched. `extract` never raises; `extract_strict` rejects a
    line in which nothing at all was recognized.
    """

    def __init__(self, patterns: PatternSet = DEFAULT_PATTERNS, extractors=None):
        self.patterns = patterns
        self.extractors = dict(extractors or FIELD_EXTRACTORS)

    def extract(self, line: str) -> LogRecord:
        line = line.rstrip("\r\n")
        fields = {
            name: extractor(line, self.patterns)
            for name, extractor in self.extractors.items()
        }
        return LogRecord(**fields)

    def extract_strict(self, line: str) -> LogRecord:
        """Like extract, but raises ExtractionError when no pattern matched at all."""
        record = self.extract(line)
        # a lone DEBUG/FATAL token still counts as recognized, with no level
        if record.is_empty() and self.patterns.level.search(line) is None:
            raise ExtractionError(line.rstrip("\r\n"))
        return record


def parse_log_line(line: str) -> LogRecord:
    return FieldExtractor().extract(line)
