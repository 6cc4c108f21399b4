import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date, datetime
from itertools import islice
from pathlib import Path
from typing import Callable, Iterable, Iterator, List, Optional, Tuple, Union

from extraction import FieldExtractor
from log_records import (
    EmptyLogError,
    ExtractionError,
    FilterError,
    LogFileError,
    LogLevel,
    LogRecord,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, str]


@dataclass(frozen=True)
class ParseWarning:
    line_number: int
    line_content: str
    error: str

    def __str__(self) -> str:
        return f"Warning: Could not parse line {self.line_number}: {self.error} - {self.line_content}"


@dataclass
class ParseReport:
    entries_parsed: int = 0
    warnings: List[ParseWarning] = field(default_factory=list)

    @property
    def has_warnings(self) -> bool:
        return bool(self.warnings)

    @property
    def warning_count(self) -> int:
        return len(self.warnings)


# ---------------------------------------------------------------------------
# Filter argument helpers
# ---------------------------------------------------------------------------

def _parse_level(name: str) -> LogLevel:
    level = LogLevel.parse(name) if isinstance(name, str) else None
    if level is None:
        raise FilterError(f"Invalid log level: {name!r}")
    return level


def _parse_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as exc:
        raise FilterError(f"Invalid date format: {value!r}") from exc


def _compile_endpoint_pattern(pattern: str) -> re.Pattern:
    if not pattern:
        raise FilterError("Endpoint pattern must not be empty")
    try:
        return re.compile(r"(?<!\w)" + re.escape(pattern) + r"(?!\w)")
    except re.error as exc:
        raise FilterError(f"Invalid endpoint pattern: {pattern!r}") from exc


class _Filterable(ABC):
    """Filter operations shared by the collection and the views it hands out."""

    @abstractmethod
    def __iter__(self) -> Iterator[LogRecord]:
        ...

    @abstractmethod
    def _view(self, predicate: Callable[[LogRecord], bool]) -> "RecordView":
        ...

    def filter_by_level(self, level: str) -> "RecordView":
        wanted = _parse_level(level)
        return self._view(lambda record: record.level == wanted)

    def filter_by_date_range(self, start: DateLike, end: DateLike) -> "RecordView":
        start_date = _parse_date(start)
        end_date = _parse_date(end)

        def in_range(record: LogRecord) -> bool:
            day = record.calendar_date()
            return day is not None and start_date <= day <= end_date

        return self._view(in_range)

    def filter_by_endpoint(self, pattern: str) -> "RecordView":
        regex = _compile_endpoint_pattern(pattern)
        return self._view(lambda record: record.endpoint is not None and regex.search(record.endpoint) is not None)

    def to_list(self) -> List[LogRecord]:
        return list(self)


class RecordView(_Filterable):
    """
    Lazy, read-only window over a collection's records.

    The view holds a reference to the source list and the number of records it
    had at creation time; nothing is copied, and records appended afterwards
    are never visited.
    """

    def __init__(self, source: List[LogRecord], limit: int, predicates: Tuple[Callable[[LogRecord], bool], ...]):
        self._source = source
        self._limit = limit
        self._predicates = predicates

    def __iter__(self) -> Iterator[LogRecord]:
        for record in islice(self._source, self._limit):
            if all(predicate(record) for predicate in self._predicates):
                yield record

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def _view(self, predicate):
        return RecordView(self._source, self._limit, self._predicates + (predicate,))


class LogCollection(_Filterable):
    def __init__(self, records: Optional[Iterable[LogRecord]] = None):
        self._records: List[LogRecord] = list(records or [])

    def __iter__(self) -> Iterator[LogRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> LogRecord:
        return self._records[index]

    def append(self, record: LogRecord) -> None:
        self._records.append(record)

    def _view(self, predicate):
        return RecordView(self._records, len(self._records), (predicate,))

    def ingest_lines(self, lines: Iterable[str], extractor: Optional[FieldExtractor] = None) -> ParseReport:
        """
        Extract every non-blank line and append the results.

        Lines in which nothing is recognized become warnings; the scan always
        runs to the end. Raises EmptyLogError when no record was added.
        """
        extractor = extractor or FieldExtractor()
        report = ParseReport()
        initial_count = len(self._records)

        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                record = extractor.extract_strict(line)
            except ExtractionError as exc:
                warning = ParseWarning(line_number=line_number, line_content=exc.line, error=str(exc))
                logger.debug("%s", warning)
                report.warnings.append(warning)
                continue
            self._records.append(record)

        report.entries_parsed = len(self._records) - initial_count
        if report.entries_parsed == 0:
            raise EmptyLogError()

        logger.info(
            "Parsed %d entries (%d unparseable lines skipped)",
            report.entries_parsed,
            report.warning_count,
        )
        return report

    @classmethod
    def from_lines(cls, lines: Iterable[str], extractor: Optional[FieldExtractor] = None) -> Tuple["LogCollection", ParseReport]:
        collection = cls()
        report = collection.ingest_lines(lines, extractor)
        return collection, report

    @classmethod
    def from_file(cls, path: Union[str, Path], extractor: Optional[FieldExtractor] = None) -> Tuple["LogCollection", ParseReport]:
        path = Path(path)
        try:
            handle = open(path, "r", encoding="utf-8", errors="replace")
        except OSError as exc:
            raise LogFileError(path, exc.strerror or str(exc)) from exc

        logger.debug("Reading %s", path)
        with handle:
            try:
                return cls.from_lines(handle, extractor)
            except OSError as exc:
                raise LogFileError(path, str(exc)) from exc


def read_log_file(path: Union[str, Path]) -> Tuple[LogCollection, ParseReport]:
    return LogCollection.from_file(path)
