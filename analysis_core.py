import json
import math
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from log_records import LogLevel, LogRecord

PERCENTILES = (0.50, 0.95, 0.99)


def percentile(samples: Iterable[float], p: float) -> Optional[float]:
    """Value at rank floor(n * p) of the ascending sample, clamped to the last rank."""
    ordered = sorted(samples)
    if not ordered:
        return None
    index = min(int(math.floor(len(ordered) * p)), len(ordered) - 1)
    return ordered[max(index, 0)]


def _slowest_first_key(record: LogRecord) -> float:
    return record.response_time if record.response_time is not None else -math.inf


@dataclass(frozen=True)
class LogStats:
    """
    Summary of a parsed log, computed once and read-only afterwards.

    `avg_response_time` divides by `total_requests`, not by the number of
    records that carried a latency, so lines without one pull the average
    towards zero. Existing reports depend on that figure.
    """
    total_requests: int = 0
    error_count: int = 0
    warning_count: int = 0
    info_count: int = 0
    avg_response_time: float = 0.0
    endpoint_frequency: Mapping[str, int] = field(default_factory=dict)
    errors_by_endpoint: Mapping[str, int] = field(default_factory=dict)
    slowest_requests: Tuple[LogRecord, ...] = ()

    def __post_init__(self):
        # frozen does not cover the contents of the tables
        object.__setattr__(self, "endpoint_frequency", MappingProxyType(dict(self.endpoint_frequency)))
        object.__setattr__(self, "errors_by_endpoint", MappingProxyType(dict(self.errors_by_endpoint)))
        object.__setattr__(self, "slowest_requests", tuple(self.slowest_requests))

    @classmethod
    def from_records(cls, records: Iterable[LogRecord]) -> "LogStats":
        return StatsAggregator(records).aggregate()

    # ---------- Derived figures ----------

    @property
    def unclassified_count(self) -> int:
        return self.total_requests - self.info_count - self.warning_count - self.error_count

    @property
    def error_rate(self) -> float:
        return self.error_count / self.total_requests if self.total_requests else 0.0

    def level_percentages(self) -> Dict[str, float]:
        total = self.total_requests
        counts = {
            LogLevel.INFO.value: self.info_count,
            LogLevel.WARNING.value: self.warning_count,
            LogLevel.ERROR.value: self.error_count,
        }
        return {name: (count / total * 100.0 if total else 0.0) for name, count in counts.items()}

    def response_times(self) -> List[float]:
        return [r.response_time for r in self.slowest_requests if r.response_time is not None]

    def percentile(self, p: float) -> Optional[float]:
        return percentile(self.response_times(), p)

    def percentiles(self) -> Dict[str, Optional[float]]:
        samples = sorted(self.response_times())
        return {f"p{int(round(p * 100))}": percentile(samples, p) for p in PERCENTILES}

    def top_endpoints(self, k: int = 10) -> List[Tuple[str, int]]:
        return Counter(self.endpoint_frequency).most_common(k)

    def top_error_endpoints(self, k: int = 10) -> List[Tuple[str, int]]:
        return Counter(self.errors_by_endpoint).most_common(k)

    def slowest(self, k: int = 10) -> List[LogRecord]:
        return list(self.slowest_requests[:k])

    # ---------- Export ----------

    def to_dict(self, top_k: int = 10) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "info_count": self.info_count,
            "unclassified_count": self.unclassified_count,
            "error_rate": self.error_rate,
            "avg_response_time": self.avg_response_time,
            "percentiles": self.percentiles(),
            "endpoint_frequency": dict(self.endpoint_frequency),
            "errors_by_endpoint": dict(self.errors_by_endpoint),
            "top_endpoints": [
                {"endpoint": endpoint, "count": count}
                for endpoint, count in self.top_endpoints(top_k)
            ],
            "slowest_requests": [record.to_dict() for record in self.slowest_requests],
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogStats":
        return cls(
            total_requests=int(data.get("total_requests", 0)),
            error_count=int(data.get("error_count", 0)),
            warning_count=int(data.get("warning_count", 0)),
            info_count=int(data.get("info_count", 0)),
            avg_response_time=float(data.get("avg_response_time", 0.0)),
            endpoint_frequency=dict(data.get("endpoint_frequency") or {}),
            errors_by_endpoint=dict(data.get("errors_by_endpoint") or {}),
            slowest_requests=tuple(
                LogRecord.from_dict(item) for item in data.get("slowest_requests") or []
            ),
        )


class StatsAggregator:
    """
    Folds records into LogStats.

    One linear pass accumulates level counts, the latency sum and the endpoint
    counters; one sort over a copy of the records orders them slowest first,
    with records lacking a latency at the end.
    """

    def __init__(self, records: Iterable[LogRecord]):
        self.records: List[LogRecord] = list(records)

    def aggregate(self) -> LogStats:
        levels: Counter = Counter()
        endpoints: Counter = Counter()
        errors: Counter = Counter()
        response_sum = 0.0

        for record in self.records:
            if record.level is not None:
                levels[record.level] += 1
            if record.endpoint is not None:
                endpoints[record.endpoint] += 1
                if record.level == LogLevel.ERROR:
                    errors[record.endpoint] += 1
            if record.response_time is not None:
                response_sum += record.response_time

        total = len(self.records)
        # sorted() is stable, so equal latencies keep file order
        slowest = sorted(self.records, key=_slowest_first_key, reverse=True)

        return LogStats(
            total_requests=total,
            error_count=levels[LogLevel.ERROR],
            warning_count=levels[LogLevel.WARNING],
            info_count=levels[LogLevel.INFO],
            avg_response_time=response_sum / total if total else 0.0,
            endpoint_frequency=dict(endpoints),
            errors_by_endpoint=dict(errors),
            slowest_requests=tuple(slowest),
        )


def summarize_stats(stats: LogStats, top_k: int = 10) -> Dict[str, Any]:
    """JSON-ready export of the stats, with the top endpoints precomputed."""
    return stats.to_dict(top_k=top_k)
