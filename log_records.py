import re
from dataclasses import asdict, dataclass
from datetime import date, datetime
from enum import Enum
from ipaddress import IPv4Address, ip_address
from typing import Any, Dict, Optional


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

class AnalyzerError(Exception):
    """Base class for every failure the analyzer reports."""


class LogFileError(AnalyzerError):
    def __init__(self, path, reason: str):
        super().__init__(f"Failed to read file {path}: {reason}")
        self.path = path
        self.reason = reason


class ExtractionError(AnalyzerError):
    def __init__(self, line: str, reason: str = "no recognizable fields"):
        super().__init__(reason)
        self.line = line
        self.reason = reason


class EmptyLogError(AnalyzerError):
    def __init__(self):
        super().__init__("No log entries found in file")


class FilterError(AnalyzerError):
    pass


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class LogLevel(str, Enum):
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"

    @classmethod
    def parse(cls, token: str) -> Optional["LogLevel"]:
        try:
            return cls(token.strip("[]").upper())
        except ValueError:
            return None


class HttpMethod(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @classmethod
    def parse(cls, token: str) -> Optional["HttpMethod"]:
        try:
            return cls(token.upper())
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Record
# ---------------------------------------------------------------------------

ISO_DATE = re.compile(r"(\d{4}-\d{2}-\d{2})")
APACHE_DATE = re.compile(r"(\d{2}/[A-Za-z]{3}/\d{4})")


@dataclass(frozen=True)
class LogRecord:
    """
    Structured view of one log line.

    Every field is optional: formats vary and each field is matched on its own,
    so a missing endpoint says nothing about the level or the latency.
    """
    timestamp: Optional[str] = None
    level: Optional[LogLevel] = None
    ip_address: Optional[IPv4Address] = None
    method: Optional[HttpMethod] = None
    endpoint: Optional[str] = None
    status_code: Optional[int] = None
    response_time: Optional[float] = None
    message: Optional[str] = None

    def is_empty(self) -> bool:
        return all(value is None for value in asdict(self).values())

    def calendar_date(self) -> Optional[date]:
        """Calendar date of the timestamp, whichever of the two formats it uses."""
        if not self.timestamp:
            return None

        match = ISO_DATE.search(self.timestamp)
        if match:
            try:
                return datetime.strptime(match.group(1), "%Y-%m-%d").date()
            except ValueError:
                return None

        match = APACHE_DATE.search(self.timestamp)
        if match:
            try:
                return datetime.strptime(match.group(1), "%d/%b/%Y").date()
            except ValueError:
                return None

        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "level": self.level.value if self.level else None,
            "ip_address": str(self.ip_address) if self.ip_address else None,
            "method": self.method.value if self.method else None,
            "endpoint": self.endpoint,
            "status_code": self.status_code,
            "response_time": self.response_time,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LogRecord":
        ip = data.get("ip_address")
        level = data.get("level")
        method = data.get("method")
        response_time = data.get("response_time")
        return cls(
            timestamp=data.get("timestamp"),
            level=LogLevel.parse(level) if level else None,
            ip_address=ip_address(ip) if ip else None,
            method=HttpMethod.parse(method) if method else None,
            endpoint=data.get("endpoint"),
            status_code=data.get("status_code"),
            response_time=float(response_time) if response_time is not None else None,
            message=data.get("message"),
        )
