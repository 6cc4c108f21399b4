import random
from datetime import datetime, timezone

from analysis_core import LogStats
from extraction import FieldExtractor
from generate_logs import access_line, application_line, write_log
from log_collection import LogCollection
from log_records import LogLevel


class TestGeneratedLogs:
    def test_application_line_is_fully_extractable(self):
        random.seed(7)
        dt = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        record = FieldExtractor().extract(application_line(dt, "ERROR"))

        assert record.level is LogLevel.ERROR
        assert record.timestamp.startswith("2024-03-01 12:00:00")
        assert record.method is not None
        assert record.endpoint.startswith("/")
        assert record.status_code in (500, 502, 503)
        assert record.response_time > 0
        assert record.message

    def test_access_line_has_no_level(self):
        random.seed(7)
        dt = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)
        record = FieldExtractor().extract(access_line(dt))

        assert record.level is None
        assert record.timestamp == "01/Mar/2024:12:00:00 +0000"
        assert record.calendar_date() == dt.date()
        assert record.response_time is not None

    def test_generated_file_analyzes(self, tmp_path):
        random.seed(42)
        path = write_log(tmp_path / "logs" / "server.log", rows=500, span_hours=6)

        collection, report = LogCollection.from_file(path)
        stats = LogStats.from_records(collection)

        assert len(collection) + report.warning_count <= 500
        assert len(collection) > 400
        assert stats.info_count > stats.error_count
        assert stats.unclassified_count > 0
        assert all(w.line_content in {"==== service restarted ====", "---", "Loading configuration"} for w in report.warnings)
