from datetime import date

import pytest

from log_collection import LogCollection, ParseWarning, _Filterable, read_log_file
from log_records import (
    EmptyLogError,
    FilterError,
    LogFileError,
    LogLevel,
    LogRecord,
)


class TestIngestion:
    """Line-by-line ingestion with recoverable per-line warnings"""

    def test_counts_records_and_warnings(self, sample_lines):
        collection, report = LogCollection.from_lines(sample_lines)

        # 7 non-blank lines, one of which has no recognizable field
        assert len(collection) == 6
        assert report.entries_parsed == 6
        assert report.warning_count == 1
        assert report.has_warnings

        warning = report.warnings[0]
        assert warning.line_number == 4
        assert warning.line_content == "==== service restarted ===="
        assert "line 4" in str(warning)

    def test_warning_line_numbers_follow_file_positions(self):
        lines = ["garbage", "INFO ok", "", "more garbage", "ERROR failed", "~~~"]
        collection, report = LogCollection.from_lines(lines)

        assert len(collection) == 2
        assert [w.line_number for w in report.warnings] == [1, 4, 6]
        assert [w.line_content for w in report.warnings] == ["garbage", "more garbage", "~~~"]

    def test_debug_and_fatal_only_lines_are_records(self):
        lines = ["INFO 10.0.0.1 GET /a 200 10ms ok", "FATAL disk full", "DEBUG cache warmed"]
        collection, report = LogCollection.from_lines(lines)

        assert len(collection) == 3
        assert not report.has_warnings
        assert [r.level for r in collection] == [LogLevel.INFO, None, None]

    def test_record_order_matches_file_order(self, sample_lines):
        collection, _ = LogCollection.from_lines(sample_lines)
        assert [r.endpoint for r in collection][:3] == ["/api/users", "/api/orders", "/api/users"]

    @pytest.mark.parametrize(
        "lines",
        [
            [],
            ["", "   ", "\t"],
            ["==== banner ====", "---"],
        ],
    )
    def test_empty_log_condition(self, lines):
        with pytest.raises(EmptyLogError, match="No log entries found in file"):
            LogCollection.from_lines(lines)

    def test_from_file(self, sample_log_file):
        collection, report = read_log_file(sample_log_file)
        assert len(collection) == 6
        assert report.warnings == [
            ParseWarning(line_number=4, line_content="==== service restarted ====", error="no recognizable fields")
        ]

    def test_missing_file_is_distinct_from_empty_log(self, tmp_path):
        with pytest.raises(LogFileError):
            LogCollection.from_file(tmp_path / "missing.log")

        empty = tmp_path / "empty.log"
        empty.write_text("", encoding="utf-8")
        with pytest.raises(EmptyLogError):
            LogCollection.from_file(empty)


class TestFilters:
    """Lazy filtered views over a collection"""

    @pytest.fixture(autouse=True)
    def _collection(self, sample_lines):
        self.collection, _ = LogCollection.from_lines(sample_lines)

    def test_filter_by_level(self):
        errors = self.collection.filter_by_level("ERROR").to_list()
        assert [r.endpoint for r in errors] == ["/api/orders", "/api/orders/7"]
        assert all(r.level is LogLevel.ERROR for r in errors)

        assert len(self.collection.filter_by_level("warning")) == 1

    def test_filter_by_level_keeps_relative_position(self):
        info = LogRecord(level=LogLevel.INFO, endpoint="/a")
        error = LogRecord(level=LogLevel.ERROR, endpoint="/b")
        collection = LogCollection([info, error])

        assert collection.filter_by_level("ERROR").to_list() == [error]

    @pytest.mark.parametrize("level", ["FATAL", "DEBUG", "bogus", ""])
    def test_filter_by_unknown_level(self, level):
        with pytest.raises(FilterError):
            self.collection.filter_by_level(level)

    def test_filter_by_date_range_handles_both_timestamp_formats(self):
        day_one = self.collection.filter_by_date_range("2024-01-15", "2024-01-15")
        assert [r.endpoint for r in day_one] == ["/api/users", "/api/orders"]

        day_two = self.collection.filter_by_date_range(date(2024, 1, 16), date(2024, 1, 16))
        assert [r.endpoint for r in day_two] == ["/api/users", "/api/search"]

        assert len(self.collection.filter_by_date_range("2024-01-01", "2024-12-31")) == 6
        assert len(self.collection.filter_by_date_range("2024-01-18", "2024-01-01")) == 0

    @pytest.mark.parametrize("bad", ["2024-13-01", "15-01-2024", "yesterday"])
    def test_filter_by_invalid_date(self, bad):
        with pytest.raises(FilterError):
            self.collection.filter_by_date_range(bad, "2024-01-31")

    def test_filter_by_endpoint_matches_whole_words(self):
        collection = LogCollection(
            LogRecord(endpoint=endpoint)
            for endpoint in ["/api/users", "/api/users/42", "/api/users_admin", "/api/usersettings", None]
        )
        matched = [r.endpoint for r in collection.filter_by_endpoint("/api/users")]
        assert matched == ["/api/users", "/api/users/42"]

    def test_filter_by_endpoint_escapes_special_characters(self):
        collection = LogCollection([LogRecord(endpoint="/search?q=1"), LogRecord(endpoint="/searchXq=1")])
        assert [r.endpoint for r in collection.filter_by_endpoint("/search?q=1")] == ["/search?q=1"]

    def test_filter_by_empty_endpoint(self):
        with pytest.raises(FilterError):
            self.collection.filter_by_endpoint("")

    def test_filters_chain(self):
        view = self.collection.filter_by_level("ERROR").filter_by_endpoint("/api/orders/7")
        assert [r.status_code for r in view] == [503]

    def test_view_ignores_later_appends(self):
        view = self.collection.filter_by_level("ERROR")
        self.collection.append(LogRecord(level=LogLevel.ERROR, endpoint="/late"))

        assert len(view) == 2
        assert len(self.collection.filter_by_level("ERROR")) == 3

    def test_filter_error_leaves_collection_untouched(self):
        with pytest.raises(FilterError):
            self.collection.filter_by_date_range("nope", "2024-01-01")
        assert len(self.collection) == 6
        assert len(self.collection.filter_by_level("INFO")) == 1

    def test_filter_base_cannot_be_instantiated(self):
        with pytest.raises(TypeError):
            _Filterable()
