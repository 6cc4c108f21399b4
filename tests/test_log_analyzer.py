import json

import pytest

from log_analyzer import analyze_file, main


class TestCommandLine:
    def test_missing_file_is_fatal(self, tmp_path):
        with pytest.raises(SystemExit) as excinfo:
            main(["-i", str(tmp_path / "nope.log")])
        assert "Log file not found" in str(excinfo.value.code)

    def test_empty_log_is_fatal(self, tmp_path):
        path = tmp_path / "blank.log"
        path.write_text("\n\n   \n", encoding="utf-8")
        with pytest.raises(SystemExit) as excinfo:
            main(["--input-file", str(path)])
        assert excinfo.value.code == "No log entries found in file"

    def test_report_and_json_export(self, sample_log_file, tmp_path, capsys):
        output = tmp_path / "reports" / "summary.json"
        main(["-i", str(sample_log_file), "--output", str(output), "--no-color"])

        out = capsys.readouterr().out
        assert "LOG ANALYSIS REPORT" in out
        assert "High error rate detected" in out
        assert "\033[" not in out

        summary = json.loads(output.read_text(encoding="utf-8"))
        assert summary["total_requests"] == 6
        assert summary["endpoint_frequency"]["/api/users"] == 2

    def test_show_warnings(self, sample_log_file, capsys):
        main(["-i", str(sample_log_file), "--show-warnings"])
        err = capsys.readouterr().err
        assert "Could not parse line 4" in err

    def test_filters_narrow_the_analysis(self, sample_log_file):
        stats, report = analyze_file(sample_log_file, level="ERROR")
        assert stats.total_requests == 2
        assert report.entries_parsed == 6

        stats, _ = analyze_file(sample_log_file, start="2024-01-16", end="2024-01-17")
        assert stats.total_requests == 4

        stats, _ = analyze_file(sample_log_file, endpoint="/api/orders")
        assert stats.endpoint_frequency == {"/api/orders": 1, "/api/orders/7": 1}

    def test_bad_filter_argument_is_fatal(self, sample_log_file):
        with pytest.raises(SystemExit) as excinfo:
            main(["-i", str(sample_log_file), "--level", "FATAL"])
        assert "Invalid log level" in str(excinfo.value.code)

        with pytest.raises(SystemExit):
            main(["-i", str(sample_log_file), "--start", "2024-01-16"])

    def test_plot(self, sample_log_file, tmp_path):
        pytest.importorskip("matplotlib")
        plot = tmp_path / "plots" / "summary.png"
        main(["-i", str(sample_log_file), "--plot", str(plot)])
        assert plot.exists()
        assert plot.stat().st_size > 0
