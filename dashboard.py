import argparse
import json
from pathlib import Path
from typing import Optional

from flask import Flask, abort, jsonify, render_template_string, request, send_file

from analysis_core import LogStats
from log_collection import LogCollection
from log_records import AnalyzerError, FilterError


# ---------------------------------------------------------------------------
# HTML Template - summary cards, endpoint chart, slowest table
# ---------------------------------------------------------------------------

HTML_TEMPLATE = """
<!doctype html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <title>Log Analysis Report</title>
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <script src="https://cdn.jsdelivr.net/npm/chart.js@4.4.4/dist/chart.umd.min.js"></script>
  <style>
    :root { --bg: #f8fafc; --bg2: #ffffff; --text: #1e293b; --muted: #64748b; --border: #e2e8f0; --accent: #3b82f6; --accent2: #ef4444; }
    * { box-sizing: border-box; margin: 0; padding: 0; }
    body { font-family: 'Inter', 'Segoe UI', sans-serif; background: var(--bg); color: var(--text); padding: 24px 32px; }
    h1 { font-size: 22px; margin-bottom: 4px; }
    .muted { color: var(--muted); font-size: 13px; }
    .cards { display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr)); gap: 16px; margin: 20px 0; }
    .card { background: var(--bg2); border: 1px solid var(--border); border-radius: 12px; padding: 16px; }
    .card .label { color: var(--muted); font-size: 12px; text-transform: uppercase; }
    .card .value { font-size: 24px; font-weight: 700; margin-top: 6px; }
    .panel { background: var(--bg2); border: 1px solid var(--border); border-radius: 12px; padding: 16px; margin-bottom: 20px; }
    table { width: 100%; border-collapse: collapse; font-size: 13px; }
    th, td { text-align: left; padding: 6px 8px; border-bottom: 1px solid var(--border); }
    .slow { color: var(--accent2); font-weight: 600; }
  </style>
</head>
<body>
  <h1>Log Analysis Report</h1>
  <div class="muted">Summary: {{ summary_path }}</div>
  <div class="cards" id="cards"></div>
  <div class="panel"><canvas id="endpoints" height="110"></canvas></div>
  <div class="panel">
    <h3>Slowest requests</h3>
    <table id="slowest"><thead><tr><th>#</th><th>Endpoint</th><th>Method</th><th>Time</th></tr></thead><tbody></tbody></table>
  </div>
<script>
async function fetchJSON(url) {
  const res = await fetch(url);
  if (!res.ok) throw new Error(`${url}: ${res.status}`);
  return res.json();
}

function card(label, value) {
  return `<div class="card"><div class="label">${label}</div><div class="value">${value}</div></div>`;
}

async function init() {
  const summary = await fetchJSON('/api/summary');
  const perf = await fetchJSON('/api/performance');
  const fmt = (v) => v === null ? 'n/a' : `${v.toFixed(2)}ms`;
  document.getElementById('cards').innerHTML = [
    card('Requests', summary.total_requests),
    card('Errors', summary.error_count),
    card('Warnings', summary.warning_count),
    card('Error rate', `${(summary.error_rate * 100).toFixed(1)}%`),
    card('Avg', fmt(perf.avg_response_time)),
    card('P95', fmt(perf.percentiles.p95)),
  ].join('');

  const top = await fetchJSON('/api/top-endpoints?k=10');
  new Chart(document.getElementById('endpoints'), {
    type: 'bar',
    data: { labels: top.map(e => e.endpoint), datasets: [{ label: 'Requests', data: top.map(e => e.count), backgroundColor: '#3b82f6' }] },
    options: { indexAxis: 'y', plugins: { legend: { display: false } } },
  });

  const slowest = await fetchJSON('/api/slowest?k=10');
  // endpoints come straight from log text, so cells are filled with textContent only
  const tbody = document.querySelector('#slowest tbody');
  tbody.replaceChildren();
  slowest.forEach((r, i) => {
    const row = tbody.insertRow();
    [String(i + 1), r.endpoint ?? 'N/A', r.method ?? 'N/A', fmt(r.response_time)].forEach(text => {
      row.insertCell().textContent = text;
    });
    if (r.response_time > 1000) row.lastChild.className = 'slow';
  });
}

init().catch(err => console.error(err));
</script>
</body>
</html>
"""


# ---------------------------------------------------------------------------
# Flask Application
# ---------------------------------------------------------------------------

def load_summary(summary_path: Path):
    if not summary_path.exists():
        abort(404, "Summary JSON not found; run log_analyzer with --output first")
    with open(summary_path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def create_app(summary_path: Path, plot_path: Optional[Path] = None, log_path: Optional[Path] = None):
    app = Flask(__name__)

    summary_cache = {"data": None, "stats": None, "mtime": 0}

    def get_summary():
        """Load summary with caching based on mtime."""
        if not summary_path.exists():
            abort(404, "Summary JSON not found; run log_analyzer with --output first")
        mtime = summary_path.stat().st_mtime
        if summary_cache["data"] is None or mtime > summary_cache["mtime"]:
            summary_cache["data"] = load_summary(summary_path)
            summary_cache["stats"] = LogStats.from_dict(summary_cache["data"])
            summary_cache["mtime"] = mtime
        return summary_cache["data"]

    def get_stats() -> LogStats:
        get_summary()
        return summary_cache["stats"]

    def top_k(default: int = 10) -> int:
        try:
            return max(int(request.args.get("k", default)), 0)
        except ValueError:
            abort(400, "k must be an integer")

    @app.get("/")
    def index():
        return render_template_string(HTML_TEMPLATE, summary_path=summary_path)

    @app.get("/api/summary")
    def summary():
        return jsonify(get_summary())

    @app.get("/api/top-endpoints")
    def top_endpoints():
        stats = get_stats()
        return jsonify([
            {"endpoint": endpoint, "count": count}
            for endpoint, count in stats.top_endpoints(top_k())
        ])

    @app.get("/api/errors")
    def errors():
        stats = get_stats()
        return jsonify([
            {"endpoint": endpoint, "count": count}
            for endpoint, count in stats.top_error_endpoints(top_k())
        ])

    @app.get("/api/slowest")
    def slowest():
        stats = get_stats()
        return jsonify([
            record.to_dict()
            for record in stats.slowest(top_k())
            if record.response_time is not None
        ])

    @app.get("/api/performance")
    def performance():
        stats = get_stats()
        return jsonify({
            "avg_response_time": stats.avg_response_time,
            "percentiles": stats.percentiles(),
        })

    @app.get("/api/records")
    def records():
        if log_path is None:
            abort(400, "Raw log browsing disabled; provide --log-file")
        try:
            offset = int(request.args.get("offset", 0))
            limit = min(int(request.args.get("limit", 200)), 2000)
        except ValueError:
            abort(400, "offset and limit must be integers")

        try:
            collection, _ = LogCollection.from_file(log_path)
            view = collection
            if request.args.get("level"):
                view = view.filter_by_level(request.args["level"])
            start, end = request.args.get("start"), request.args.get("end")
            if start or end:
                if not (start and end):
                    abort(400, "start and end must be given together")
                view = view.filter_by_date_range(start, end)
            if request.args.get("endpoint"):
                view = view.filter_by_endpoint(request.args["endpoint"])
        except FilterError as exc:
            abort(400, str(exc))
        except AnalyzerError as exc:
            abort(404, str(exc))

        results = []
        skipped = 0
        for record in view:
            if skipped < offset:
                skipped += 1
                continue
            results.append(record.to_dict())
            if len(results) >= limit:
                break
        return jsonify({"items": results, "count": len(results), "offset": offset, "limit": limit})

    if plot_path:
        @app.get("/plot")
        def plot():
            if not plot_path.exists():
                abort(404, "Plot not found")
            return send_file(plot_path.resolve())

    return app


def parse_args():
    parser = argparse.ArgumentParser(description="Log analysis dashboard")
    parser.add_argument("--summary", default="reports/summary.json", help="Path to summary JSON")
    parser.add_argument("--plot", default=None, help="Optional path to plot image")
    parser.add_argument("--log-file", default=None, help="Raw log file for record browsing")
    parser.add_argument("--host", default="127.0.0.1", help="Host to bind")
    parser.add_argument("--port", type=int, default=8000, help="Port to bind")
    return parser.parse_args()


def main():
    args = parse_args()
    summary_path = Path(args.summary)
    plot_path = Path(args.plot) if args.plot else None
    log_path = Path(args.log_file) if args.log_file else None
    app = create_app(summary_path, plot_path, log_path)
    app.run(host=args.host, port=args.port, debug=False)


if __name__ == "__main__":
    main()
