import argparse
import os
import random
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Mixed-format server logs:
# - application lines: ISO timestamp, level, client IP, request, status, latency, message
# - access lines: Apache combined-ish with a trailing latency, no level
# - noise: DEBUG chatter, blank lines, banner lines with no recognizable field

ENDPOINTS = [
    ("/api/v1/users", 0.18),
    ("/api/v1/orders", 0.15),
    ("/api/v1/products", 0.12),
    ("/api/v1/search", 0.10),
    ("/api/v1/auth/login", 0.08),
    ("/api/v1/auth/logout", 0.04),
    ("/api/v2/users", 0.08),
    ("/api/v2/orders", 0.07),
    ("/health", 0.08),
    ("/metrics", 0.05),
    ("/static/app.js", 0.03),
    ("/static/style.css", 0.02),
]

METHODS = [("GET", 0.65), ("POST", 0.22), ("PUT", 0.06), ("PATCH", 0.03), ("DELETE", 0.04)]
LEVELS = [("INFO", 0.86), ("WARNING", 0.09), ("ERROR", 0.05)]
STATUSES_BY_LEVEL = {
    "INFO": [(200, 0.88), (201, 0.08), (304, 0.04)],
    "WARNING": [(400, 0.45), (401, 0.25), (404, 0.30)],
    "ERROR": [(500, 0.70), (502, 0.15), (503, 0.15)],
}
MESSAGES = {
    "INFO": ["Request completed", "Cache hit", "User session refreshed"],
    "WARNING": ["Slow downstream response", "Invalid token supplied", "Resource not found"],
    "ERROR": ["Database timeout", "Upstream connection reset", "Unhandled exception in handler"],
}
NOISE_LINES = [
    "==== service restarted ====",
    "---",
    "Loading configuration",
]


def weighted_choice(options):
    r = random.random()
    cumulative = 0.0
    for value, weight in options:
        cumulative += weight
        if r <= cumulative:
            return value
    return options[-1][0]


def random_ip():
    return ".".join(str(random.randint(1, 254)) for _ in range(4))


def random_latency(level):
    """Milliseconds; errors skew slow."""
    base = random.lognormvariate(4.3, 0.6)
    if level == "ERROR":
        base *= random.uniform(3.0, 12.0)
    elif level == "WARNING":
        base *= random.uniform(1.5, 4.0)
    return round(base, 2)


def application_line(dt, level):
    method = weighted_choice(METHODS)
    endpoint = weighted_choice(ENDPOINTS)
    status = weighted_choice(STATUSES_BY_LEVEL[level])
    latency = random_latency(level)
    message = random.choice(MESSAGES[level])
    timestamp = dt.strftime("%Y-%m-%d %H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"
    return f"{timestamp} {level} {random_ip()} {method} {endpoint} {status} {latency}ms {message}"


def access_line(dt):
    method = weighted_choice(METHODS)
    endpoint = weighted_choice(ENDPOINTS)
    status = weighted_choice(STATUSES_BY_LEVEL["INFO"])
    size = random.randint(200, 8000)
    latency = random_latency("INFO")
    timestamp = dt.strftime("%d/%b/%Y:%H:%M:%S %z")
    return f"{random_ip()} - - [{timestamp}] \"{method} {endpoint} HTTP/1.1\" {status} {size} {latency}ms"


def debug_line(dt):
    timestamp = dt.strftime("%Y-%m-%d %H:%M:%S")
    return f"{timestamp} DEBUG worker-{random.randint(1, 8)} heartbeat"


def generate_line(dt, access_ratio=0.3, noise_ratio=0.02):
    r = random.random()
    if r < noise_ratio:
        return random.choice(NOISE_LINES + [""])
    if r < noise_ratio * 2:
        return debug_line(dt)
    if r < noise_ratio * 2 + access_ratio:
        return access_line(dt)
    return application_line(dt, weighted_choice(LEVELS))


def write_log(path, rows, span_hours, access_ratio=0.3, noise_ratio=0.02):
    start = datetime.now(timezone.utc).replace(microsecond=0) - timedelta(hours=span_hours)
    step = timedelta(hours=span_hours) / max(rows, 1)
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        dt = start
        for _ in range(rows):
            dt += step * random.uniform(0.5, 1.5)
            handle.write(generate_line(dt, access_ratio, noise_ratio) + "\n")
    return path


def parse_args():
    parser = argparse.ArgumentParser(description="Generate mixed-format server logs for the analyzer.")
    parser.add_argument("--rows", type=int, default=5000, help="Number of lines to write.")
    parser.add_argument("--output", default=os.path.join("logs", "server.log"), help="Log file to write.")
    parser.add_argument("--span-hours", type=int, default=24, help="Time window for timestamps.")
    parser.add_argument("--access-ratio", type=float, default=0.3, help="Share of Apache-style access lines.")
    parser.add_argument("--noise-ratio", type=float, default=0.02, help="Share of blank/banner lines (and as many DEBUG lines).")
    parser.add_argument("--seed", type=int, help="RNG seed for reproducibility.")
    return parser.parse_args()


def main():
    args = parse_args()
    if args.seed is not None:
        random.seed(args.seed)

    path = write_log(args.output, args.rows, args.span_hours, args.access_ratio, args.noise_ratio)
    print(f"Generated {args.rows} lines in {path.resolve()}")


if __name__ == "__main__":
    main()
