import pytest

# Test data
SAMPLE_LOGS = [
    "2024-01-15 10:30:45.123Z INFO 192.168.1.10 GET /api/users 200 45ms User list served",
    "2024-01-15 10:31:02.004Z ERROR 192.168.1.11 POST /api/orders 500 1250.5ms Database timeout",
    "",
    "==== service restarted ====",
    '10.0.0.5 - - [16/Jan/2024:09:00:00 +0000] "GET /api/users HTTP/1.1" 200 532 80ms',
    "2024-01-16 11:00:00 WARNING 10.0.0.7 GET /api/search 404 620ms Resource not found",
    "   ",
    "2024-01-17 08:15:00 DEBUG worker-3 heartbeat",
    "2024-01-17 08:16:00 ERROR 10.0.0.9 DELETE /api/orders/7 503 3.2s Upstream connection reset",
]


@pytest.fixture
def sample_lines():
    return list(SAMPLE_LOGS)


@pytest.fixture
def sample_log_file(tmp_path):
    path = tmp_path / "server.log"
    path.write_text("\n".join(SAMPLE_LOGS) + "\n", encoding="utf-8")
    return path
