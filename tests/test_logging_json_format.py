import io
import json
from contextlib import redirect_stderr, redirect_stdout

from fastapi.testclient import TestClient


def _json_lines(buffer_text: str) -> list[dict]:
    """Parse every JSON log line, skipping anything else on the stream."""

    records = []
    for line in buffer_text.splitlines():
        line = line.strip()
        if not line.startswith("{"):
            continue
        records.append(json.loads(line))
    return records


def test_structlog_outputs_pure_json_without_stdlib_prefix():
    buf_out = io.StringIO()
    buf_err = io.StringIO()

    with redirect_stdout(buf_out), redirect_stderr(buf_err):
        from chess_review.logging import configure_logging, logger

        configure_logging()
        logger.info("review_due_selected", mistake_id=3, today="2024-01-01")

    raw = buf_err.getvalue().strip() or buf_out.getvalue().strip()
    lines = [ln for ln in raw.splitlines() if ln.strip()]
    message_text = lines[-1] if lines else ""

    assert message_text, "no log output captured"
    assert not message_text.startswith("INFO:"), message_text

    data = json.loads(message_text)
    assert data.get("event") == "review_due_selected"
    assert data.get("level") == "info"
    assert data.get("mistake_id") == 3
    assert "timestamp" in data


def test_request_logs_carry_request_id(scheduler, mistake_factory):
    buf_out = io.StringIO()
    buf_err = io.StringIO()
    mistake_id = scheduler.record_mistake(mistake_factory())

    with redirect_stdout(buf_out), redirect_stderr(buf_err):
        from chess_review.main import create_app

        with TestClient(create_app(scheduler)) as client:
            response = client.post(
                f"/api/review-result/{mistake_id}", json={}, headers={"X-Request-ID": "req-42"}
            )

    assert response.status_code == 200
    records = _json_lines(buf_err.getvalue() + "\n" + buf_out.getvalue())

    completes = [r for r in records if r.get("event") == "request_complete"]
    assert completes, "request_complete log line not found"
    assert completes[-1]["request_id"] == "req-42"
    assert completes[-1]["status_code"] == 200

    enrolled = [r for r in records if r.get("event") == "review_enrolled"]
    assert enrolled and enrolled[-1]["mistake_id"] == mistake_id
    assert enrolled[-1].get("request_id") == "req-42"
