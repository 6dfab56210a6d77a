from fastapi.testclient import TestClient

from Background.task import app
from main import LOCATION_REQUIRED
from models.schema import PunchKind
from utils.helper import mock_time_entries

client = TestClient(app)
LOCATION = {"latitude": -23.55052, "longitude": -46.633308}


def setup_function():
    mock_time_entries.clear()


def post_punch(kind: str, timestamp: str, **extra):
    body = {"user_id": "u-1", "type": kind, "timestamp": timestamp, **LOCATION}
    body.update(extra)
    return client.post("/punch", json=body)


def test_punch_kinds():
    response = client.get("/punch-kinds")
    assert response.status_code == 200
    assert {"kind": "end-break", "label": "Retorno do intervalo"} in response.json()
    assert len(response.json()) == 4


def test_punch_is_recorded_in_background():
    response = post_punch("in", "2026-10-19T09:00:00-03:00")
    assert response.status_code == 202
    assert response.json()["type"] == "in"

    assert len(mock_time_entries) == 1
    assert mock_time_entries[0].kind == PunchKind.IN
    assert mock_time_entries[0].latitude == LOCATION["latitude"]


def test_invalid_sequence_is_rejected():
    post_punch("in", "2026-10-19T09:00:00-03:00")
    response = post_punch("end-break", "2026-10-19T10:00:00-03:00")
    assert response.status_code == 409
    assert response.json()["detail"] == "Após a entrada, registre intervalo ou saída."
    assert len(mock_time_entries) == 1


def test_punch_without_location_is_rejected():
    response = post_punch("in", "2026-10-19T09:00:00-03:00", latitude=None, longitude=None)
    assert response.status_code == 409
    assert response.json()["detail"] == LOCATION_REQUIRED
    assert mock_time_entries == []


def test_unknown_kind_is_unprocessable():
    response = post_punch("lunch", "2026-10-19T09:00:00-03:00")
    assert response.status_code == 422


def test_summary_and_history():
    post_punch("in", "2026-10-19T09:00:00-03:00")
    post_punch("start-break", "2026-10-19T12:00:00-03:00")
    post_punch("end-break", "2026-10-19T13:00:00-03:00")
    post_punch("out", "2026-10-19T17:00:00-03:00")

    params = {"reference": "2026-10-19T18:00:00-03:00"}
    summary = client.get("/employees/u-1/summary", params=params).json()
    assert summary["total_worked_ms"] == 7 * 60 * 60 * 1000
    assert summary["work_days"] == 1
    assert summary["total"] == "07:00:00"
    assert summary["expected"] == "08:00:00"
    assert summary["balance"] == "-01:00:00"

    history = client.get("/employees/u-1/history", params=params).json()
    assert history["name"] == "Ana Souza"
    assert [e["label"] for e in history["entries"]] == ["Saída", "Retorno do intervalo", "Intervalo", "Entrada"]
    assert history["summary"]["balance_ms"] == -60 * 60 * 1000


def test_summary_for_other_month_is_empty():
    post_punch("in", "2026-10-19T09:00:00-03:00")
    post_punch("out", "2026-10-19T17:00:00-03:00")

    summary = client.get("/employees/u-1/summary", params={"reference": "2026-11-02T12:00:00-03:00"}).json()
    assert summary["work_days"] == 0
    assert summary["balance"] == "00:00:00"


def test_today_entries():
    client.post("/punch", json={"user_id": "u-1", "type": "in", **LOCATION})

    response = client.get("/employees/u-1/entries/today")
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 1
    assert rows[0]["label"] == "Entrada"
    assert rows[0]["location"] == "-23.55052, -46.63331"
