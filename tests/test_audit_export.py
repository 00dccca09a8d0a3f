from __future__ import annotations

import importlib
import json
import os
import sys

from fastapi.testclient import TestClient

from training_core.audit_export import to_csv, to_json


_DEF_MODULES = [
    "training_core.config",
    "api.storage",
    "api.app",
]

_REQUIRED = {"t", "event", "scenario_id", "item_id", "kind", "value", "is_correct", "points_earned", "time_remaining"}


def _reload_app(tmp_path) -> tuple[object, object]:
    os.environ["DATA_DIR"] = str(tmp_path)
    for name in _DEF_MODULES:
        if name in sys.modules:
            importlib.reload(sys.modules[name])
        else:
            __import__(name)
    storage = sys.modules["api.storage"]
    app_module = sys.modules["api.app"]
    return storage, app_module


def test_normalizes_collections_and_missing_fields():
    payload = to_json([{"event": "answer", "value": ["b", "a"], "is_correct": True, "points_earned": "15"}, {}])
    first, second = payload["events"]
    assert first["value"] == "a|b"
    assert first["points_earned"] == 15
    assert second["is_correct"] == ""
    assert second["time_remaining"] == 0
    assert _REQUIRED == set(first)


def test_audit_exports_available(tmp_path, monkeypatch):
    monkeypatch.setenv("TIMER_ENABLED", "0")
    _storage, app_module = _reload_app(tmp_path / "enabled")
    client = TestClient(app_module.app)

    sid = client.post("/session/start", json={"module_id": "password-security"}).json()["session_id"]
    client.post(f"/session/{sid}/begin")
    body = None
    for v in ["weak", "medium", "medium", "strong", "weak"]:
        body = client.post(f"/session/{sid}/answer", json={"value": v}).json()
    rid = body["result_id"]

    json_resp = client.get(f"/results/{rid}/audit.json")
    assert json_resp.status_code == 200
    events = json_resp.json()["events"]
    assert [e["event"] for e in events] == ["start"] + ["answer"] * 5 + ["complete"]
    assert _REQUIRED.issubset(events[1].keys())
    assert events[1]["item_id"] == "pw-1"
    assert events[5]["is_correct"] is False

    csv_resp = client.get(f"/results/{rid}/audit.csv")
    assert csv_resp.status_code == 200
    csv_lines = [line for line in csv_resp.text.strip().splitlines() if line]
    assert len(csv_lines) == len(events) + 1
    header = csv_lines[0].split(",")
    assert header[0] == "t"
    assert header[-1] == "time_remaining"


def test_audit_exports_disabled(tmp_path, monkeypatch):
    monkeypatch.setenv("AUDIT_EXPORT_ENABLED", "0")
    storage, app_module = _reload_app(tmp_path / "disabled")

    result_id = "audit-disabled"
    path = storage.RESULTS_DIR / f"{result_id}.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"audit_events": [{"event": "start"}]}), encoding="utf-8")

    client = TestClient(app_module.app)
    assert client.get(f"/results/{result_id}").status_code == 200
    assert client.get(f"/results/{result_id}/audit.json").status_code == 404
    assert client.get(f"/results/{result_id}/audit.csv").status_code == 404

    monkeypatch.delenv("AUDIT_EXPORT_ENABLED")
    _reload_app(tmp_path / "restored")


def test_csv_header_is_fixed_for_empty_input():
    assert to_csv([]).strip() == "t,event,scenario_id,item_id,kind,value,is_correct,points_earned,time_remaining"
