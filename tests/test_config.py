from __future__ import annotations

import importlib
import json

from training_core import config


def test_parse_tiers_accepts_string_dict_and_list():
    assert config.parse_tiers("75:good, 90:excellent,bogus") == [(90, "excellent"), (75, "good")]
    assert config.parse_tiers({"pass": 50}) == [(50, "pass")]
    assert config.parse_tiers([(60, "fair"), (80, "great")]) == [(80, "great"), (60, "fair")]
    assert config.parse_tiers("") is None


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("FEEDBACK_TIERS", "95:gold,70:silver")
    monkeypatch.setenv("TICK_INTERVAL_SEC", "0.5")
    monkeypatch.setenv("TIMER_ENABLED", "off")
    try:
        importlib.reload(config)
        assert config.FEEDBACK_TIERS == [(95, "gold"), (70, "silver")]
        assert config.TICK_INTERVAL_SEC == 0.5
        assert config.TIMER_ENABLED is False
    finally:
        monkeypatch.undo()
        importlib.reload(config)
    assert config.FEEDBACK_TIERS == [(90, "excellent"), (75, "good"), (60, "fair")]


def test_load_config_tolerates_bad_json(tmp_path, monkeypatch):
    monkeypatch.delenv("FEEDBACK_TIERS", raising=False)
    bad = tmp_path / "config.json"
    bad.write_text("{not json", encoding="utf-8")
    assert config.load_config(bad) == {}

    good = tmp_path / "good.json"
    good.write_text(json.dumps({"feedback_tiers": "80:pass"}), encoding="utf-8")
    assert config.tiers_from(config.load_config(good)) == [(80, "pass")]
    assert config.tiers_from({}) == config.FEEDBACK_TIERS
