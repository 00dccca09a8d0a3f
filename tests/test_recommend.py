from __future__ import annotations

import pytest

from training_core.recommend import MODULES, next_module, recommendation
from training_core.report_html import export_result_html, render_result_html
from training_core.session import TrainingSession
from training_core.tiers import encouragement, feedback_message

from tests.conftest import build_synthetic_scenario


@pytest.mark.parametrize(
    "done, expected",
    [
        ("phishing-awareness", "password-security"),
        ("password-security", "threat-hunting"),
        ("threat-hunting", "network-security"),
    ],
)
def test_progression_order(done, expected):
    assert next_module(done)["id"] == expected


def test_last_module_has_no_successor():
    assert next_module("network-security") is None
    assert next_module("unknown") is None
    assert recommendation("network-security", 95)["next"] is None


def test_recommendation_message_ladder():
    assert recommendation("phishing-awareness", 92)["message"].startswith("Outstanding")
    assert recommendation("phishing-awareness", 75)["message"].startswith("Great job")
    assert recommendation("phishing-awareness", 60)["message"].startswith("Good progress")
    assert recommendation("phishing-awareness", 10)["message"] == encouragement(10)
    assert recommendation("phishing-awareness", 10)["completed"] == "Phishing Awareness"


def test_catalog_covers_four_modules():
    assert len(MODULES) == 4
    assert all(m["skills"] for m in MODULES)


def test_feedback_message_falls_back_to_generic():
    assert feedback_message("threat-hunting", "excellent").startswith("Excellent! You have strong threat")
    assert feedback_message("malware-analysis", "good") == "Good work!"


def test_html_report_shows_timeout_banner(tmp_path):
    scenario = build_synthetic_scenario(n_items=4, time_limit_sec=1)
    sess = TrainingSession(scenario)
    sess.start()
    sess.submit_answer("B")
    sess.tick()
    html = render_result_html(sess.result.to_dict(), scenario)
    assert "Time ran out: 1 of 4" in html
    assert "because 0" in html

    out = tmp_path / "r.html"
    export_result_html(sess.result, str(out), scenario)
    assert out.read_text(encoding="utf-8").startswith("<!doctype html>")


@pytest.mark.parametrize(
    "module_id, tier, expected",
    [
        ("phishing-awareness", "excellent", "Excellent! You have strong phishing detection skills."),
        ("phishing-awareness", "needs practice", "Keep practicing! Phishing emails can be very convincing."),
        ("password-security", "good", "Good work! You understand most password security principles."),
        ("password-security", "fair", "Not bad, but review password security best practices."),
        ("network-security", "fair", "Not bad, but review network security fundamentals."),
        ("network-security", "needs practice",
         "Keep studying! Network security is crucial for cybersecurity professionals."),
    ],
)
def test_module_feedback_wording(module_id, tier, expected):
    assert feedback_message(module_id, tier) == expected
