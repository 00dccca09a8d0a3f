from __future__ import annotations

import pytest

from training_core.progress import InMemoryProgress, UserProgress, fold_attempt, summarize
from training_core.session import TrainingSession

from tests.conftest import CORRECT, build_synthetic_scenario


def test_best_score_is_max_over_attempts():
    agg = InMemoryProgress()
    for score, spent in [(40, 100), (70, 120), (55, 90)]:
        agg.record_attempt("threat-hunting", score, spent)
    mp = agg.progress.module_progress["threat-hunting"]
    assert mp.attempts == 3
    assert mp.best_score == 70
    assert mp.time_spent_sec == 310
    assert agg.progress.total_modules_completed == 3
    assert agg.progress.total_score == 165
    assert agg.progress.total_time_spent == 310
    assert [h.score for h in agg.progress.history] == [40, 70, 55]


@pytest.mark.parametrize("score, spent", [(-1, 10), (101, 10), (50, -5)])
def test_out_of_range_attempts_are_rejected(score, spent):
    progress = UserProgress()
    with pytest.raises(ValueError):
        fold_attempt(progress, "password-security", score, spent)
    assert progress.module_progress == {}


def test_round_trip_through_dashboard_json():
    agg = InMemoryProgress()
    agg.record_attempt("phishing-awareness", 80, 300)
    agg.record_attempt("password-security", 60, 200)
    raw = agg.progress.to_dict()
    assert raw["moduleProgress"]["phishing-awareness"] == {"attempts": 1, "bestScore": 80, "timeSpent": 300}
    back = UserProgress.from_dict(raw)
    assert back.total_modules_completed == 2
    assert back.module_progress["password-security"].best_score == 60
    assert len(back.history) == 2


def test_legacy_completed_key_is_read_as_attempts():
    raw = {"moduleProgress": {"threat-hunting": {"completed": 2, "bestScore": 90, "timeSpent": 60}}}
    assert UserProgress.from_dict(raw).module_progress["threat-hunting"].attempts == 2


def test_summary_and_achievements():
    agg = InMemoryProgress()
    assert summarize(agg.progress, 4)["achievements"] == []
    agg.record_attempt("phishing-awareness", 100, 60)
    agg.record_attempt("password-security", 80, 60)
    agg.record_attempt("password-security", 60, 60)
    summary = summarize(agg.progress, 4)
    assert summary["modules_completed"] == 2
    assert summary["average_score"] == 90.0
    assert summary["overall_progress"] == 50.0
    assert summary["total_time_spent"] == 180
    titles = [a["title"] for a in summary["achievements"]]
    assert titles == ["First Steps", "Making Progress", "High Achiever"]


def test_session_completion_feeds_in_memory_progress():
    agg = InMemoryProgress()
    sess = TrainingSession(build_synthetic_scenario(n_items=2, module_id="network-security"), agg)
    sess.start()
    sess.submit_answer(CORRECT["MULTIPLE_CHOICE"])
    sess.submit_answer(CORRECT["FREE_TEXT"])
    assert agg.progress.module_progress["network-security"].best_score == 100
