from __future__ import annotations

from app_cli import run_module


class _ExpiringTimer:
    """Stands in for Countdown; runs the session clock down on demand."""

    instances: list["_ExpiringTimer"] = []
    expire_on_start = False

    def __init__(self, callback):
        self.callback = callback
        self.cancelled = False
        _ExpiringTimer.instances.append(self)

    def start(self):
        if self.expire_on_start:
            self.expire()
        return self

    def cancel(self):
        self.cancelled = True

    def expire(self):
        while not self.cancelled:
            self.callback()


def _feed(monkeypatch, answers, on_prompt=None):
    calls = []

    def fake_input(prompt=""):
        calls.append(prompt)
        if on_prompt is not None:
            on_prompt(len(calls))
        return answers.pop(0) if answers else ""

    monkeypatch.setattr("builtins.input", fake_input)
    return calls


def _use_fake_timer(monkeypatch, *, expire_on_start=False):
    _ExpiringTimer.instances = []
    monkeypatch.setattr(_ExpiringTimer, "expire_on_start", expire_on_start)
    monkeypatch.setattr(run_module, "Countdown", _ExpiringTimer)
    monkeypatch.setattr(run_module.config, "TIMER_ENABLED", True)


def test_full_phishing_run_without_timer(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _feed(monkeypatch, ["", "y", "n", "y", "n", "y"])
    run_module.main(["phishing-awareness", "--no-timer"])
    out = capsys.readouterr().out
    assert "Score: 100% (100/100)" in out
    assert "Next: Password Security" in out
    assert len(list((tmp_path / "reports").glob("result_phishing-inbox_*.html"))) == 1


def test_timeout_while_waiting_for_an_answer(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _use_fake_timer(monkeypatch)
    # the second prompt is the first question; the clock runs out before it is answered
    _feed(monkeypatch, ["", "y"], on_prompt=lambda n: n == 2 and _ExpiringTimer.instances[0].expire())
    run_module.main(["phishing-awareness"])
    out = capsys.readouterr().out
    assert "Time is up." in out
    assert "Score: 0% (0/100)" in out


def test_timeout_before_first_question_skips_prompting(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _use_fake_timer(monkeypatch, expire_on_start=True)
    calls = _feed(monkeypatch, [""])
    run_module.main(["threat-hunting", "--scenario", "ssh-brute-force"])
    out = capsys.readouterr().out
    assert calls == ["Press Enter to begin..."]
    assert "Time is up." in out
