from __future__ import annotations

import pytest

from training_core.types import Item, LogEntry, Scenario


def build_synthetic_scenario(
    *,
    n_items: int = 4,
    points: int | list[int] = 10,
    time_limit_sec: int = 60,
    module_id: str = "threat-hunting",
    scenario_id: str = "synthetic",
    reveal: str = "end",
    kinds: tuple[str, ...] = ("MULTIPLE_CHOICE", "FREE_TEXT", "MULTI_SELECT", "BINARY"),
) -> Scenario:
    """Deterministic scenario cycling through ``kinds``.

    Correct answers: MULTIPLE_CHOICE "B", FREE_TEXT "timing",
    MULTI_SELECT ["log-1", "log-3"], BINARY True.
    """

    pts = points if isinstance(points, list) else [points] * n_items
    logs = [
        LogEntry(id=f"log-{i}", timestamp=f"2024-01-15 10:00:0{i}", source="sshd", level="INFO",
                 message=f"line {i}", is_suspicious=i in (1, 3))
        for i in range(1, 5)
    ]
    items: list[Item] = []
    for idx in range(n_items):
        kind = kinds[idx % len(kinds)]
        common = dict(id=f"i{idx}", kind=kind, prompt=f"{kind} #{idx}", points=pts[idx],
                      explanation=f"because {idx}")
        if kind == "MULTIPLE_CHOICE":
            items.append(Item(correct="B", options=["A", "B", "C", "D"], **common))
        elif kind == "FREE_TEXT":
            items.append(Item(correct="timing", **common))
        elif kind == "MULTI_SELECT":
            items.append(Item(correct=["log-1", "log-3"], options=[e.id for e in logs], **common))
        else:
            items.append(Item(correct=True, **common))
    return Scenario(
        id=scenario_id,
        module_id=module_id,
        title="Synthetic scenario",
        items=items,
        time_limit_sec=time_limit_sec,
        logs=logs,
        reveal=reveal,  # type: ignore[arg-type]
    )


CORRECT = {
    "MULTIPLE_CHOICE": "B",
    "FREE_TEXT": "timing",
    "MULTI_SELECT": ["log-3", "log-1"],
    "BINARY": True,
}
WRONG = {
    "MULTIPLE_CHOICE": "A",
    "FREE_TEXT": "volume",
    "MULTI_SELECT": ["log-1"],
    "BINARY": False,
}


class FakeClock:
    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingProgress:
    def __init__(self) -> None:
        self.calls: list[tuple[str, int, int]] = []

    def record_attempt(self, module_id: str, score: int, time_spent_sec: int) -> None:
        self.calls.append((module_id, score, time_spent_sec))


@pytest.fixture
def synthetic_scenario() -> Scenario:
    return build_synthetic_scenario()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> RecordingProgress:
    return RecordingProgress()
