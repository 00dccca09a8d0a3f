from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

log = logging.getLogger(__name__)


class ProgressAggregator(Protocol):
    def record_attempt(self, module_id: str, score: int, time_spent_sec: int) -> None: ...


@dataclass
class ModuleProgress:
    attempts: int = 0
    best_score: int = 0
    time_spent_sec: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {"attempts": self.attempts, "bestScore": self.best_score, "timeSpent": self.time_spent_sec}


@dataclass(frozen=True)
class AttemptRecord:
    module_id: str
    score: int
    time_spent_sec: int
    at: str


@dataclass
class UserProgress:
    total_modules_completed: int = 0
    total_score: int = 0
    total_time_spent: int = 0
    module_progress: Dict[str, ModuleProgress] = field(default_factory=dict)
    history: List[AttemptRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """JSON blob in the shape the dashboard reads."""

        return {
            "totalModulesCompleted": self.total_modules_completed,
            "totalScore": self.total_score,
            "totalTimeSpent": self.total_time_spent,
            "moduleProgress": {k: v.to_dict() for k, v in self.module_progress.items()},
            "history": [
                {"moduleId": h.module_id, "score": h.score, "timeSpent": h.time_spent_sec, "at": h.at}
                for h in self.history
            ],
        }

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> "UserProgress":
        raw = raw or {}
        mods: Dict[str, ModuleProgress] = {}
        for mid, m in (raw.get("moduleProgress") or {}).items():
            if not isinstance(m, dict):
                continue
            mods[str(mid)] = ModuleProgress(
                attempts=int(m.get("attempts", m.get("completed", 0)) or 0),
                best_score=int(m.get("bestScore", 0) or 0),
                time_spent_sec=int(m.get("timeSpent", 0) or 0),
            )
        hist = [
            AttemptRecord(
                module_id=str(h.get("moduleId", "")),
                score=int(h.get("score", 0) or 0),
                time_spent_sec=int(h.get("timeSpent", 0) or 0),
                at=str(h.get("at", "")),
            )
            for h in (raw.get("history") or [])
            if isinstance(h, dict)
        ]
        return cls(
            total_modules_completed=int(raw.get("totalModulesCompleted", 0) or 0),
            total_score=int(raw.get("totalScore", 0) or 0),
            total_time_spent=int(raw.get("totalTimeSpent", 0) or 0),
            module_progress=mods,
            history=hist,
        )


def fold_attempt(progress: UserProgress, module_id: str, score: int, time_spent_sec: int,
                 *, at: Optional[datetime] = None) -> UserProgress:
    """Apply one completed attempt to ``progress`` in place and return it."""

    score = int(score); time_spent_sec = int(time_spent_sec)
    if not 0 <= score <= 100:
        raise ValueError(f"score must be within 0..100, got {score}")
    if time_spent_sec < 0:
        raise ValueError("time spent cannot be negative")
    mp = progress.module_progress.setdefault(module_id, ModuleProgress())
    mp.attempts += 1
    mp.best_score = max(mp.best_score, score)
    mp.time_spent_sec += time_spent_sec
    progress.total_modules_completed += 1
    progress.total_score += score
    progress.total_time_spent += time_spent_sec
    stamp = (at or datetime.now(timezone.utc)).isoformat()
    progress.history.append(AttemptRecord(module_id, score, time_spent_sec, stamp))
    log.info("progress module=%s score=%d best=%d attempts=%d", module_id, score, mp.best_score, mp.attempts)
    return progress


class InMemoryProgress:
    def __init__(self, progress: Optional[UserProgress] = None) -> None:
        self.progress = progress or UserProgress()

    def record_attempt(self, module_id: str, score: int, time_spent_sec: int) -> None:
        fold_attempt(self.progress, module_id, score, time_spent_sec)


_ACHIEVEMENTS = (
    ("First Steps", "Completed your first module"),
    ("Making Progress", "Completed 3 modules"),
    ("High Achiever", "80%+ average score"),
)


def summarize(progress: UserProgress, catalog_size: int) -> Dict[str, Any]:
    completed = len(progress.module_progress)
    avg = (sum(m.best_score for m in progress.module_progress.values()) / completed) if completed else 0.0
    overall = (completed / catalog_size * 100.0) if catalog_size > 0 else 0.0
    unlocked = []
    for (title, desc), ok in zip(_ACHIEVEMENTS, (
        progress.total_modules_completed >= 1,
        progress.total_modules_completed >= 3,
        avg >= 80,
    )):
        if ok:
            unlocked.append({"title": title, "desc": desc})
    return {
        "modules_completed": completed,
        "average_score": round(avg, 1),
        "overall_progress": round(overall, 1),
        "total_time_spent": progress.total_time_spent,
        "achievements": unlocked,
    }
