from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Union

ItemKind = Literal["MULTIPLE_CHOICE", "FREE_TEXT", "MULTI_SELECT", "BINARY"]
Phase = Literal["INTRO", "ACTIVE", "RESULTS"]
Reveal = Literal["immediate", "end"]
Difficulty = Literal["Beginner", "Intermediate", "Advanced"]

ITEM_KINDS: Tuple[str, ...] = ("MULTIPLE_CHOICE", "FREE_TEXT", "MULTI_SELECT", "BINARY")

AnswerValue = Union[str, bool, List[str], Tuple[str, ...], frozenset]


@dataclass
class Item:
    id: str; kind: ItemKind; prompt: str
    correct: Union[str, bool, List[str]]
    points: int = 10
    options: Optional[List[str]] = None
    explanation: str = ""
    meta: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.kind not in ITEM_KINDS:
            raise ValueError(f"item {self.id}: unknown kind {self.kind!r}")
        if int(self.points) < 0:
            raise ValueError(f"item {self.id}: points must be >= 0")
        self.points = int(self.points)
        if self.kind == "BINARY":
            if not isinstance(self.correct, bool):
                raise ValueError(f"item {self.id}: BINARY needs a boolean correct answer")
        elif self.kind == "MULTI_SELECT":
            if isinstance(self.correct, (str, bool)) or not self.correct:
                raise ValueError(f"item {self.id}: MULTI_SELECT needs a non-empty list of ids")
            self.correct = [str(c) for c in self.correct]
        else:
            if not isinstance(self.correct, str) or not self.correct.strip():
                raise ValueError(f"item {self.id}: {self.kind} needs a non-empty string answer")


@dataclass
class LogEntry:
    id: str; timestamp: str; source: str; level: str; message: str
    is_suspicious: bool = False
    threat_type: Optional[str] = None
    explanation: str = ""
    indicators: List[str] = field(default_factory=list)
    remediation: List[str] = field(default_factory=list)


@dataclass
class Scenario:
    id: str; module_id: str; title: str
    items: List[Item]
    time_limit_sec: int
    description: str = ""
    difficulty: Difficulty = "Beginner"
    category: str = ""
    learning_goals: List[str] = field(default_factory=list)
    logs: List[LogEntry] = field(default_factory=list)
    reveal: Reveal = "end"

    @property
    def max_points(self) -> int:
        return sum(it.points for it in self.items)

    def summary(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "module_id": self.module_id,
            "title": self.title,
            "description": self.description,
            "difficulty": self.difficulty,
            "category": self.category,
            "time_limit_sec": self.time_limit_sec,
            "items": len(self.items),
            "max_points": self.max_points,
            "learning_goals": list(self.learning_goals),
            "reveal": self.reveal,
        }


@dataclass(frozen=True)
class AnswerRecord:
    item_id: str
    value: AnswerValue
    is_correct: bool
    points_earned: int
    answered_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        val = self.value
        if isinstance(val, (list, tuple, set, frozenset)):
            val = sorted(str(v) for v in val)
        return {
            "item_id": self.item_id,
            "value": val,
            "is_correct": self.is_correct,
            "points_earned": self.points_earned,
            "answered_at": self.answered_at.isoformat() if self.answered_at else None,
        }


@dataclass(frozen=True)
class ScenarioResult:
    scenario_id: str
    module_id: str
    total_points: int
    max_points: int
    percentage: int
    answers: Tuple[AnswerRecord, ...]
    time_spent_sec: int
    feedback_tier: str
    feedback: str = ""
    timed_out: bool = False
    items_total: int = 0
    completed_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scenario_id": self.scenario_id,
            "module_id": self.module_id,
            "total_points": self.total_points,
            "max_points": self.max_points,
            "percentage": self.percentage,
            "answers": [a.to_dict() for a in self.answers],
            "time_spent_sec": self.time_spent_sec,
            "feedback_tier": self.feedback_tier,
            "feedback": self.feedback,
            "timed_out": self.timed_out,
            "items_total": self.items_total,
            "items_answered": len(self.answers),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
