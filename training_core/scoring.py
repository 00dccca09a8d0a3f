from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Iterable, List, Optional, Sequence, Tuple, Union
import math

from .errors import MalformedAnswer
from .tiers import feedback_tier, feedback_message
from .types import AnswerRecord, Item, Scenario, ScenarioResult


def normalize(value: Any) -> Any:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _as_set(value: Any) -> frozenset:
    return frozenset(normalize(str(v)) for v in value)


def _is_collection(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


def validate_answer(item: Item, value: Any) -> None:
    """Reject values that do not fit the item's variant before any scoring."""

    if item.kind == "BINARY":
        if not isinstance(value, bool):
            raise MalformedAnswer(item.id, "expected a yes/no (boolean) answer")
        return
    if item.kind == "MULTI_SELECT":
        if not _is_collection(value) or not value:
            raise MalformedAnswer(item.id, "select at least one entry")
        if any(not isinstance(v, str) for v in value):
            raise MalformedAnswer(item.id, "selections must be identifiers")
        if item.options:
            offered = _as_set(item.options)
            unknown = sorted(v for v in _as_set(value) if v not in offered)
            if unknown:
                raise MalformedAnswer(item.id, f"unknown selection(s): {', '.join(unknown)}")
        return
    if not isinstance(value, str) or not value.strip():
        raise MalformedAnswer(item.id, "answer must be a non-empty string")
    if item.kind == "MULTIPLE_CHOICE" and item.options:
        if normalize(value) not in {normalize(o) for o in item.options}:
            raise MalformedAnswer(item.id, "answer is not one of the offered options")


def _score_choice(item: Item, value: Any) -> bool:
    return normalize(value) == normalize(item.correct)

def _score_multi(item: Item, value: Any) -> bool:
    # all-or-nothing: a missing or an extra selection both fail
    return _as_set(value) == _as_set(item.correct)

def _score_binary(item: Item, value: Any) -> bool:
    return bool(value) is item.correct


def evaluate(item: Item, value: Any) -> Tuple[bool, int]:
    """
    Returns (is_correct, points_earned). Pure: no state is read or written.
    MULTIPLE_CHOICE/FREE_TEXT: case-insensitive trimmed equality.
    MULTI_SELECT: set equality.
    BINARY: boolean equality.
    """
    if item.kind == "MULTI_SELECT":
        ok = _is_collection(value) and _score_multi(item, value)
    elif item.kind == "BINARY":
        ok = isinstance(value, bool) and _score_binary(item, value)
    elif item.kind in ("MULTIPLE_CHOICE", "FREE_TEXT"):
        ok = isinstance(value, str) and _score_choice(item, value)
    else:
        ok = False
    return ok, (item.points if ok else 0)


def record(item: Item, value: Any, *, at: Optional[datetime] = None) -> AnswerRecord:
    validate_answer(item, value)
    ok, pts = evaluate(item, value)
    if _is_collection(value):
        value = tuple(str(v) for v in value)
    return AnswerRecord(item_id=item.id, value=value, is_correct=ok, points_earned=pts,
                        answered_at=at or datetime.now(timezone.utc))


def percentage(total_points: int, max_points: int) -> int:
    if max_points <= 0:
        return 0
    # half-up, not banker's rounding
    return int(math.floor(100.0 * total_points / max_points + 0.5))


def aggregate(
    scenario: Union[Scenario, Sequence[Item]],
    answers: Iterable[AnswerRecord],
    time_spent_sec: int = 0,
    *,
    timed_out: bool = False,
    thresholds: Optional[List[Tuple[int, str]]] = None,
    scenario_id: str = "",
    module_id: str = "",
    completed_at: Optional[datetime] = None,
) -> ScenarioResult:
    if isinstance(scenario, Scenario):
        items = list(scenario.items)
        scenario_id = scenario_id or scenario.id
        module_id = module_id or scenario.module_id
    else:
        items = list(scenario)
    answers = tuple(answers)
    total = sum(a.points_earned for a in answers)
    max_pts = sum(it.points for it in items)
    pct = percentage(total, max_pts)
    tier = feedback_tier(pct, thresholds)
    return ScenarioResult(
        scenario_id=scenario_id,
        module_id=module_id,
        total_points=total,
        max_points=max_pts,
        percentage=pct,
        answers=answers,
        time_spent_sec=max(0, int(time_spent_sec)),
        feedback_tier=tier,
        feedback=feedback_message(module_id, tier),
        timed_out=timed_out,
        items_total=len(items),
        completed_at=completed_at,
    )
