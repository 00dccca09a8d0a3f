# training_core/session.py
"""Session controller: drives one user through a scenario's items.

INTRO -> ACTIVE -> RESULTS, with a countdown that force-completes the run
when it reaches zero. ``reset``/``abandon`` go back to INTRO without ever
reporting a result.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from . import config
from .errors import InvalidTransition, MalformedAnswer
from .progress import ProgressAggregator
from .scoring import aggregate, record
from .types import AnswerRecord, Item, LogEntry, Phase, Scenario, ScenarioResult

log = logging.getLogger(__name__)

TimerFactory = Callable[[Callable[[], None]], Any]


def _emit_trace(**values: object) -> None:
    if not config.DEBUG_TRACE:
        return
    ordered = []
    for key in config.TRACE_FIELDS:
        if key in values:
            ordered.append(f"{key}={values[key]}")
    if ordered:
        log.info("trace %s", " ".join(ordered))


def item_view(item: Item) -> Dict[str, Any]:
    """Client-facing view of an item; never includes the correct answer."""

    return {
        "id": item.id,
        "kind": item.kind,
        "prompt": item.prompt,
        "options": list(item.options) if item.options else None,
        "points": item.points,
        "meta": dict(item.meta),
    }


def log_view(entry: LogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "source": entry.source,
        "level": entry.level,
        "message": entry.message,
    }


class TrainingSession:
    def __init__(
        self,
        scenario: Scenario,
        progress: Optional[ProgressAggregator] = None,
        *,
        clock: Callable[[], float] = time.time,
        timer_factory: Optional[TimerFactory] = None,
        thresholds: Optional[List[Tuple[int, str]]] = None,
        on_complete: Optional[Callable[[ScenarioResult], None]] = None,
    ) -> None:
        self.scenario = scenario
        self.progress = progress
        self.clock = clock
        self.timer_factory = timer_factory
        self.thresholds = thresholds
        self.on_complete = on_complete
        self._lock = threading.RLock()
        self._timer: Any = None
        self.audit_events: List[Dict[str, object]] = []
        self._clear()

    def _clear(self) -> None:
        self.phase: Phase = "INTRO"
        self.current_index = 0
        self.answers: List[AnswerRecord] = []
        self.time_remaining = int(self.scenario.time_limit_sec)
        self.started_at: Optional[datetime] = None
        self._t0: Optional[float] = None
        self.paused = False
        self.timed_out = False
        self.result: Optional[ScenarioResult] = None

    # ---- read side ----
    @property
    def items(self) -> List[Item]:
        return self.scenario.items

    @property
    def current_item(self) -> Optional[Item]:
        with self._lock:
            if self.phase != "ACTIVE":
                return None
            return self.items[self.current_index]

    @property
    def progress_fraction(self) -> float:
        n = len(self.items)
        return len(self.answers) / n if n else 1.0

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            cur = self.current_item
            return {
                "phase": self.phase,
                "scenario": self.scenario.summary(),
                "current_index": self.current_index,
                "items_total": len(self.items),
                "time_remaining": self.time_remaining,
                "paused": self.paused,
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "item": item_view(cur) if cur is not None else None,
                "logs": [log_view(e) for e in self.scenario.logs],
                "answers": [a.to_dict() for a in self.answers],
                "result": self.result.to_dict() if self.result else None,
            }

    # ---- transitions ----
    def start(self) -> Optional[Item]:
        with self._lock:
            if self.phase != "INTRO":
                raise InvalidTransition("start", self.phase)
            self._t0 = self.clock()
            self.started_at = datetime.fromtimestamp(self._t0, tz=timezone.utc)
            self.time_remaining = int(self.scenario.time_limit_sec)
            self.phase = "ACTIVE"
            self._audit("start")
            log.info("session started scenario=%s items=%d limit=%ds",
                     self.scenario.id, len(self.items), self.time_remaining)
            if not self.items:
                self._complete(timed_out=False)
                return None
            if self.timer_factory is not None:
                self._timer = self.timer_factory(self.tick)
                self._timer.start()
            return self.current_item

    def submit_answer(self, value: Any) -> AnswerRecord:
        with self._lock:
            if self.phase != "ACTIVE":
                raise InvalidTransition("submit_answer", self.phase)
            item = self.items[self.current_index]
            try:
                rec = record(item, value, at=datetime.now(timezone.utc))
            except MalformedAnswer as e:
                log.warning("rejected answer scenario=%s item=%s: %s", self.scenario.id, item.id, e.reason)
                raise
            self.answers.append(rec)
            self.current_index += 1
            self._audit("answer", item=item, rec=rec)
            _emit_trace(event="answer", scenario_id=self.scenario.id, item_id=item.id, kind=item.kind,
                        is_correct=rec.is_correct, points_earned=rec.points_earned,
                        index=self.current_index, time_remaining=self.time_remaining)
            if self.current_index >= len(self.items):
                self._complete(timed_out=False)
            return rec

    def tick(self) -> None:
        with self._lock:
            if self.phase != "ACTIVE" or self.paused:
                return
            self.time_remaining = max(0, self.time_remaining - 1)
            if self.time_remaining == 0:
                log.info("session timed out scenario=%s answered=%d/%d",
                         self.scenario.id, len(self.answers), len(self.items))
                self._audit("timeout")
                self._complete(timed_out=True)

    def pause(self) -> None:
        with self._lock:
            if self.phase != "ACTIVE":
                raise InvalidTransition("pause", self.phase)
            self.paused = True

    def resume(self) -> None:
        with self._lock:
            if self.phase != "ACTIVE":
                raise InvalidTransition("resume", self.phase)
            self.paused = False

    def abandon(self) -> None:
        """Leave the session without reporting anything; its audit trail is dropped too."""
        with self._lock:
            self._stop_timer()
            if self.phase == "ACTIVE":
                log.info("session abandoned scenario=%s answered=%d", self.scenario.id, len(self.answers))
            self._clear()
            self.audit_events = []

    def reset(self) -> None:
        with self._lock:
            self._stop_timer()
            self._clear()
            self.audit_events = []

    def close(self) -> None:
        self._stop_timer()

    # ---- internals ----
    def _stop_timer(self) -> None:
        t, self._timer = self._timer, None
        if t is not None:
            t.cancel()

    def _elapsed(self) -> int:
        if self._t0 is None:
            return 0
        return max(0, int(math.floor(self.clock() - self._t0 + 0.5)))

    def _complete(self, *, timed_out: bool) -> None:
        self._stop_timer()
        self.timed_out = timed_out
        res = aggregate(
            self.scenario,
            self.answers,
            self._elapsed(),
            timed_out=timed_out,
            thresholds=self.thresholds,
            completed_at=datetime.now(timezone.utc),
        )
        self.result = res
        self.phase = "RESULTS"
        self._audit("complete")
        log.info("session complete scenario=%s points=%d/%d pct=%d tier=%s timed_out=%s",
                 res.scenario_id, res.total_points, res.max_points, res.percentage,
                 res.feedback_tier, timed_out)
        if self.progress is not None:
            self.progress.record_attempt(self.scenario.module_id, res.percentage, res.time_spent_sec)
        if self.on_complete is not None:
            self.on_complete(res)

    def _audit(self, event: str, *, item: Optional[Item] = None, rec: Optional[AnswerRecord] = None) -> None:
        evt: Dict[str, object] = {
            "t": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "scenario_id": self.scenario.id,
            "item_id": item.id if item else "",
            "kind": item.kind if item else "",
            "value": "",
            "is_correct": "",
            "points_earned": 0,
            "time_remaining": self.time_remaining,
        }
        if rec is not None:
            val = rec.value
            if isinstance(val, (list, tuple, set, frozenset)):
                val = "|".join(sorted(str(v) for v in val))
            evt["value"] = val
            evt["is_correct"] = rec.is_correct
            evt["points_earned"] = rec.points_earned
        self.audit_events.append(evt)
