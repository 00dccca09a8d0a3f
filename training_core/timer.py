"""Cancelable once-per-interval tick used to drive session countdowns."""
from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from . import config

log = logging.getLogger(__name__)


class Countdown:
    """Repeatedly calls ``callback`` every ``interval`` seconds until cancelled.

    Each tick is scheduled on a daemon ``threading.Timer``; the next one is
    armed only after the callback returns, so ticks never overlap. ``cancel``
    is idempotent and may be called from inside the callback.
    """

    def __init__(self, callback: Callable[[], None], interval: Optional[float] = None) -> None:
        self.callback = callback
        self.interval = float(interval if interval is not None else config.TICK_INTERVAL_SEC)
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._cancelled = False
        self._started = False

    @property
    def running(self) -> bool:
        return self._started and not self._cancelled

    def start(self) -> "Countdown":
        with self._lock:
            if self._started:
                return self
            self._started = True
            self._arm()
        return self

    def cancel(self) -> None:
        with self._lock:
            self._cancelled = True
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def _arm(self) -> None:
        if self._cancelled:
            return
        t = threading.Timer(self.interval, self._fire)
        t.daemon = True
        self._timer = t
        t.start()

    def _fire(self) -> None:
        if self._cancelled:
            return
        try:
            self.callback()
        except Exception:
            log.exception("countdown callback failed; stopping timer")
            self.cancel()
            return
        with self._lock:
            self._arm()

    def __enter__(self) -> "Countdown":
        return self.start()

    def __exit__(self, *exc) -> None:
        self.cancel()
