"""Utility helpers for persisting results and per-user progress.

Everything lives in plain JSON files under ``DATA_DIR`` so the API keeps
result links and progress across restarts without a database.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from training_core.progress import UserProgress, fold_attempt


log = logging.getLogger(__name__)

DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
RESULTS_DIR = DATA_ROOT / "results"
RESULT_INDEX_PATH = DATA_ROOT / "results_index.json"
PROGRESS_DIR = DATA_ROOT / "progress"

_LOCK = threading.Lock()


def _ensure_dirs() -> None:
    RESULTS_DIR.mkdir(parents=True, exist_ok=True)
    PROGRESS_DIR.mkdir(parents=True, exist_ok=True)


def _read_json(path: Path, default: Any) -> Any:
    if not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        log.warning("unreadable json %s: %s", path, e)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


_SAFE_ID = re.compile(r"[A-Za-z0-9_.@-]+")


def _digest(key: str) -> str:
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def _result_path(result_id: str) -> Path:
    # server-issued ids are uuids; anything else is hashed so it cannot escape RESULTS_DIR
    name = result_id if _SAFE_ID.fullmatch(result_id) and result_id not in (".", "..") else _digest(result_id)
    return RESULTS_DIR / f"{name}.json"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---- results ----
def save_result(result_id: str, result: Dict[str, Any], metadata: Dict[str, Any]) -> None:
    """Persist the result JSON and its index metadata."""

    _ensure_dirs()
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        index[result_id] = metadata
        _write_json(RESULT_INDEX_PATH, index)

    _write_json(_result_path(result_id), result)


def load_result(result_id: str) -> Optional[Dict[str, Any]]:
    return _read_json(_result_path(result_id), None)


def delete_result(result_id: str) -> bool:
    removed = False
    with _LOCK:
        index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
        if result_id in index:
            index.pop(result_id, None)
            _write_json(RESULT_INDEX_PATH, index)
            removed = True
    _result_path(result_id).unlink(missing_ok=True)
    return removed


def list_results_for_user(user_id: str) -> List[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
    out: List[Dict[str, Any]] = []
    for rid, meta in index.items():
        if meta.get("userId") == user_id:
            item = {"id": rid}
            item.update({k: v for k, v in meta.items() if k != "id"})
            out.append(item)
    out.sort(key=lambda r: r.get("createdAt", ""), reverse=True)
    return out


def find_result_by_session(session_id: str) -> Optional[Dict[str, Any]]:
    index: Dict[str, Dict[str, Any]] = _read_json(RESULT_INDEX_PATH, {})
    for rid, meta in index.items():
        if meta.get("sessionId") == session_id:
            result = load_result(rid)
            if result:
                return result
    return None


# ---- progress ----
def _progress_path(user_id: str) -> Path:
    # one file per exact user id; distinct ids never share a file
    return PROGRESS_DIR / f"{_digest(user_id)}.json"


def load_progress(user_id: str) -> UserProgress:
    return UserProgress.from_dict(_read_json(_progress_path(user_id), {}))


def save_progress(user_id: str, progress: UserProgress) -> None:
    with _LOCK:
        _write_json(_progress_path(user_id), progress.to_dict())


class JsonProgressStore:
    """Progress aggregator that folds each attempt into the user's file under ``progress/``."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id

    def record_attempt(self, module_id: str, score: int, time_spent_sec: int) -> None:
        path = _progress_path(self.user_id)
        with _LOCK:
            progress = UserProgress.from_dict(_read_json(path, {}))
            fold_attempt(progress, module_id, score, time_spent_sec)
            _write_json(path, progress.to_dict())
        log.debug("progress saved user=%s module=%s", self.user_id, module_id)
