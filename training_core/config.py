from __future__ import annotations
import os, json, pathlib, logging

log = logging.getLogger(__name__)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def parse_tiers(raw: object) -> list[tuple[int, str]] | None:
    """Parse a tier ladder from "90:excellent,75:good" or a list/dict form.

    Returns thresholds sorted high to low, or None when nothing usable is given.
    """
    pairs: list[tuple[int, str]] = []
    if isinstance(raw, str):
        for chunk in raw.split(","):
            if ":" not in chunk:
                continue
            lo, label = chunk.split(":", 1)
            try:
                pairs.append((int(lo.strip()), label.strip()))
            except ValueError:
                continue
    elif isinstance(raw, dict):
        for label, lo in raw.items():
            try:
                pairs.append((int(lo), str(label)))
            except (TypeError, ValueError):
                continue
    elif isinstance(raw, (list, tuple)):
        for entry in raw:
            try:
                lo, label = entry
                pairs.append((int(lo), str(label)))
            except (TypeError, ValueError):
                continue
    pairs = [(lo, label) for lo, label in pairs if label]
    if not pairs:
        return None
    return sorted(pairs, key=lambda p: p[0], reverse=True)


TICK_INTERVAL_SEC: float = 1.0
DEFAULT_TIME_LIMIT_SEC: int = 600
TIMER_ENABLED: bool = True

FEEDBACK_TIERS: list[tuple[int, str]] = [(90, "excellent"), (75, "good"), (60, "fair")]
FEEDBACK_FALLBACK: str = "needs practice"

AUDIT_EXPORT_ENABLED: bool = True

DEBUG_TRACE: bool = False
TRACE_FIELDS: tuple[str, ...] = (
    "event",
    "scenario_id",
    "item_id",
    "kind",
    "is_correct",
    "points_earned",
    "index",
    "time_remaining",
)
# // env overrides for staging/ops; unset vars keep the defaults above.
TICK_INTERVAL_SEC = _env_float("TICK_INTERVAL_SEC", TICK_INTERVAL_SEC)
DEFAULT_TIME_LIMIT_SEC = _env_int("DEFAULT_TIME_LIMIT_SEC", DEFAULT_TIME_LIMIT_SEC)
TIMER_ENABLED = _env_bool("TIMER_ENABLED", TIMER_ENABLED)
FEEDBACK_TIERS = parse_tiers(os.getenv("FEEDBACK_TIERS", "")) or FEEDBACK_TIERS
AUDIT_EXPORT_ENABLED = _env_bool("AUDIT_EXPORT_ENABLED", AUDIT_EXPORT_ENABLED)
DEBUG_TRACE = _env_bool("DEBUG_TRACE", False)


def load_config(path: str | os.PathLike = "config.json") -> dict:
    cfg: dict = {}
    p = pathlib.Path(path)
    if p.exists():
        try:
            cfg = json.loads(p.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            log.warning("ignoring unreadable config %s: %s", p, e)
            cfg = {}
    if os.environ.get("FEEDBACK_TIERS"):
        cfg["feedback_tiers"] = os.environ["FEEDBACK_TIERS"]
    return cfg


def tiers_from(cfg: dict) -> list[tuple[int, str]]:
    return parse_tiers(cfg.get("feedback_tiers")) or list(FEEDBACK_TIERS)
