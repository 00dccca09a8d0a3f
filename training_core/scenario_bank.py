from __future__ import annotations
import json, importlib.resources as ir
from typing import Any, Dict, List, Optional

from . import config
from .errors import UnknownScenario
from .types import Item, LogEntry, Scenario

MODULE_IDS = ["phishing-awareness", "password-security", "threat-hunting", "network-security"]


def scenario_from_dict(raw: Dict[str, Any]) -> Scenario:
    logs = [LogEntry(**entry) for entry in raw.get("logs") or []]
    log_ids = [entry.id for entry in logs]
    items: List[Item] = []
    for r in raw.get("items") or []:
        r = dict(r)
        # log-selection questions offer every log line of the scenario
        if r.get("kind") == "MULTI_SELECT" and not r.get("options") and log_ids:
            r["options"] = list(log_ids)
        items.append(Item(**r))
    fields = {k: v for k, v in raw.items() if k not in ("items", "logs")}
    fields.setdefault("time_limit_sec", config.DEFAULT_TIME_LIMIT_SEC)
    return Scenario(items=items, logs=logs, **fields)


def load_scenarios(path: Optional[str] = None) -> List[Scenario]:
    if path is not None:
        with open(path, "r", encoding="utf-8") as fh:
            data = fh.read()
    else:
        data = ir.files(__package__).joinpath("data/scenarios.json").read_text(encoding="utf-8")
    raw = json.loads(data)
    return [scenario_from_dict(r) for r in raw]


def get_scenario(scenario_id: str, scenarios: Optional[List[Scenario]] = None) -> Scenario:
    for sc in scenarios if scenarios is not None else load_scenarios():
        if sc.id == scenario_id:
            return sc
    raise UnknownScenario(f"unknown scenario {scenario_id!r}")


def scenarios_for_module(module_id: str, scenarios: Optional[List[Scenario]] = None) -> List[Scenario]:
    return [sc for sc in (scenarios if scenarios is not None else load_scenarios()) if sc.module_id == module_id]
