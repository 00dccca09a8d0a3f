"""Static checks over the scenario bank.

``main`` prints one line per warning and exits 2 when any are found, so it
can gate a CI job.
"""
from __future__ import annotations

from collections import Counter
from typing import Iterable, List, Optional

from .scenario_bank import MODULE_IDS, load_scenarios
from .types import Scenario


def validate_scenario(scenario: Scenario) -> List[str]:
    sid = scenario.id
    warnings: List[str] = []
    dupes = [k for k, n in Counter(it.id for it in scenario.items).items() if n > 1]
    for d in sorted(dupes):
        warnings.append(f"{sid}: duplicate item id {d}")
    if scenario.module_id not in MODULE_IDS:
        warnings.append(f"{sid}: unknown module {scenario.module_id}")
    if scenario.time_limit_sec <= 0:
        warnings.append(f"{sid}: time limit must be positive (got {scenario.time_limit_sec})")
    if not scenario.items:
        warnings.append(f"{sid}: has no items")
    elif scenario.max_points <= 0:
        warnings.append(f"{sid}: max points is 0")

    log_ids = {entry.id for entry in scenario.logs}
    for it in scenario.items:
        if it.kind == "MULTIPLE_CHOICE":
            if not it.options:
                warnings.append(f"{sid}/{it.id}: MULTIPLE_CHOICE without options")
            elif it.correct.strip().lower() not in {o.strip().lower() for o in it.options}:
                warnings.append(f"{sid}/{it.id}: correct answer not among options")
        elif it.kind == "MULTI_SELECT":
            offered = set(it.options or []) | log_ids
            missing = [c for c in it.correct if c not in offered]
            if missing:
                warnings.append(f"{sid}/{it.id}: unknown selection id(s) {', '.join(missing)}")
    return warnings


def validate_all(scenarios: Iterable[Scenario]) -> List[str]:
    warnings: List[str] = []
    seen: Counter = Counter()
    for sc in scenarios:
        seen[sc.id] += 1
        warnings.extend(validate_scenario(sc))
    for sid, n in seen.items():
        if n > 1:
            warnings.append(f"{sid}: scenario id used {n} times")
    return warnings


def main(argv: Optional[List[str]] = None) -> int:
    path = argv[0] if argv else None
    scenarios = load_scenarios(path)
    warnings = validate_all(scenarios)
    by_module = Counter(sc.module_id for sc in scenarios)
    print("=== Scenario Bank ===")
    for mid in MODULE_IDS:
        print(f"{mid}: {by_module.get(mid, 0)} scenario(s)")
    limits = ", ".join(f"{sc.id}={sc.time_limit_sec}s" for sc in scenarios)
    print(f"time limits: {limits}")
    if warnings:
        print("\nWarnings:")
        for msg in warnings:
            print(f" - {msg}")
        return 2
    print("\nNo warnings.")
    return 0


if __name__ == "__main__":
    import sys
    raise SystemExit(main(sys.argv[1:]))
