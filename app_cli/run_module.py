from __future__ import annotations
import argparse, datetime, os
from training_core import config
from training_core.errors import InvalidTransition, MalformedAnswer
from training_core.progress import InMemoryProgress
from training_core.recommend import MODULES, recommendation
from training_core.report_html import export_result_html
from training_core.scenario_bank import get_scenario, scenarios_for_module
from training_core.session import TrainingSession
from training_core.timer import Countdown
def ask(item, logs) -> object:
    print(f"\n{item.prompt}")
    for k in ("from", "subject", "password", "scenario"):
        if item.meta.get(k): print(f"  {k}: {item.meta[k]}")
    if item.kind == "BINARY":
        return input("Your answer (y/n): ").strip().lower() in ("y", "yes")
    if item.kind == "MULTI_SELECT":
        for e in logs: print(f"  [{e.id}] {e.timestamp} {e.source} {e.message}")
        raw = input("Entry ids (comma separated): ")
        return [p.strip() for p in raw.split(",") if p.strip()]
    if item.options:
        for i, opt in enumerate(item.options): print(f"  [{i}] {opt}")
        while True:
            v = input("Your choice (index): ").strip()
            if v.isdigit() and int(v) < len(item.options): return item.options[int(v)]
            print("Enter a number index.")
    return input("Your answer: ")
def main(argv=None):
    ap = argparse.ArgumentParser(description="Run one training scenario in the terminal")
    ap.add_argument("module", choices=[m["id"] for m in MODULES])
    ap.add_argument("--scenario", help="scenario id (default: first in module)")
    ap.add_argument("--no-timer", action="store_true")
    args = ap.parse_args(argv)
    scenario = get_scenario(args.scenario) if args.scenario else scenarios_for_module(args.module)[0]
    progress = InMemoryProgress()
    use_timer = config.TIMER_ENABLED and not args.no_timer
    sess = TrainingSession(scenario, progress, timer_factory=Countdown if use_timer else None)
    print(f"{scenario.title}\n{scenario.description}\nTime limit: {scenario.time_limit_sec // 60} min")
    input("Press Enter to begin...")
    sess.start()
    while True:
        # None once the session left ACTIVE, including a timeout from the timer thread
        item = sess.current_item
        if item is None: break
        v = ask(item, scenario.logs)
        try:
            rec = sess.submit_answer(v)
        except MalformedAnswer as e:
            print(f"Invalid answer: {e.reason}"); continue
        except InvalidTransition:
            break
        if scenario.reveal == "immediate":
            print(("Correct! " if rec.is_correct else "Incorrect. ") + item.explanation)
        print(f"[{sess.time_remaining}s left]")
    res = sess.result
    if res.timed_out: print("\nTime is up.")
    print(f"\nScore: {res.percentage}% ({res.total_points}/{res.max_points}) - {res.feedback}")
    rec = recommendation(scenario.module_id, res.percentage)
    print(rec["message"] + (f" Next: {rec['next']['title']}" if rec["next"] else ""))
    os.makedirs("reports", exist_ok=True)
    ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    path = os.path.join("reports", f"result_{scenario.id}_{ts}.html")
    export_result_html(res, path, scenario)
    print(f"Done. Report saved to: {path}")
if __name__ == "__main__": main()
