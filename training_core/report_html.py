from __future__ import annotations
from html import escape
from typing import Any, Dict, List, Optional

from .config import AUDIT_EXPORT_ENABLED
from .types import Scenario, ScenarioResult


def _fmt_value(v: Any) -> str:
    if isinstance(v, bool):
        return "Yes" if v else "No"
    if isinstance(v, (list, tuple)):
        return ", ".join(str(x) for x in v)
    return "" if v is None else str(v)


def _row(a: Dict[str, Any], prompts: Dict[str, Dict[str, str]]) -> str:
    info = prompts.get(a.get("item_id", ""), {})
    mark = "&#10003;" if a.get("is_correct") else "&#10007;"
    return (
        f"<tr><td>{escape(str(a.get('item_id')))}</td>"
        f"<td>{escape(info.get('prompt', ''))}</td>"
        f"<td>{escape(_fmt_value(a.get('value')))}</td>"
        f"<td>{mark}</td><td>{int(a.get('points_earned', 0) or 0)}</td>"
        f"<td>{escape(info.get('explanation', ''))}</td></tr>"
    )


def render_result_html(result: Dict[str, Any], scenario: Optional[Scenario] = None) -> str:
    answers: List[Dict[str, Any]] = result.get("answers") or []
    prompts: Dict[str, Dict[str, str]] = {}
    if scenario is not None:
        prompts = {it.id: {"prompt": it.prompt, "explanation": it.explanation} for it in scenario.items}
    title = scenario.title if scenario is not None else str(result.get("scenario_id") or "Scenario")
    rows = "\n".join(_row(a, prompts) for a in answers)

    timeout_html = ""
    if result.get("timed_out"):
        answered = result.get("items_answered", len(answers))
        total = result.get("items_total", answered)
        timeout_html = (
            "<div class=\"banner warning\">"
            f"Time ran out: {answered} of {total} item(s) answered; unanswered items score 0."
            "</div>"
        )

    audit_links = ""
    rid = result.get("id")
    if AUDIT_EXPORT_ENABLED and rid:
        rid = escape(str(rid))
        audit_links = (
            "<p class=\"audit-links\">"
            f"<a href=\"/results/{rid}/audit.json\">Download audit (JSON)</a> · "
            f"<a href=\"/results/{rid}/audit.csv\">Download audit (CSV)</a>"
            "</p>"
        )

    mins, secs = divmod(int(result.get("time_spent_sec", 0) or 0), 60)

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>Training Result</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .wrap{{max-width:960px;margin:40px auto;padding:0 16px}}
 h1{{margin:0 0 16px}}
 .overall{{font-size:1.1rem;margin:8px 0 16px}}
 .banner{{padding:12px 16px;border-radius:6px;margin:16px 0}}
 .banner.warning{{background:#ffe7d9;border:1px solid #f5a623;color:#7a2d00}}
 table{{border-collapse:collapse;width:100%}}
 th,td{{text-align:left}}
</style>
</head>
<body>
<div class="wrap">
  <h1>{escape(title)}</h1>
  <div class="overall"><b>Score:</b> {int(result.get('percentage', 0) or 0)}%
    ({int(result.get('total_points', 0) or 0)}/{int(result.get('max_points', 0) or 0)} points)
    &middot; <b>Tier:</b> {escape(str(result.get('feedback_tier', '')))}
    &middot; <b>Time:</b> {mins}:{secs:02d}</div>
  <p>{escape(str(result.get('feedback', '')))}</p>
  {timeout_html}

  <table border='1' cellpadding='6' cellspacing='0'>
    <thead><tr><th>Item</th><th>Question</th><th>Your answer</th><th></th><th>Points</th><th>Explanation</th></tr></thead>
    <tbody>{rows}</tbody>
  </table>
  {audit_links}
</div>
</body>
</html>"""


def export_result_html(result: ScenarioResult | Dict[str, Any], path: str,
                       scenario: Optional[Scenario] = None) -> None:
    payload = result.to_dict() if isinstance(result, ScenarioResult) else result
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_result_html(payload, scenario))
