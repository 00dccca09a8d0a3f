from __future__ import annotations
from dataclasses import asdict
from fastapi import FastAPI, HTTPException, Query, Response
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, StrictBool, StrictStr
import logging, os, uuid, typing as t

# ---- Engine imports ----
from training_core import config
from training_core.audit_export import to_json as audit_to_json, to_csv as audit_to_csv
from training_core.errors import InvalidTransition, MalformedAnswer, UnknownScenario
from training_core.progress import summarize
from training_core.recommend import MODULES, get_module, recommendation
from training_core.report_html import render_result_html
from training_core.scenario_bank import get_scenario, load_scenarios, scenarios_for_module
from training_core.session import TrainingSession, item_view
from training_core.timer import Countdown
from training_core.types import Item, Scenario, ScenarioResult
from .storage import (
    JsonProgressStore,
    delete_result,
    find_result_by_session,
    list_results_for_user,
    load_progress,
    load_result,
    save_result,
    utcnow_iso,
)

log = logging.getLogger(__name__)

SESS: dict[str, TrainingSession] = {}
SESSION_INFO: dict[str, dict[str, t.Any]] = {}

app = FastAPI(title="Cybersecurity Training API")


@app.get("/")
def root():
    return {"status": "ok", "service": "cybersec-training-api"}


ALLOWED_ORIGINS = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
    allow_credentials=False,
)

# ---- Schemas ----
class StartReq(BaseModel):
    module_id: str
    scenario_id: str | None = None
    user_id: str | None = None

class AnswerReq(BaseModel):
    value: StrictBool | StrictStr | list[StrictStr]

# ---- Helpers ----
def _session(sid: str) -> TrainingSession:
    sess = SESS.get(sid)
    if not sess:
        raise HTTPException(404, "session not found")
    return sess


def _review(scenario: Scenario) -> dict[str, t.Any]:
    return {
        "items": [
            {"id": it.id, "prompt": it.prompt, "correct": it.correct, "explanation": it.explanation}
            for it in scenario.items
        ],
        "logs": [asdict(e) for e in scenario.logs],
    }


def _reveal(item: Item) -> dict[str, t.Any]:
    return {"correct": item.correct, "explanation": item.explanation}


def _persist_result(sid: str, sess: TrainingSession, res: ScenarioResult) -> None:
    info = SESSION_INFO.get(sid, {})
    rid = str(uuid.uuid4())
    created = utcnow_iso()
    payload = res.to_dict()
    payload.update({
        "id": rid,
        "session_id": sid,
        "user_id": info.get("user_id"),
        "scenario_title": sess.scenario.title,
        "created_at": created,
        "review": _review(sess.scenario),
        "audit_events": list(sess.audit_events),
    })
    metadata = {
        "sessionId": sid,
        "userId": info.get("user_id"),
        "createdAt": created,
        "moduleId": res.module_id,
        "scenarioId": res.scenario_id,
        "percentage": res.percentage,
        "feedbackTier": res.feedback_tier,
    }
    save_result(rid, payload, metadata)
    info["result_id"] = rid
    # finished sessions live on only as stored results
    SESS.pop(sid, None)
    SESSION_INFO.pop(sid, None)
    log.info("result stored id=%s session=%s", rid, sid)


def _snapshot(sid: str, sess: TrainingSession, info: dict[str, t.Any] | None = None) -> dict[str, t.Any]:
    snap = sess.snapshot()
    snap["session_id"] = sid
    snap["result_id"] = (info if info is not None else SESSION_INFO.get(sid, {})).get("result_id")
    return snap

# ---- Health ----
@app.get("/health")
def health():
    return {
        "status": "ok",
        "timer_enabled": config.TIMER_ENABLED,
        "audit_export_enabled": config.AUDIT_EXPORT_ENABLED,
        "active_sessions": len(SESS),
    }

# ---- Catalog ----
@app.get("/modules")
def list_modules():
    scenarios = load_scenarios()
    out = []
    for m in MODULES:
        entry = dict(m)
        entry["scenarios"] = sum(1 for sc in scenarios if sc.module_id == m["id"])
        out.append(entry)
    return {"modules": out}


@app.get("/modules/{module_id}/scenarios")
def list_module_scenarios(module_id: str):
    module = get_module(module_id)
    if not module:
        raise HTTPException(404, "module not found")
    return {"module": module, "scenarios": [sc.summary() for sc in scenarios_for_module(module_id)]}

# ---- Sessions ----
@app.post("/session/start")
def start(req: StartReq):
    if not get_module(req.module_id):
        raise HTTPException(404, "module not found")
    if req.scenario_id:
        try:
            scenario = get_scenario(req.scenario_id)
        except UnknownScenario:
            raise HTTPException(404, "scenario not found")
        if scenario.module_id != req.module_id:
            raise HTTPException(404, "scenario not found in module")
    else:
        choices = scenarios_for_module(req.module_id)
        if not choices:
            raise HTTPException(404, "module has no scenarios")
        scenario = choices[0]

    sid = str(uuid.uuid4())
    SESSION_INFO[sid] = {"user_id": req.user_id, "started_at": utcnow_iso(), "result_id": None}
    sess = TrainingSession(
        scenario,
        progress=JsonProgressStore(req.user_id) if req.user_id else None,
        timer_factory=Countdown if config.TIMER_ENABLED else None,
    )
    sess.on_complete = lambda res: _persist_result(sid, sess, res)
    SESS[sid] = sess
    log.info("session created id=%s scenario=%s user=%s", sid, scenario.id, req.user_id)
    return _snapshot(sid, sess)


@app.post("/session/{sid}/begin")
def begin(sid: str):
    sess = _session(sid)
    info = SESSION_INFO.get(sid, {})
    try:
        sess.start()
    except InvalidTransition as e:
        raise HTTPException(409, str(e))
    return _snapshot(sid, sess, info)


@app.post("/session/{sid}/answer")
def answer(sid: str, req: AnswerReq):
    sess = _session(sid)
    info = SESSION_INFO.get(sid, {})
    try:
        rec = sess.submit_answer(req.value)
    except InvalidTransition as e:
        raise HTTPException(409, str(e))
    except MalformedAnswer as e:
        raise HTTPException(422, e.reason)
    body: dict[str, t.Any] = {"answer": rec.to_dict()}
    if sess.scenario.reveal == "immediate":
        item = next(it for it in sess.items if it.id == rec.item_id)
        body["answer"].update(_reveal(item))
    nxt = sess.current_item
    body["done"] = sess.phase == "RESULTS"
    body["item"] = item_view(nxt) if nxt is not None else None
    body["time_remaining"] = sess.time_remaining
    body["result_id"] = info.get("result_id")
    return body


@app.post("/session/{sid}/pause")
def pause(sid: str):
    sess = _session(sid)
    try:
        sess.pause()
    except InvalidTransition as e:
        raise HTTPException(409, str(e))
    return _snapshot(sid, sess)


@app.post("/session/{sid}/resume")
def resume(sid: str):
    sess = _session(sid)
    try:
        sess.resume()
    except InvalidTransition as e:
        raise HTTPException(409, str(e))
    return _snapshot(sid, sess)


@app.get("/session/{sid}")
def get_session(sid: str):
    return _snapshot(sid, _session(sid))


@app.delete("/session/{sid}")
def abandon(sid: str):
    sess = _session(sid)
    sess.abandon()
    sess.close()
    SESS.pop(sid, None)
    SESSION_INFO.pop(sid, None)
    return {"ok": True}


@app.get("/session/{sid}/result")
def session_result(sid: str):
    sess = SESS.get(sid)
    if sess is not None and sess.phase != "RESULTS":
        raise HTTPException(409, f"result not available in phase {sess.phase}")
    stored = find_result_by_session(sid)
    if not stored:
        raise HTTPException(404, "result not found")
    return stored

# ---- Results ----
@app.get("/results/{result_id}")
def get_result(result_id: str):
    result = load_result(result_id)
    if not result:
        raise HTTPException(404, "result not found")
    return result


@app.get("/results/{result_id}/html")
def get_result_html(result_id: str):
    result = load_result(result_id)
    if not result:
        raise HTTPException(404, "result not found")
    try:
        scenario = get_scenario(str(result.get("scenario_id")))
    except UnknownScenario:
        scenario = None
    return {"html": render_result_html(result, scenario)}


@app.get("/results/{result_id}/audit.json")
def get_audit_json(result_id: str):
    if not config.AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    result = load_result(result_id)
    if not result:
        raise HTTPException(404, "result not found")

    payload = audit_to_json(result.get("audit_events") or [])
    return {"result_id": result_id, **payload}


@app.get("/results/{result_id}/audit.csv")
def get_audit_csv(result_id: str):
    if not config.AUDIT_EXPORT_ENABLED:
        raise HTTPException(404, "audit export disabled")

    result = load_result(result_id)
    if not result:
        raise HTTPException(404, "result not found")

    body = audit_to_csv(result.get("audit_events") or [])
    filename = f"{result_id}_audit.csv"
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename=\"{filename}\""},
    )


@app.delete("/results/{result_id}")
def delete_result_endpoint(result_id: str):
    if not delete_result(result_id):
        raise HTTPException(404, "result not found")
    return {"ok": True}

# ---- Users ----
@app.get("/users/{user_id}/progress")
def user_progress(user_id: str):
    progress = load_progress(user_id)
    return {
        "user_id": user_id,
        "progress": progress.to_dict(),
        "summary": summarize(progress, len(MODULES)),
    }


@app.get("/users/{user_id}/results")
def user_results(user_id: str):
    return {"results": list_results_for_user(user_id)}


@app.get("/users/{user_id}/recommendation")
def user_recommendation(user_id: str, module_id: str = Query(..., description="Module just completed")):
    if not get_module(module_id):
        raise HTTPException(404, "module not found")
    progress = load_progress(user_id)
    latest = next((h for h in reversed(progress.history) if h.module_id == module_id), None)
    if latest is None:
        raise HTTPException(404, "no completed attempt for module")
    return recommendation(module_id, latest.score)
