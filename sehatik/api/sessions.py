"""
sehatik/api/sessions.py
========================
Self-Check Session API — Sehatik

Responsibility:
    - Expose the conversation engine over HTTP under /api/v1
    - Hold self-check flows in memory, keyed by a random session id
    - Translate unknown session ids into 404s

Endpoints:
    POST   /api/v1/sessions                          → create a flow
    GET    /api/v1/sessions/{id}                     → snapshot
    POST   /api/v1/sessions/{id}/steps/next          → start the next step
    POST   /api/v1/sessions/{id}/steps/{step_id}     → start a given step
    POST   /api/v1/sessions/{id}/answers             → quick reply
    POST   /api/v1/sessions/{id}/clarifications      → free-text side question
    GET    /api/v1/sessions/{id}/risk                → risk for answers so far
    POST   /api/v1/sessions/{id}/finish              → final risk result
    DELETE /api/v1/sessions/{id}                     → reset and drop

Sessions are ephemeral: nothing is written to disk and a restart forgets
every flow. A flow untouched for SESSION_IDLE_TTL_S seconds is reset and
dropped, and at most MAX_SESSIONS flows are held (least recently used
goes first). Request bodies are never logged.
"""

import logging
import os
import time
import uuid
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field

from sehatik.clarify.completion import build_default_completion
from sehatik.clarify.handler import ClarificationHandler
from sehatik.engine.flow import SelfCheckFlow
from sehatik.risk.scorer import assess

logger = logging.getLogger("sehatik.api")


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Sehatik Self-Check",
    description="Guided breast self-examination conversation engine.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Idle sessions are dropped after this many seconds
SESSION_IDLE_TTL_S: float = float(os.environ.get("SEHATIK_SESSION_TTL", "1800"))
MAX_SESSIONS: int = int(os.environ.get("SEHATIK_MAX_SESSIONS", "1000"))

_flows: dict[str, SelfCheckFlow] = {}
_last_seen: dict[str, float] = {}
_clarifier: ClarificationHandler | None = None


def get_clarifier() -> ClarificationHandler:
    """Shared clarification handler, built from the environment on first use."""
    global _clarifier
    if _clarifier is None:
        _clarifier = ClarificationHandler(build_default_completion())
    return _clarifier


def _now() -> float:
    return time.monotonic()


def _drop(session_id: str) -> SelfCheckFlow | None:
    _last_seen.pop(session_id, None)
    flow = _flows.pop(session_id, None)
    if flow is not None:
        flow.reset()
    return flow


def _evict_idle(now: float, reserve: int = 0) -> None:
    """
    Drop expired flows, then the least recently used ones until ``reserve``
    more fit under MAX_SESSIONS.
    """
    expired = [sid for sid, seen in _last_seen.items() if now - seen > SESSION_IDLE_TTL_S]
    for session_id in expired:
        _drop(session_id)

    overflow = len(_flows) + reserve - MAX_SESSIONS
    if overflow > 0:
        oldest = sorted(_last_seen, key=_last_seen.__getitem__)[:overflow]
        for session_id in oldest:
            _drop(session_id)
    else:
        oldest = []

    if expired or oldest:
        logger.info(
            "Evicted %d idle and %d surplus session(s) (%d active).",
            len(expired),
            len(oldest),
            len(_flows),
        )


def _get_flow(session_id: str) -> SelfCheckFlow:
    now = _now()
    _evict_idle(now)
    flow = _flows.get(session_id)
    if flow is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    _last_seen[session_id] = now
    return flow


def _snapshot(session_id: str, flow: SelfCheckFlow) -> dict[str, Any]:
    return {
        "session_id": session_id,
        **flow.session.snapshot(),
        "progress": flow.progress(),
        "finished": flow.is_finished,
    }


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------


class AnswerRequest(BaseModel):
    question_id: str
    value: str
    label_key: str


class ClarificationRequest(BaseModel):
    text: str = Field(..., min_length=1, max_length=2000)
    language: str = "fr"


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.post("/api/v1/sessions", status_code=201)
async def create_session():
    now = _now()
    _evict_idle(now, reserve=1)
    session_id = uuid.uuid4().hex
    _flows[session_id] = SelfCheckFlow(clarifier=get_clarifier())
    _last_seen[session_id] = now
    logger.info("Session created (%d active).", len(_flows))
    return JSONResponse(status_code=201, content=_snapshot(session_id, _flows[session_id]))


@app.get("/api/v1/sessions/{session_id}")
async def get_session(session_id: str):
    return _snapshot(session_id, _get_flow(session_id))


@app.post("/api/v1/sessions/{session_id}/steps/next")
async def start_next_step(session_id: str):
    flow = _get_flow(session_id)
    started = flow.next_step()
    return {"started": started, **_snapshot(session_id, flow)}


@app.post("/api/v1/sessions/{session_id}/steps/{step_id}")
async def start_step(session_id: str, step_id: str):
    flow = _get_flow(session_id)
    started = flow.start_step(step_id)
    return {"started": started, **_snapshot(session_id, flow)}


@app.post("/api/v1/sessions/{session_id}/answers")
async def submit_answer(session_id: str, body: AnswerRequest):
    flow = _get_flow(session_id)
    accepted = flow.session.submit_answer(body.question_id, body.value, body.label_key)
    return {"accepted": accepted, **_snapshot(session_id, flow)}


@app.post("/api/v1/sessions/{session_id}/clarifications")
async def clarify(session_id: str, body: ClarificationRequest):
    flow = _get_flow(session_id)
    bubble = await flow.session.clarify(body.text, body.language)
    return {**bubble.to_dict(), "display_text": flow.session.render(bubble)}


@app.get("/api/v1/sessions/{session_id}/risk")
async def get_risk(session_id: str):
    flow = _get_flow(session_id)
    return assess(flow.current_answers()).to_dict()


@app.post("/api/v1/sessions/{session_id}/finish")
async def finish(session_id: str):
    flow = _get_flow(session_id)
    return flow.finish().to_dict()


@app.delete("/api/v1/sessions/{session_id}", status_code=204)
async def delete_session(session_id: str):
    if _drop(session_id) is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    logger.info("Session dropped (%d active).", len(_flows))
    return Response(status_code=204)
