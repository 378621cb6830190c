"""FastAPI Web application — replay control and state endpoints."""

from __future__ import annotations

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException

from race_replay.feeds.cache import SessionCache
from race_replay.feeds.openf1 import DEFAULT_BASE_URL, OpenF1Client, OpenF1Error
from race_replay.simulation.controller import PlaybackConfig
from race_replay.timeline.parser import ReplayInputError
from race_replay.web.schemas import (
    FetchRequest,
    HealthResponse,
    LoadRequest,
    LoadResponse,
    NotificationsResponse,
    SpeedRequest,
    StateResponse,
)
from race_replay.web.service import ReplayService

load_dotenv()  # loads .env from project root; must run before env vars are consumed

VERSION = "0.1.0"

_DEFAULT_DB = os.environ.get("RACE_REPLAY_DB", "race_replay.db")
_OPENF1_BASE_URL = os.environ.get("OPENF1_BASE_URL", DEFAULT_BASE_URL)
_BASE_INTERVAL_S = float(os.environ.get("RACE_REPLAY_BASE_INTERVAL", "2.0"))

_service: ReplayService | None = None


def get_service() -> ReplayService:
    """Return the process-wide :class:`ReplayService`, creating it on first use."""
    global _service
    if _service is None:
        _service = ReplayService(
            config=PlaybackConfig(base_interval_s=_BASE_INTERVAL_S),
            cache=SessionCache(_DEFAULT_DB),
            client_factory=lambda: OpenF1Client(base_url=_OPENF1_BASE_URL),
        )
    return _service


@asynccontextmanager
async def lifespan(_app: FastAPI):
    global _service
    yield
    if _service is not None:
        _service.close()
        _service = None


# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Race Replay", version=VERSION, lifespan=lifespan)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=VERSION)


@app.post("/api/session/load", response_model=LoadResponse)
def load_session(req: LoadRequest, svc: ReplayService = Depends(get_service)) -> LoadResponse:
    """Load session arrays from the request body and reset playback."""
    try:
        return svc.load(req)
    except ReplayInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.post("/api/session/fetch", response_model=LoadResponse)
def fetch_session(req: FetchRequest, svc: ReplayService = Depends(get_service)) -> LoadResponse:
    """Load an OpenF1 session (cached copy unless ``refresh``) and reset playback."""
    try:
        return svc.fetch(req.session_key, refresh=req.refresh)
    except OpenF1Error as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    except ReplayInputError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


@app.get("/api/state", response_model=StateResponse)
def state(messages: int = 20, svc: ReplayService = Depends(get_service)) -> StateResponse:
    return svc.state(message_limit=max(messages, 0))


@app.post("/api/control/run", response_model=StateResponse)
def run(svc: ReplayService = Depends(get_service)) -> StateResponse:
    svc.controller.set_running(True)
    return svc.state()


@app.post("/api/control/pause", response_model=StateResponse)
def pause(svc: ReplayService = Depends(get_service)) -> StateResponse:
    svc.controller.set_running(False)
    return svc.state()


@app.post("/api/control/toggle", response_model=StateResponse)
def toggle(svc: ReplayService = Depends(get_service)) -> StateResponse:
    svc.controller.toggle_running()
    return svc.state()


@app.post("/api/control/speed", response_model=StateResponse)
def speed(req: SpeedRequest, svc: ReplayService = Depends(get_service)) -> StateResponse:
    try:
        svc.controller.set_speed(req.speed)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return svc.state()


@app.post("/api/control/step", response_model=StateResponse)
def step(svc: ReplayService = Depends(get_service)) -> StateResponse:
    svc.controller.step()
    return svc.state()


@app.post("/api/control/reset", response_model=StateResponse)
def reset(svc: ReplayService = Depends(get_service)) -> StateResponse:
    svc.controller.reset()
    return svc.state()


@app.get("/api/notifications", response_model=NotificationsResponse)
def notifications(after: int = 0, svc: ReplayService = Depends(get_service)) -> NotificationsResponse:
    return NotificationsResponse(notifications=svc.notifications(after_id=after))
