from __future__ import annotations

import logging
import os
import re
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Tuple

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from patternbrain import EngineConfig, GameContext, Move, PatternBrainError, PatternEngine, StateStorage
from patternbrain.sequences import movement_analytics

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

SESSION_ID_PATTERN = r"^[A-Za-z0-9_-]{1,64}$"


class SessionRegistry:
    """One engine per session, each behind its own lock."""

    def __init__(self, config: EngineConfig):
        self.config = config
        self._sessions: Dict[str, Tuple[PatternEngine, threading.Lock]] = {}
        self._lock = threading.Lock()

    @contextmanager
    def session(self, sid: str) -> Iterator[PatternEngine]:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                entry = (PatternEngine(self.config), threading.Lock())
                self._sessions[sid] = entry
                logger.info("Opened session %s", sid)
        engine, lock = entry
        with lock:
            yield engine

    def drop(self, sid: str) -> bool:
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def ids(self) -> List[str]:
        with self._lock:
            return sorted(self._sessions)


class ContextModel(BaseModel):
    player_score: int = 0
    ai_score: int = 0
    moves_count: int = 0
    time_remaining: float = 60.0
    difficulty: float = 0.5


class MoveReq(BaseModel):
    position: List[int] = Field(..., min_length=2, max_length=2)
    timestamp: float
    reaction_time: float
    context: ContextModel = Field(default_factory=ContextModel)
    outcome: str = "success"


class PredictReq(BaseModel):
    context: ContextModel = Field(default_factory=ContextModel)
    count: int = Field(3, ge=0)
    occupied: List[List[int]] = Field(default_factory=list)


def _cells(snapshot: Dict[Tuple[int, int], Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [{"position": [r, c], **stats} for (r, c), stats in snapshot.items()]


def create_app(state_dir: Optional[str] = None, config: Optional[EngineConfig] = None) -> FastAPI:
    config = config or EngineConfig.from_env()
    registry = SessionRegistry(config)
    storage = StateStorage(state_dir or os.getenv("STATE_DIR", "./patternbrain_state"))

    app = FastAPI(title="PatternBrain API")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in os.getenv("ALLOW_ORIGINS", "*").split(",") if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.registry = registry
    app.state.storage = storage

    @app.exception_handler(PatternBrainError)
    async def engine_error(request: Request, exc: PatternBrainError):
        logger.warning("Request rejected: %s", exc)
        return JSONResponse(status_code=422, content=exc.to_dict())

    def check_sid(sid: str) -> str:
        if not re.match(SESSION_ID_PATTERN, sid):
            raise HTTPException(status_code=400, detail="invalid session id")
        return sid

    @app.get("/healthz")
    def healthz():
        return {"status": "healthy", "sessions": len(registry.ids())}

    @app.post("/sessions/{sid}/moves")
    def record(sid: str, req: MoveReq):
        move = Move.from_dict(req.model_dump()).validate(config.board_size)
        with registry.session(check_sid(sid)) as engine:
            engine.record(move)
            return {"ok": True, "recorded": len(engine.history())}

    @app.get("/sessions/{sid}/heatmap")
    def heatmap(sid: str):
        with registry.session(check_sid(sid)) as engine:
            return {
                "cells": _cells(engine.heatmap()),
                "grid": engine.position_heatmap.intensity_grid(),
                "analytics": engine.position_heatmap.analytics(),
                "movement": movement_analytics(engine.history()),
            }

    @app.get("/sessions/{sid}/patterns")
    def patterns(sid: str):
        with registry.session(check_sid(sid)) as engine:
            return {"patterns": [p.to_dict() for p in engine.patterns()]}

    @app.get("/sessions/{sid}/metrics")
    def metrics(sid: str):
        with registry.session(check_sid(sid)) as engine:
            return engine.metrics().to_dict()

    @app.get("/sessions/{sid}/profile")
    def profile(sid: str):
        with registry.session(check_sid(sid)) as engine:
            prof = engine.profile()
            prof["favorite_positions"] = [list(p) for p in prof["favorite_positions"]]
            return prof

    @app.post("/sessions/{sid}/predict")
    def predict(sid: str, req: PredictReq):
        ctx = GameContext.from_dict(req.context.model_dump())
        occupied = [tuple(p[:2]) for p in req.occupied if len(p) >= 2]
        with registry.session(check_sid(sid)) as engine:
            candidates = engine.predict(ctx, req.count, occupied=occupied)
            return {"candidates": [c.to_dict() for c in candidates]}

    @app.post("/sessions/{sid}/reset")
    def reset(sid: str):
        with registry.session(check_sid(sid)) as engine:
            engine.reset()
        return {"ok": True}

    @app.get("/sessions/{sid}/export")
    def export(sid: str):
        with registry.session(check_sid(sid)) as engine:
            return engine.export_state()

    @app.post("/sessions/{sid}/import")
    def import_state(sid: str, blob: Dict[str, Any]):
        with registry.session(check_sid(sid)) as engine:
            engine.import_state(blob)
            return {"ok": True, "recorded": len(engine.history())}

    @app.post("/sessions/{sid}/save")
    def save(sid: str):
        with registry.session(check_sid(sid)) as engine:
            storage.save_session(sid, engine.export_state())
        return {"ok": True}

    @app.post("/sessions/{sid}/load")
    def load(sid: str):
        blob = storage.load_session(check_sid(sid))
        if blob is None:
            raise HTTPException(status_code=404, detail="no saved state for session")
        with registry.session(sid) as engine:
            engine.import_state(blob)
            return {"ok": True, "recorded": len(engine.history())}

    @app.delete("/sessions/{sid}")
    def close(sid: str):
        return {"ok": registry.drop(check_sid(sid))}

    return app


app = create_app()
