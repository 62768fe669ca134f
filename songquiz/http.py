"""Endpoints HTTP (FastAPI): état de la partie, scores et démarrage."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from .config_loader import ConfigError, parse_config
from . import events
from .progression import GameStateManager
from .state import state


def _require_manager() -> GameStateManager:
    if state.manager is None:
        raise HTTPException(status_code=404, detail="Aucune partie en cours")
    return state.manager


def create_http_app() -> FastAPI:
    app = FastAPI(title="SongQuiz")

    @app.get("/")
    async def root() -> Dict[str, Any]:
        return {"ok": True, "service": "songquiz", "game": state.manager is not None}

    @app.get("/api/state")
    async def get_state() -> JSONResponse:
        return JSONResponse(_require_manager().summary())

    @app.get("/api/scores")
    async def get_scores() -> JSONResponse:
        manager = _require_manager()
        return JSONResponse({"scores": manager.summary()["scores"], "teams": manager.team_scores()})

    @app.get("/api/ranking")
    async def get_ranking() -> JSONResponse:
        return JSONResponse(_require_manager().ranking())

    @app.post("/api/game", status_code=201)
    async def create_game(payload: Dict[str, Any]) -> JSONResponse:
        try:
            config = parse_config(payload)
        except ConfigError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        manager = GameStateManager.start(config, events.gateway)
        await events.begin_game(manager)
        return JSONResponse(manager.summary(), status_code=201)

    @app.delete("/api/game")
    async def delete_game() -> Dict[str, bool]:
        await events.reset_game()
        return {"ok": True}

    return app
