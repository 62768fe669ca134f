"""Compte à rebours d'un tour (start/pause/stop/reset) et diffusion Socket.IO."""

from __future__ import annotations

import asyncio
import logging

from .settings import settings
from .sockets import sio
from .state import state

logger = logging.getLogger(__name__)


def turn_duration() -> int:
    """Durée d'un tour: `scoring.time_limit` de la partie, sinon la valeur par défaut."""
    if state.manager and state.manager.config.scoring.time_limit:
        return state.manager.config.scoring.time_limit
    return settings.DEFAULT_TIME_LIMIT


async def emit_timer() -> None:
    await sio.emit("timer", {"timer": state.timer, "isPaused": state.is_paused})


async def start_timer() -> None:
    await stop_timer()
    state.timer = turn_duration()
    state.is_paused = False
    await emit_timer()

    async def timer_loop() -> None:
        while state.timer > 0 and not state.is_paused:
            await asyncio.sleep(1)
            if state.is_paused:
                break
            state.timer -= 1
            await emit_timer()
            if state.timer == 0:
                await handle_timer_expired()
                break

    state.timer_task = asyncio.create_task(timer_loop())


async def pause_timer() -> None:
    state.is_paused = True
    await emit_timer()
    await stop_timer()


async def stop_timer() -> None:
    if state.timer_task and not state.timer_task.done():
        state.timer_task.cancel()
        try:
            await state.timer_task
        except asyncio.CancelledError:
            pass
    state.timer_task = None


async def reset_timer() -> None:
    await stop_timer()
    state.timer = turn_duration()
    state.is_paused = False
    await emit_timer()


async def handle_timer_expired() -> None:
    """Temps écoulé: la musique s'arrête et le buzzer est libéré."""
    logger.info("Temps écoulé")
    state.is_playing = False
    state.release_buzzer()
    await sio.emit("isPlaying", state.is_playing)
    await sio.emit("music_control", {"action": "pause"})
    await sio.emit("buzzer", None)
