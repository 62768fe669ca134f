"""Gestion des événements Socket.IO (partie, lecture, buzzer, réponses)."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .config_loader import ConfigError, load_config
from .models import Answer, Song
from .persistence import JsonFileGateway, PersistenceGateway
from .progression import GameStateManager
from .settings import settings
from .sockets import sio
from .state import GameMode, state
from .timer import pause_timer, reset_timer, start_timer, stop_timer

logger = logging.getLogger(__name__)

gateway: PersistenceGateway = JsonFileGateway(settings.state_path)


def settle_turn(manager: GameStateManager) -> Optional[Song]:
    """Enchaîne après une chanson terminée (trouvée ou passée).

    - chanson suivante s'il en reste dans la manche;
    - dernière manche terminée: fin de partie;
    - sinon récapitulatif de manche, la première chanson de la manche
      suivante étant préchargée.

    Retourne la chanson à jouer, ou None (récapitulatif, fin de partie).
    """
    if not manager.is_last_song_of_round():
        song = manager.advance_to_next_song()
        if song is not None:
            return song
        # Plus rien à jouer dans cette manche
    if manager.is_last_round():
        manager.set_mode(GameMode.GAME_END)
        return None
    manager.set_mode(GameMode.ROUND_SUMMARY)
    manager.start_next_round()
    return None


def _song_payload(song: Optional[Song]) -> Optional[Dict[str, Any]]:
    return song.model_dump(mode="json") if song else None


def _buzzer_payload() -> Optional[Dict[str, Any]]:
    if state.manager is None or state.buzzer_player_id is None:
        return None
    player = state.manager.config.player_by_id(state.buzzer_player_id)
    if player is None:
        return None
    return {"id": player.id, "name": player.name, "team": player.team}


async def send_current_state(to_sid: Optional[str] = None) -> None:
    manager = state.manager
    await sio.emit("game_state", manager.summary() if manager else None, to=to_sid)
    await sio.emit("track", _song_payload(manager.get_current_song()) if manager else None, to=to_sid)
    await sio.emit("isPlaying", state.is_playing, to=to_sid)
    await sio.emit("timer", {"timer": state.timer, "isPaused": state.is_paused}, to=to_sid)
    await sio.emit("buzzer", _buzzer_payload(), to=to_sid)
    await sio.emit("revealed" if state.revealed else "unrevealed", to=to_sid)


async def _play_song(song: Optional[Song]) -> None:
    state.release_buzzer()
    state.revealed = False
    if song is None:
        state.is_playing = False
        await stop_timer()
        await sio.emit("music_control", {"action": "stop"})
        await send_current_state()
        return

    state.is_playing = True
    await send_current_state()
    await sio.emit("music_control", {"action": "play"})
    await start_timer()


async def _after_turn() -> None:
    manager = state.manager
    song = settle_turn(manager)
    if manager.mode is GameMode.PLAYING:
        await _play_song(song)
        return

    state.is_playing = False
    state.release_buzzer()
    await stop_timer()
    await sio.emit("music_control", {"action": "stop"})
    await send_current_state()
    if manager.mode is GameMode.GAME_END:
        await sio.emit("game_end", {"ranking": manager.ranking(), "teams": manager.team_scores()})
    else:
        await sio.emit("round_summary", {"ranking": manager.ranking(), "teams": manager.team_scores()})


async def begin_game(manager: GameStateManager) -> None:
    state.manager = manager
    state.is_playing = False
    state.revealed = False
    state.release_buzzer()
    await reset_timer()
    await send_current_state()


@sio.event
async def start_game(sid: str, source: str) -> None:
    """Charge une configuration (chemin local ou URL) et démarre une partie."""
    try:
        config = load_config(source)
    except ConfigError as e:
        logger.warning("Configuration refusée: %s", e)
        await sio.emit("error", {"message": str(e)}, to=sid)
        return
    await begin_game(GameStateManager.start(config, gateway))


@sio.event
async def resume_game(sid: str) -> None:
    manager = GameStateManager.resume(gateway)
    if manager is None:
        await sio.emit("error", {"message": "Aucune partie sauvegardée"}, to=sid)
        return
    await begin_game(manager)


@sio.event
async def play(_sid: str, _position: Optional[int] = None) -> None:
    if state.manager and state.manager.get_current_song():
        state.is_playing = True
        await sio.emit("isPlaying", state.is_playing)
        await sio.emit("music_control", {"action": "play"})
        if state.buzzer_player_id is None:
            await start_timer()


@sio.event
async def pause(_sid: str, _position: Optional[int] = None) -> None:
    state.is_playing = False
    await sio.emit("isPlaying", state.is_playing)
    await sio.emit("music_control", {"action": "pause"})
    await pause_timer()


@sio.on("next")
async def on_next(_sid: str) -> None:
    """Passe la chanson courante (personne n'a trouvé)."""
    if not state.manager or state.manager.mode is not GameMode.PLAYING:
        return
    await _after_turn()


@sio.event
async def end_round(_sid: str) -> None:
    """La prochaine chanson révélée sera la dernière de la manche."""
    if not state.manager or state.manager.mode is not GameMode.PLAYING:
        return
    await _play_song(state.manager.end_round_early())


@sio.event
async def dismiss_summary(_sid: str) -> None:
    manager = state.manager
    if not manager or manager.mode is not GameMode.ROUND_SUMMARY:
        return
    # Le récapitulatif ne compte pas dans le temps de réponse
    manager.reset_turn_timer()
    manager.set_mode(GameMode.PLAYING)
    await _play_song(manager.get_current_song())


@sio.event
async def reveal(_sid: str) -> None:
    state.revealed = True
    await sio.emit("revealed")
    await sio.emit("music_control", {"action": "play"})


@sio.event
async def admin_connected(sid: str) -> None:
    await send_current_state(to_sid=sid)


@sio.event
async def buzz(_sid: str, data: Dict[str, Any] | int) -> None:
    """Premier buzzer: les suivants sont ignorés jusqu'à la fin du tour."""
    manager = state.manager
    if not manager or manager.mode is not GameMode.PLAYING or state.buzzer_player_id is not None:
        return
    if manager.get_current_song() is None:
        logger.warning("Buzzer ignoré: aucune chanson en cours")
        return

    raw_id = data.get("player_id") if isinstance(data, dict) else data
    try:
        player = manager.config.player_by_id(int(raw_id))
    except (TypeError, ValueError):
        player = None
    if player is None:
        logger.warning("Buzzer d'un joueur inconnu: %r", raw_id)
        return

    # Horodatage côté serveur: seul arbitre du premier buzzer
    state.buzzer_player_id = player.id
    state.buzzer_timestamp = manager.clock()
    state.is_playing = False

    await sio.emit("buzzer", _buzzer_payload())
    await sio.emit("isPlaying", state.is_playing)
    await sio.emit("music_control", {"action": "pause"})
    await pause_timer()


@sio.event
async def judge_answer(sid: str, data: Dict[str, Any]) -> None:
    """Verdict de l'animateur sur la réponse du joueur qui a buzzé."""
    manager = state.manager
    if not manager or state.buzzer_player_id is None:
        return
    if not isinstance(data, dict):
        logger.warning("Verdict illisible: %r", data)
        return
    player = manager.config.player_by_id(state.buzzer_player_id)
    answer = Answer(
        song_name=bool(data.get("song_name")),
        artist=bool(data.get("artist")),
        album=bool(data.get("album")),
    )
    if player is None or not answer.any_correct:
        await incorrect_answer(sid)
        return

    points = manager.record_answer(player, answer, state.buzzer_timestamp)
    if points is None:
        # Réponse ignorée: le tour reste ouvert
        state.release_buzzer()
        await sio.emit("buzzer", None)
        return

    await sio.emit(
        "answer_result",
        {
            "correct": True,
            "points": points,
            "player": _buzzer_payload(),
            "song": _song_payload(manager.get_current_song()),
        },
    )
    await sio.emit("scores_updated", {"scores": manager.summary()["scores"], "teams": manager.team_scores()})
    await _after_turn()


@sio.event
async def incorrect_answer(_sid: str) -> None:
    if state.buzzer_player_id is None:
        return

    await sio.emit("answer_result", {"correct": False, "points": 0, "player": _buzzer_payload()})

    state.is_playing = True
    await sio.emit("isPlaying", state.is_playing)
    await sio.emit("music_control", {"action": "resume"})

    # Le buzzer est rendu aux autres joueurs
    state.release_buzzer()
    await sio.emit("buzzer", None)

    if not state.revealed:
        await start_timer()


@sio.event
async def reset_game(_sid: Optional[str] = None) -> None:
    """Abandon de la partie: état effacé, sauvegarde supprimée."""
    await stop_timer()
    gateway.clear()
    state.manager = None
    state.release_buzzer()
    state.is_playing = False
    state.revealed = False
    await sio.emit("music_control", {"action": "stop"})
    await send_current_state()


@sio.on("get_ranking")
async def get_ranking_event(sid: str) -> None:
    if not state.manager:
        return
    await sio.emit(
        "ranking",
        {"ranking": state.manager.ranking(), "teams": state.manager.team_scores()},
        to=sid,
    )
