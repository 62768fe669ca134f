"""Etat de progression d'une partie et état applicatif centralisé pour SongQuiz."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from .models import GameConfig
from .sequence import SequencePlan, plan_from_dict

if TYPE_CHECKING:
    from .progression import GameStateManager


class RoundPhase(str, Enum):
    IN_PROGRESS = "in_progress"
    MANUALLY_ENDED = "manually_ended"


class GameMode(str, Enum):
    PLAYING = "playing"
    ROUND_SUMMARY = "round_summary"
    GAME_END = "game_end"


@dataclass
class ProgressionState:
    config: GameConfig
    plan: SequencePlan
    current_round: int = 0
    current_song_index: int = 0
    round_phase: RoundPhase = RoundPhase.IN_PROGRESS
    player_scores: Dict[int, int] = field(default_factory=dict)
    song_start_timestamp: float = 0.0
    mode: GameMode = GameMode.PLAYING

    def to_dict(self) -> Dict[str, Any]:
        return {
            "config": self.config.model_dump(mode="json"),
            "plan": self.plan.to_dict(),
            "current_round": self.current_round,
            "current_song_index": self.current_song_index,
            "round_phase": self.round_phase.value,
            # clés JSON: toujours des chaînes
            "player_scores": {str(pid): score for pid, score in self.player_scores.items()},
            "song_start_timestamp": self.song_start_timestamp,
            "mode": self.mode.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProgressionState":
        return cls(
            config=GameConfig.model_validate(data["config"]),
            plan=plan_from_dict(data["plan"]),
            current_round=int(data.get("current_round", 0)),
            current_song_index=int(data.get("current_song_index", 0)),
            round_phase=RoundPhase(data.get("round_phase", RoundPhase.IN_PROGRESS.value)),
            player_scores={int(pid): int(score) for pid, score in (data.get("player_scores") or {}).items()},
            song_start_timestamp=float(data.get("song_start_timestamp", 0.0)),
            mode=GameMode(data.get("mode", GameMode.PLAYING.value)),
        )


@dataclass
class AppState:
    # Partie en cours
    manager: Optional["GameStateManager"] = None

    # Timer/buzzer
    timer: int = 30
    timer_task: Optional[asyncio.Task[Any]] = None
    is_paused: bool = False
    buzzer_player_id: Optional[int] = None
    buzzer_timestamp: Optional[float] = None

    # Lecture
    is_playing: bool = False
    revealed: bool = False

    def release_buzzer(self) -> None:
        self.buzzer_player_id = None
        self.buzzer_timestamp = None


# instance globale unique
state = AppState()
