"""Modèles de configuration d'une partie (Pydantic) et réponse d'un joueur.

Une configuration est figée une fois chargée: toutes les classes sont
`frozen`, les listes de chansons ne sont jamais modifiées en place.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RoundEndMode(str, Enum):
    FIXED = "fixed"  # nombre de chansons par manche connu à l'avance
    MANUAL = "manual"  # l'animateur clôt la manche


class SelectionMode(str, Enum):
    RANDOM = "random"
    SEQUENTIAL = "sequential"
    WEIGHTED = "weighted"


class WeightMethod(str, Enum):
    CUSTOM = "custom"  # champ `weight` de chaque chanson
    SCORE = "score"  # points de la chanson
    EQUAL = "equal"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class GameSettings(_Frozen):
    name: str
    rounds: int = Field(ge=1)
    round_end_mode: RoundEndMode = RoundEndMode.FIXED
    songs_per_round: int = Field(ge=1)


class SelectionRules(_Frozen):
    mode: SelectionMode = SelectionMode.RANDOM
    allow_duplicates: bool = False
    weight_method: WeightMethod = WeightMethod.CUSTOM


class ScoringRules(_Frozen):
    title_correct: float = 0.0
    artist_correct: float = 0.0
    album_bonus: float = 0.0
    speed_bonus: float = 0.0
    speed_threshold: Optional[float] = None  # secondes
    time_limit: Optional[int] = None  # durée du compte à rebours (secondes)


class Player(_Frozen):
    id: int
    name: str
    avatar: Optional[str] = None
    team: Optional[str] = None


class Song(_Frozen):
    id: int
    title: str
    artist: str
    album: str = ""
    path: str = ""
    cover: str = ""
    score: float = 0.0
    weight: float = Field(default=1.0, ge=0)
    duration: float = 0.0
    chorus_time: Optional[float] = None
    tags: List[str] = Field(default_factory=list)


class SpecialSong(_Frozen):
    song_id: int
    round: int  # 1-based
    position: int  # 1-based, -1 = dernière chanson de la manche


class PlaybackSettings(_Frozen):
    clip_duration: float = -1  # -1: chanson complète
    start_position: float = -1  # -1: position aléatoire
    fade_duration: float = 0
    volume: float = Field(default=1.0, ge=0, le=1)


class UISettings(_Frozen):
    theme_color: str = ""
    show_cover: bool = True
    show_lyrics: bool = False
    show_leaderboard: bool = True


class GameConfig(_Frozen):
    game: GameSettings
    selection_rules: SelectionRules = Field(default_factory=SelectionRules)
    scoring: ScoringRules = Field(default_factory=ScoringRules)
    players: List[Player] = Field(default_factory=list)
    songs: List[Song] = Field(default_factory=list)
    special_songs: List[SpecialSong] = Field(default_factory=list)
    playback: PlaybackSettings = Field(default_factory=PlaybackSettings)
    ui: UISettings = Field(default_factory=UISettings)

    @property
    def is_manual(self) -> bool:
        return self.game.round_end_mode is RoundEndMode.MANUAL

    def song_by_id(self, song_id: int) -> Optional[Song]:
        for song in self.songs:
            if song.id == song_id:
                return song
        return None

    def player_by_id(self, player_id: int) -> Optional[Player]:
        for player in self.players:
            if player.id == player_id:
                return player
        return None

    def initial_scores(self) -> Dict[int, int]:
        return {player.id: 0 for player in self.players}


@dataclass(frozen=True)
class Answer:
    """Facettes correctement trouvées par le joueur qui a buzzé."""

    song_name: bool = False
    artist: bool = False
    album: bool = False

    @property
    def any_correct(self) -> bool:
        return self.song_name or self.artist or self.album
