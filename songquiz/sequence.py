"""Génération de la séquence de chansons d'une partie.

- Mode `fixed`: toutes les manches sont tirées à l'avance (`FixedPlan`).
- Mode `manual`: une pioche commune est préparée (`ManualPlan`); les chansons
  spéciales sont résolues au fil du jeu, selon la position dans la manche.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union

from .models import GameConfig, SelectionMode, SelectionRules, Song, WeightMethod

logger = logging.getLogger(__name__)

LAST_POSITION = -1


@dataclass
class FixedPlan:
    rounds: List[List[Song]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": "fixed",
            "rounds": [[song.model_dump(mode="json") for song in songs] for songs in self.rounds],
        }


@dataclass
class ManualPlan:
    pool: List[Song] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": "manual", "pool": [song.model_dump(mode="json") for song in self.pool]}


SequencePlan = Union[FixedPlan, ManualPlan]


def plan_from_dict(data: Dict[str, Any]) -> SequencePlan:
    """Reconstruit un plan sérialisé par `to_dict` (chansons stockées par valeur)."""
    kind = data.get("kind")
    if kind == "fixed":
        return FixedPlan(rounds=[[Song.model_validate(s) for s in songs] for songs in data.get("rounds", [])])
    if kind == "manual":
        return ManualPlan(pool=[Song.model_validate(s) for s in data.get("pool", [])])
    raise ValueError(f"Type de plan inconnu: {kind!r}")


def get_special_song(config: GameConfig, round_index: int, position: int) -> Optional[Song]:
    """Chanson épinglée à `position` (1-based, ou -1) de la manche `round_index` (0-based)."""
    for special in config.special_songs:
        if special.round == round_index + 1 and special.position == position:
            return config.song_by_id(special.song_id)
    return None


def _weight(song: Song, method: WeightMethod) -> float:
    if method is WeightMethod.SCORE:
        return song.score
    if method is WeightMethod.EQUAL:
        return 1.0
    return song.weight


def select_weighted_song(
    songs: Sequence[Song],
    method: WeightMethod = WeightMethod.CUSTOM,
    rng: Optional[random.Random] = None,
) -> Optional[Song]:
    if not songs:
        return None
    rng = rng or random
    weights = [_weight(song, method) for song in songs]
    total = sum(weights)
    if total <= 0:
        # Aucun poids exploitable: tirage uniforme
        return rng.choice(songs)

    remaining = rng.uniform(0, total)
    for song, weight in zip(songs, weights):
        if weight <= 0:
            continue
        remaining -= weight
        if remaining <= 0:
            return song
    return songs[-1]


def select_song(
    songs: Sequence[Song],
    rules: SelectionRules,
    rng: Optional[random.Random] = None,
) -> Optional[Song]:
    """Choisit une chanson dans `songs` selon la règle de sélection."""
    if not songs:
        return None
    if rules.mode is SelectionMode.RANDOM:
        return (rng or random).choice(songs)
    if rules.mode is SelectionMode.WEIGHTED:
        return select_weighted_song(songs, rules.weight_method, rng)
    return songs[0]


def _draw_pool(config: GameConfig) -> List[Song]:
    special_ids = {special.song_id for special in config.special_songs}
    return [song for song in config.songs if song.id not in special_ids]


def _ordered_pool(pool: List[Song], rules: SelectionRules, rng: Optional[random.Random]) -> List[Song]:
    ordered: List[Song] = []
    remaining = list(pool)
    while remaining:
        song = select_song(remaining, rules, rng)
        ordered.append(song)
        remaining.remove(song)
    return ordered


def generate_song_sequence(config: GameConfig, rng: Optional[random.Random] = None) -> SequencePlan:
    """Prépare la séquence de la partie.

    En mode `manual` la pioche est rendue à plat, dans l'ordre des tirages de
    la règle de sélection (`sequential` conserve l'ordre de la configuration).
    En mode `fixed` chaque manche reçoit `songs_per_round` emplacements; une
    chanson tirée est retirée de la pioche, qui n'est jamais reconstituée.
    """
    pool = _draw_pool(config)
    rules = config.selection_rules

    if config.is_manual:
        return ManualPlan(pool=_ordered_pool(pool, rules, rng))

    songs_needed = config.game.songs_per_round
    rounds: List[List[Song]] = []
    for round_index in range(config.game.rounds):
        round_songs: List[Song] = []
        for position in range(1, songs_needed + 1):
            special = get_special_song(config, round_index, position)
            if special is None and position == songs_needed:
                special = get_special_song(config, round_index, LAST_POSITION)
            if special is not None:
                round_songs.append(special)
                continue

            selected = select_song(pool, rules, rng)
            if selected is None:
                logger.warning(
                    "Pioche vide: manche %d, position %d laissée vide", round_index + 1, position
                )
                continue
            round_songs.append(selected)
            pool.remove(selected)
        rounds.append(round_songs)

    return FixedPlan(rounds=rounds)
