"""Calcul des points d'une réponse et classement des joueurs."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Any, Dict, List, Mapping, Sequence

from .models import Answer, Player, ScoringRules, Song


def calculate_score(answer: Answer, answer_time: float, song: Song, scoring: ScoringRules) -> int:
    """Points gagnés pour `answer`, donnée `answer_time` secondes après le début de la chanson.

    Titre et artiste rapportent une fraction des points de la chanson, l'album
    un bonus fixe. Le bonus de rapidité ne s'ajoute qu'à une réponse ayant au
    moins une facette correcte.
    """
    if not answer.any_correct:
        return 0

    score = 0.0
    if answer.song_name:
        score += song.score * scoring.title_correct
    if answer.artist:
        score += song.score * scoring.artist_correct
    if answer.album:
        score += scoring.album_bonus
    if scoring.speed_threshold and answer_time <= scoring.speed_threshold:
        score += scoring.speed_bonus
    # arrondi au plus proche, demi vers le haut
    return math.floor(score + 0.5)


def rank_players(players: Sequence[Player], scores: Mapping[int, int]) -> List[Dict[str, Any]]:
    # tri stable: à égalité, l'ordre de la configuration est conservé
    ordered = sorted(players, key=lambda p: scores.get(p.id, 0), reverse=True)
    return [
        {
            "rank": index + 1,
            "id": player.id,
            "name": player.name,
            "team": player.team,
            "avatar": player.avatar,
            "score": scores.get(player.id, 0),
        }
        for index, player in enumerate(ordered)
    ]


def team_scores(players: Sequence[Player], scores: Mapping[int, int]) -> Dict[str, int]:
    totals: Dict[str, int] = defaultdict(int)
    for player in players:
        if player.team:
            totals[player.team] += scores.get(player.id, 0)
    return dict(totals)
