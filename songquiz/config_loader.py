"""Chargement et validation de la configuration d'une partie.

La configuration est un document JSON, local ou servi en http(s). Les
contrôles que le schéma Pydantic ne couvre pas (unicité des identifiants,
références des chansons spéciales, bornes des manches et positions) sont
faits ici: le moteur de jeu ne reçoit que des configurations valides.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Union

import requests
from pydantic import ValidationError

from .models import GameConfig

logger = logging.getLogger(__name__)


class ConfigError(ValueError):
    """Configuration de partie rejetée."""


def is_remote(source: str) -> bool:
    return source.startswith(("http://", "https://"))


def fetch_config_data(url: str) -> Dict[str, Any]:
    """Récupère un document de configuration JSON distant."""
    try:
        resp = requests.get(url, timeout=10)
        resp.raise_for_status()
        return resp.json()
    except (requests.RequestException, ValueError) as e:
        logger.error("Erreur lors du chargement de %s: %s", url, e)
        raise ConfigError(f"Configuration distante indisponible: {url}") from e


def read_config_data(path: Union[str, Path]) -> Dict[str, Any]:
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigError(f"Fichier de configuration illisible: {path}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"JSON invalide dans {path}: {e}") from e


def validate_config(config: GameConfig) -> None:
    song_ids = set()
    for song in config.songs:
        if song.id in song_ids:
            raise ConfigError(f"Identifiant de chanson en double: {song.id}")
        song_ids.add(song.id)

    player_ids = set()
    for player in config.players:
        if player.id in player_ids:
            raise ConfigError(f"Identifiant de joueur en double: {player.id}")
        player_ids.add(player.id)

    game = config.game
    for special in config.special_songs:
        if special.song_id not in song_ids:
            raise ConfigError(f"Chanson spéciale inconnue: {special.song_id}")
        if not 1 <= special.round <= game.rounds:
            raise ConfigError(
                f"Manche {special.round} de la chanson spéciale {special.song_id} hors limites (1-{game.rounds})"
            )
        if special.position == -1:
            continue
        if config.is_manual:
            if special.position < 1:
                raise ConfigError(f"Position {special.position} invalide (>= 1 ou -1)")
        elif not 1 <= special.position <= game.songs_per_round:
            raise ConfigError(
                f"Position {special.position} hors limites (1-{game.songs_per_round} ou -1)"
            )


def parse_config(data: Any) -> GameConfig:
    """Construit et valide une `GameConfig` à partir d'un document décodé."""
    try:
        config = GameConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Configuration invalide: {e}") from e
    validate_config(config)
    return config


def load_config(source: Union[str, Path]) -> GameConfig:
    """Charge la configuration depuis un chemin local ou une URL http(s)."""
    source = str(source)
    data = fetch_config_data(source) if is_remote(source) else read_config_data(source)
    config = parse_config(data)
    logger.info(
        "Configuration '%s' chargée: %d chanson(s), %d joueur(s), %d manche(s)",
        config.game.name,
        len(config.songs),
        len(config.players),
        config.game.rounds,
    )
    return config
