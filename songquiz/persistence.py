"""Sauvegarde de l'état de progression.

Le moteur de jeu ne fait aucune I/O lui-même: il appelle une passerelle
(`save` / `load` / `clear`). Deux implémentations:
- `JsonFileGateway`: un fichier JSON (orjson), fusion clé par clé à chaque `save`;
- `MemoryGateway`: dictionnaire en mémoire (tests, parties éphémères).
"""

from __future__ import annotations

import copy
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

import orjson
from pydantic import ValidationError

from .state import ProgressionState

logger = logging.getLogger(__name__)


class PersistenceGateway(Protocol):
    def save(self, partial: Dict[str, Any]) -> None: ...

    def load(self) -> Optional[ProgressionState]: ...

    def clear(self) -> None: ...


def _read_state_file(path: Path) -> Any:
    try:
        return orjson.loads(path.read_bytes())
    except FileNotFoundError:
        return None


def _write_state_file(path: Path, payload: Dict[str, Any]) -> None:
    """Remplace le fichier d'état d'un bloc.

    Écriture dans un fichier voisin puis `replace`: une partie interrompue en
    pleine sauvegarde laisse l'ancien état intact.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_bytes(orjson.dumps(payload))
    tmp.replace(path)


def _restore(payload: Any) -> Optional[ProgressionState]:
    if not isinstance(payload, dict) or not payload.get("config") or not payload.get("plan"):
        return None
    try:
        return ProgressionState.from_dict(payload)
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        logger.warning("Etat sauvegardé invalide, ignoré: %s", exc)
        return None


class JsonFileGateway:
    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def save(self, partial: Dict[str, Any]) -> None:
        try:
            payload = _read_state_file(self.path) or {}
        except orjson.JSONDecodeError:
            logger.warning("Fichier d'état illisible, réécrit: %s", self.path)
            payload = {}
        payload.update(partial)
        _write_state_file(self.path, payload)

    def load(self) -> Optional[ProgressionState]:
        try:
            payload = _read_state_file(self.path)
        except orjson.JSONDecodeError as exc:
            logger.warning("Fichier d'état illisible (%s): %s", self.path, exc)
            return None
        return _restore(payload)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)


class MemoryGateway:
    def __init__(self) -> None:
        self.data: Dict[str, Any] = {}
        self.saves = 0

    def save(self, partial: Dict[str, Any]) -> None:
        self.data.update(copy.deepcopy(partial))
        self.saves += 1

    def load(self) -> Optional[ProgressionState]:
        return _restore(copy.deepcopy(self.data))

    def clear(self) -> None:
        self.data = {}
