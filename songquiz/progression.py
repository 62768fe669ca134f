"""Moteur de progression d'une partie (manches, chansons, scores).

Toutes les mutations de l'état passent par `GameStateManager`; chaque
opération qui modifie l'état le sauvegarde via la passerelle injectée.

Mode `manual`: la pioche est consommée au moment où le jeu quitte une
chanson tirée de la pioche (passage à la suivante, clôture de la manche,
manche suivante). Une chanson spéciale ne touche jamais à la pioche.
"""

from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import Answer, GameConfig, Player, Song
from .persistence import PersistenceGateway
from .scoring import calculate_score, rank_players, team_scores
from .sequence import LAST_POSITION, FixedPlan, ManualPlan, generate_song_sequence, get_special_song
from .state import GameMode, ProgressionState, RoundPhase

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class GameStateManager:
    def __init__(self, state: ProgressionState, gateway: PersistenceGateway, clock: Clock = time.time) -> None:
        self.state = state
        self.gateway = gateway
        self.clock = clock

    @classmethod
    def start(
        cls,
        config: GameConfig,
        gateway: PersistenceGateway,
        *,
        rng: Optional[random.Random] = None,
        clock: Clock = time.time,
    ) -> "GameStateManager":
        """Démarre une partie: génère la séquence, scores à 0, premier timer."""
        state = ProgressionState(
            config=config,
            plan=generate_song_sequence(config, rng),
            player_scores=config.initial_scores(),
            song_start_timestamp=clock(),
        )
        manager = cls(state, gateway, clock)
        manager.save()
        logger.info(
            "Partie '%s' démarrée: %d manche(s), mode %s",
            config.game.name,
            config.game.rounds,
            config.game.round_end_mode.value,
        )
        return manager

    @classmethod
    def resume(cls, gateway: PersistenceGateway, *, clock: Clock = time.time) -> Optional["GameStateManager"]:
        """Reprend la dernière partie sauvegardée, ou None s'il n'y en a pas."""
        state = gateway.load()
        if state is None:
            return None
        logger.info("Reprise de la partie '%s' (manche %d)", state.config.game.name, state.current_round + 1)
        return cls(state, gateway, clock)

    # ------------------------------------------------------------------
    # Accès en lecture
    # ------------------------------------------------------------------
    @property
    def config(self) -> GameConfig:
        return self.state.config

    @property
    def current_round(self) -> int:
        return self.state.current_round

    @property
    def current_song_index(self) -> int:
        return self.state.current_song_index

    @property
    def mode(self) -> GameMode:
        return self.state.mode

    def player_scores(self) -> Dict[int, int]:
        return dict(self.state.player_scores)

    def save(self) -> None:
        self.gateway.save(self.state.to_dict())

    def _round_songs(self) -> Optional[List[Song]]:
        plan = self.state.plan
        if isinstance(plan, FixedPlan) and 0 <= self.state.current_round < len(plan.rounds):
            return plan.rounds[self.state.current_round]
        return None

    def _resolve(self) -> Tuple[Optional[Song], bool]:
        """Chanson courante et indicateur "tirée de la pioche"."""
        st = self.state
        plan = st.plan
        if isinstance(plan, FixedPlan):
            songs = self._round_songs()
            if songs is not None and 0 <= st.current_song_index < len(songs):
                return songs[st.current_song_index], False
            return None, False

        if st.round_phase is RoundPhase.MANUALLY_ENDED:
            position = LAST_POSITION
        else:
            position = st.current_song_index + 1
        special = get_special_song(st.config, st.current_round, position)
        if special is not None:
            return special, False
        if plan.pool:
            return plan.pool[0], True
        return None, False

    def get_current_song(self) -> Optional[Song]:
        """Chanson à jouer maintenant. Ne modifie jamais l'état."""
        return self._resolve()[0]

    def is_last_song_of_round(self) -> bool:
        plan = self.state.plan
        if isinstance(plan, ManualPlan):
            return self.state.round_phase is RoundPhase.MANUALLY_ENDED or not plan.pool
        songs = self._round_songs()
        if songs is None:
            return True
        return self.state.current_song_index >= len(songs) - 1

    def is_last_round(self) -> bool:
        return self.state.current_round >= self.config.game.rounds - 1

    # ------------------------------------------------------------------
    # Progression
    # ------------------------------------------------------------------
    def _consume_current(self) -> None:
        plan = self.state.plan
        if not isinstance(plan, ManualPlan):
            return
        _song, from_pool = self._resolve()
        if not from_pool:
            return
        played = plan.pool.pop(0)
        if self.config.selection_rules.allow_duplicates:
            plan.pool.append(played)

    def reset_turn_timer(self) -> None:
        self.state.song_start_timestamp = self.clock()

    def advance_to_next_song(self) -> Optional[Song]:
        st = self.state
        if isinstance(st.plan, ManualPlan) and st.round_phase is RoundPhase.MANUALLY_ENDED:
            logger.warning("Manche %d déjà close: passer à la manche suivante", st.current_round + 1)
            return None

        self._consume_current()
        st.current_song_index += 1
        self.reset_turn_timer()
        self.save()
        return self.get_current_song()

    def end_round_early(self) -> Optional[Song]:
        """Annonce que la prochaine chanson révélée est la dernière de la manche.

        Mode `fixed`: saute au dernier emplacement de la manche (éventuelle
        chanson spéciale en position -1). Mode `manual`: la chanson en cours
        est consommée, puis la chanson spéciale en position -1, ou à défaut la
        tête de pioche, devient la dernière.
        """
        st = self.state
        if st.round_phase is RoundPhase.MANUALLY_ENDED:
            return self.get_current_song()

        if isinstance(st.plan, FixedPlan):
            songs = self._round_songs() or []
            st.current_song_index = max(len(songs) - 1, 0)
        else:
            self._consume_current()
        st.round_phase = RoundPhase.MANUALLY_ENDED
        self.reset_turn_timer()
        self.save()
        return self.get_current_song()

    def start_next_round(self) -> Optional[Song]:
        if self.is_last_round():
            return None

        st = self.state
        self._consume_current()
        st.current_round += 1
        st.current_song_index = 0
        st.round_phase = RoundPhase.IN_PROGRESS
        self.reset_turn_timer()
        self.save()
        logger.info("Manche %d/%d", st.current_round + 1, self.config.game.rounds)
        return self.get_current_song()

    def set_mode(self, mode: GameMode) -> None:
        self.state.mode = mode
        self.save()

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------
    def record_answer(self, player: Player, answer: Answer, buzzer_timestamp: float) -> Optional[int]:
        """Ajoute au joueur les points de sa réponse sur la chanson courante.

        Retourne les points attribués, ou None si la réponse est ignorée
        (aucune chanson courante, buzzer antérieur au début de la chanson).
        """
        song = self.get_current_song()
        if song is None:
            logger.warning("Aucune chanson courante: réponse de %s ignorée", player.name)
            return None

        answer_time = buzzer_timestamp - self.state.song_start_timestamp
        if answer_time < 0:
            logger.warning("Buzzer de %s antérieur au début de la chanson: réponse ignorée", player.name)
            return None

        points = calculate_score(answer, answer_time, song, self.config.scoring)
        scores = self.state.player_scores
        scores[player.id] = scores.get(player.id, 0) + points
        self.save()
        logger.info("%s: +%d (%s, %.1fs)", player.name, points, song.title, answer_time)
        return points

    def ranking(self) -> List[Dict[str, Any]]:
        return rank_players(self.config.players, self.state.player_scores)

    def team_scores(self) -> Dict[str, int]:
        return team_scores(self.config.players, self.state.player_scores)

    def summary(self) -> Dict[str, Any]:
        song = self.get_current_song()
        return {
            "name": self.config.game.name,
            "mode": self.state.mode.value,
            "round": self.state.current_round + 1,
            "total_rounds": self.config.game.rounds,
            "song_index": self.state.current_song_index,
            "round_phase": self.state.round_phase.value,
            "is_last_song": self.is_last_song_of_round(),
            "is_last_round": self.is_last_round(),
            "song": song.model_dump(mode="json") if song else None,
            "scores": {str(pid): score for pid, score in self.state.player_scores.items()},
        }
