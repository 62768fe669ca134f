"""
Configuration du service (Settings)
===================================

Les valeurs par défaut conviennent pour un usage local; elles peuvent être
surchargées par l'environnement ou un fichier `.env`:

HOST="0.0.0.0"
PORT=4000
DATA_DIR="/var/opt/songquiz"
DEFAULT_TIME_LIMIT=30
LOG_LEVEL="info"
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from .paths import DATA_DIR


class Settings(BaseSettings):
    APP_NAME: str = "SongQuiz"
    HOST: str = "0.0.0.0"
    PORT: int = 4000

    # Sauvegarde de la partie en cours
    DATA_DIR: str = str(DATA_DIR)
    STATE_FILENAME: str = "game_state.json"

    # Compte à rebours (secondes) si la configuration de partie n'a pas de `time_limit`
    DEFAULT_TIME_LIMIT: int = 30

    LOG_LEVEL: str = "info"

    # Origines autorisées pour Socket.IO ("*" en local)
    CORS_ORIGINS: str = "*"

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def state_path(self) -> Path:
        return Path(self.DATA_DIR) / self.STATE_FILENAME


settings = Settings()
