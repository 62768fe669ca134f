#!/usr/bin/env python3
"""
Script de démarrage pour SongQuiz
"""
import logging

import uvicorn

from songquiz.main import app
from songquiz.settings import settings

if __name__ == "__main__":
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger = logging.getLogger("songquiz")
    logger.info("Démarrage du serveur %s sur http://%s:%d", settings.APP_NAME, settings.HOST, settings.PORT)

    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level=settings.LOG_LEVEL,
    )
