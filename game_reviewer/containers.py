# game_reviewer/containers.py
"""
Defines the Dependency Injection (DI) container for the application.

This module uses the `punq` library to wire the services and pipeline
stages from a `Settings` object. Collaborators that need async start-up (the
Stockfish process, the opened stores) are created by the caller and handed
to `GameReviewer` directly.
"""

import punq

from game_reviewer.config.settings import ReviewSettings, Settings
from game_reviewer.core.move_classifier import MoveClassifier
from game_reviewer.orchestration.pipeline_stages import ClassificationStage, PlyCollectionStage
from game_reviewer.services.chessdb_service import ChessDbService
from game_reviewer.services.pgn_service import PgnService
from game_reviewer.services.sqlite_cache_service import SqliteCacheService


def get_container(settings: Settings) -> punq.Container:
    """Initializes and returns a DI container configured for one application run."""
    container = punq.Container()

    container.register(Settings, instance=settings)
    container.register(ReviewSettings, instance=settings.review)

    # One client and one database connection per run.
    container.register(ChessDbService, factory=lambda: ChessDbService(settings.cloud_cache), scope=punq.Scope.singleton)
    container.register(SqliteCacheService, factory=lambda: SqliteCacheService(settings.cache), scope=punq.Scope.singleton)
    container.register(PgnService)

    container.register(MoveClassifier, factory=lambda: MoveClassifier())
    container.register(PlyCollectionStage)
    container.register(ClassificationStage, factory=lambda: ClassificationStage(container.resolve(MoveClassifier)))

    return container
