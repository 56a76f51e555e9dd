# game_reviewer/cli.py
"""
Command-line entry point: review every game in a PGN file and print one
line per ply.
"""

import argparse
import asyncio
import sys
from contextlib import AsyncExitStack
from pathlib import Path
from typing import List, Optional

import structlog

from game_reviewer.config.settings import Settings
from game_reviewer.containers import get_container
from game_reviewer.core.rules_engine import ChessRulesEngine
from game_reviewer.exceptions import (CacheConnectionError, EvaluatorInitializationError,
                                      PgnServiceError)
from game_reviewer.orchestration.game_reviewer import GameReviewer
from game_reviewer.orchestration.pipeline_stages import ClassificationStage, PlyCollectionStage
from game_reviewer.services.analysis_provider import AnalysisProvider
from game_reviewer.services.chessdb_service import ChessDbService
from game_reviewer.services.opening_book_service import load_opening_book
from game_reviewer.services.pgn_service import GameRecord, PgnService
from game_reviewer.services.sqlite_cache_service import SqliteCacheService
from game_reviewer.services.stockfish_service import StockfishService
from game_reviewer.types import PositionEvaluator, ReviewCollaborators
from game_reviewer.utils.logging_config import setup_logging

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="game-reviewer", description="Label every move of a chess game.")
    parser.add_argument("pgn", type=Path, help="PGN file with one or more games.")
    parser.add_argument("--depth", type=int, help="Engine search depth.")
    parser.add_argument("--stockfish-path", help="Path to the Stockfish executable.")
    parser.add_argument("--book", action="append", default=[], type=Path,
                        help="Opening-book partition (JSON keyed by FEN). Repeatable.")
    parser.add_argument("--no-cloud-cache", action="store_true", help="Never query ChessDB.")
    parser.add_argument("--no-local-cache", action="store_true", help="Do not store engine evaluations on disk.")
    parser.add_argument("--log-level", default=None, help="Logging level, e.g. DEBUG.")
    return parser


def apply_arguments(settings: Settings, args: argparse.Namespace) -> Settings:
    """Returns a copy of `settings` with the command-line overrides applied."""
    review = settings.review
    engine = settings.engine
    if args.depth is not None:
        review = review.model_copy(update={"depth": args.depth})
        engine = engine.model_copy(update={"depth": args.depth})
    if args.stockfish_path:
        engine = engine.model_copy(update={"path": args.stockfish_path})
    update = {"review": review, "engine": engine}
    if args.book:
        update["opening_book"] = settings.opening_book.model_copy(
            update={"partition_paths": [str(p) for p in args.book]}
        )
    if args.no_cloud_cache:
        update["cloud_cache"] = settings.cloud_cache.model_copy(update={"enabled": False})
    if args.no_local_cache:
        update["cache"] = settings.cache.model_copy(update={"enabled": False})
    if args.log_level:
        update["log_level"] = args.log_level
    return settings.model_copy(update=update)


def format_review(record: GameRecord, reviewer: GameReviewer) -> List[str]:
    lines = [f"{record.white} vs {record.black} ({record.result})"]
    for analysis in reviewer.analyses:
        move_number = analysis.ply_number // 2 + 1
        dots = "." if analysis.player == "w" else "..."
        best = f"  best: {analysis.best_move_san}" if analysis.best_move_san else ""
        lines.append(f"{move_number}{dots} {analysis.move_san:<8} {analysis.quality.display_label(merge_brilliant=False)}{best}")
    for error in reviewer.errors:
        lines.append(f"  ply {error.ply_number}: illegal move {error.notation!r}")
    lines.extend(f"  warning: {warning}" for warning in reviewer.warnings)
    return lines


async def _start_evaluator(settings: Settings) -> Optional[StockfishService]:
    try:
        return await StockfishService.create(settings.engine)
    except EvaluatorInitializationError as e:
        logger.error("Could not start Stockfish.", error=str(e))
        return None


async def run(settings: Settings, pgn_path: Path) -> int:
    container = get_container(settings)
    try:
        records = await container.resolve(PgnService).read_games(pgn_path)
    except PgnServiceError as e:
        logger.error("Could not read games.", error=str(e))
        return 1

    book = await load_opening_book(Path(p) for p in settings.opening_book.partition_paths)
    engine = await _start_evaluator(settings)

    async with AsyncExitStack() as stack:
        evaluator: Optional[PositionEvaluator] = engine
        if engine is not None:
            stack.push_async_callback(engine.close)
            if settings.cache.enabled:
                try:
                    store = await stack.enter_async_context(container.resolve(SqliteCacheService))
                    evaluator = AnalysisProvider(engine, store)
                except CacheConnectionError as e:
                    logger.warning("Local evaluation store unavailable.", error=str(e))

        cloud_cache = None
        if settings.cloud_cache.enabled:
            cloud_cache = await stack.enter_async_context(container.resolve(ChessDbService))

        stages = [container.resolve(PlyCollectionStage), container.resolve(ClassificationStage)]
        for record in records:
            collaborators = ReviewCollaborators(
                rules_engine_factory=lambda fen=record.starting_fen: ChessRulesEngine(fen),
                evaluator=evaluator,
                opening_book=book,
                evaluation_cache=cloud_cache,
            )
            reviewer = GameReviewer(settings.review, collaborators, stages=stages)
            await reviewer.review_game(record.moves, review_id=record.game_id)
            print("\n".join(format_review(record, reviewer)))
            print()

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = apply_arguments(Settings(), args)
    setup_logging(log_level=settings.log_level)
    return asyncio.run(run(settings, args.pgn))


if __name__ == "__main__":
    sys.exit(main())
