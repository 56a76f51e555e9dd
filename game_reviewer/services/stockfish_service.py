# game_reviewer/services/stockfish_service.py
"""
Provides a concrete `PositionEvaluator` backed by Stockfish.

This module adapts a Stockfish subprocess, driven through the
`python-stockfish` library, to the pipeline's `PositionEvaluation` contract.
The engine is a single exclusive resource: every call goes through one
`asyncio.Lock`, and the blocking library calls run in a worker thread.
"""

import asyncio
import os
import shutil
import time
from pathlib import Path
from typing import Dict, List, Optional, TYPE_CHECKING

import chess
import structlog
from stockfish import Stockfish, StockfishException

from game_reviewer.core.chess_utils import WHITE, side_to_move
from game_reviewer.exceptions import EvaluatorCallError, EvaluatorInitializationError
from game_reviewer.types import FEN, EngineLine, PositionEvaluation, PositionEvaluator
from game_reviewer.utils import metrics

if TYPE_CHECKING:
    from game_reviewer.config.settings import EngineSettings

logger = structlog.get_logger(__name__)


def _reorient(value: Optional[int], sign: int) -> Optional[int]:
    return value * sign if value is not None else None


def find_stockfish_executable(provided_path: Optional[str] = None) -> Path:
    """
    Finds a Stockfish executable, raising FileNotFoundError if unsuccessful.

    The search order is the explicit path, then the `STOCKFISH_PATH`
    environment variable, then the system `PATH`.
    """
    candidates = [Path(p) for p in (provided_path, os.environ.get('STOCKFISH_PATH')) if p]
    for path in candidates:
        if path.is_file() and os.access(path, os.X_OK):
            return path.resolve()

    if system_path := shutil.which('stockfish'):
        return Path(system_path)

    raise FileNotFoundError(
        "Stockfish executable not found. Install it, set the STOCKFISH_PATH "
        "environment variable, or pass --stockfish-path."
    )


class StockfishService(PositionEvaluator):
    """
    A lock-guarded, asynchronous wrapper around one Stockfish process.

    Concurrent `evaluate()` calls are serialized rather than interleaved, so
    the engine only ever searches one position at a time.
    """

    def __init__(self, stockfish_instance: Stockfish, version: str, identifier: str):
        """
        Private constructor. Use the `create` class method for safe instantiation.

        Args:
            stockfish_instance: An initialized `stockfish.Stockfish` object.
            version: The major version of the Stockfish engine.
            identifier: The resolved path of the engine executable.
        """
        self._stockfish: Optional[Stockfish] = stockfish_instance
        self._version = version
        self._identifier = identifier
        self._lock = asyncio.Lock()
        self._is_closed = False

    @classmethod
    def _create_sync(cls, settings: "EngineSettings") -> "StockfishService":
        """Blocking part of the initialization, run in a thread."""
        try:
            stockfish_path = find_stockfish_executable(settings.path)
        except FileNotFoundError as e:
            raise EvaluatorInitializationError(str(e)) from e

        try:
            stockfish = Stockfish(
                path=str(stockfish_path),
                depth=settings.depth,
                parameters=settings.parameters,
                # Scores are reported for the side to move; `_parse_top_moves` reorients them.
                turn_perspective=True,
            )
            if not stockfish.is_fen_valid(chess.STARTING_FEN):
                raise EvaluatorInitializationError("Stockfish process started but FEN validation failed.")
            version = str(stockfish.get_stockfish_major_version())
            return cls(stockfish, version, str(stockfish_path))
        except (StockfishException, OSError) as e:
            raise EvaluatorInitializationError(f"Failed to initialize Stockfish: {e}") from e

    @classmethod
    async def create(cls, settings: "EngineSettings") -> "StockfishService":
        """Asynchronously starts the engine and returns a ready service."""
        return await asyncio.to_thread(cls._create_sync, settings)

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    def _ensure_engine_ready(self) -> Stockfish:
        if self._is_closed or self._stockfish is None:
            raise EvaluatorCallError("StockfishService is closed or the engine has failed.", evaluator=self)
        return self._stockfish

    @staticmethod
    def _parse_top_moves(top_moves: List[Dict], depth: int, fen: FEN) -> List[EngineLine]:
        """
        Converts the library's dict output into `EngineLine`s.

        The library scores each line for the side to move in `fen`; the
        returned lines are from White's perspective.
        """
        sign = 1 if side_to_move(fen) == WHITE else -1
        lines = []
        for move in top_moves:
            pv = [move.get("Move")] + list(move.get("PV") or [])
            lines.append(
                EngineLine(
                    cp=_reorient(move.get("Centipawn"), sign),
                    mate=_reorient(move.get("Mate"), sign),
                    depth=depth,
                    principal_variation=[m for m in pv if m],
                )
            )
        return lines

    def _evaluate_sync(self, fen: FEN, depth: int, multipv: int) -> PositionEvaluation:
        stockfish = self._ensure_engine_ready()
        try:
            stockfish.set_depth(depth)
            stockfish.set_fen_position(fen)
            top_moves = stockfish.get_top_moves(multipv)
        except (StockfishException, BrokenPipeError) as e:
            # A crashed engine cannot be reused.
            self._stockfish = None
            raise EvaluatorCallError("Stockfish process crashed during analysis.", evaluator=self) from e
        except ValueError as e:
            raise EvaluatorCallError(f"Stockfish rejected the request: {e}", evaluator=self) from e

        lines = self._parse_top_moves(top_moves, depth, fen)
        best_move = lines[0].principal_variation[0] if lines and lines[0].principal_variation else None
        return PositionEvaluation(best_move_uci=best_move, lines=lines)

    async def evaluate(self, fen: FEN, depth: int, multipv: int) -> PositionEvaluation:
        """
        Searches one position and returns its ranked lines, best first.

        Raises:
            EvaluatorCallError: If the service is closed or the engine crashes.
        """
        async with self._lock:
            started = time.perf_counter()
            evaluation = await asyncio.to_thread(self._evaluate_sync, fen, depth, multipv)
            metrics.EVALUATION_DURATION_SECONDS.observe(time.perf_counter() - started)
            return evaluation

    async def get_engine_identifier(self) -> str:
        """Returns a unique identifier for this engine configuration, used for caching."""
        return f"{self._identifier}_{self._version}"

    def _close_sync(self) -> None:
        stockfish, self._stockfish = self._stockfish, None
        if stockfish is None:
            return
        try:
            stockfish.send_quit_command()
        except (StockfishException, OSError) as e:
            logger.warning("Stockfish did not shut down cleanly.", error=str(e))

    async def close(self) -> None:
        """Terminates the Stockfish subprocess. Waits for an in-flight search to finish."""
        if self._is_closed:
            return
        self._is_closed = True
        async with self._lock:
            await asyncio.to_thread(self._close_sync)
        logger.debug("Stockfish service closed.", identifier=self._identifier)
