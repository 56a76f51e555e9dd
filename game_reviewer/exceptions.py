# game_reviewer/exceptions.py
"""
Defines custom exceptions for the game review pipeline.

All application errors derive from `GameReviewError`, so callers can catch
the whole family at the orchestration boundary while adapters raise the
specific subclass that describes what went wrong. Pure functions in
`game_reviewer.core` never raise; only I/O steps can fail.
"""

from typing import Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from game_reviewer.types import PositionEvaluator


class GameReviewError(Exception):
    """Base class for all application-specific, catchable errors."""
    pass


class IllegalMoveError(GameReviewError):
    """
    Raised when a listed move cannot be applied to the current position.

    Attributes:
        notation: The move text that was rejected.
        fen: The position the move was attempted from.
    """
    def __init__(self, notation: str, fen: str):
        super().__init__(f"Illegal move {notation!r} in position {fen}")
        self.notation = notation
        self.fen = fen


class EvaluatorError(GameReviewError):
    """
    Base class for errors raised by the position evaluator.

    Attributes:
        evaluator: An optional reference to the failed evaluator instance.
    """
    def __init__(self, message: str, evaluator: Optional["PositionEvaluator"] = None):
        super().__init__(message)
        self.evaluator = evaluator


class EvaluatorUnavailableError(EvaluatorError):
    """Raised before a review starts when no evaluator instance is ready."""
    pass


class EvaluatorInitializationError(EvaluatorError):
    """
    Raised when the engine process fails to start.

    Typically the executable path is wrong or the process does not answer
    its first UCI commands.
    """
    pass


class EvaluatorCallError(EvaluatorError):
    """Raised when a single `evaluate()` call fails or the engine crashes mid-search."""
    pass


class CacheError(GameReviewError):
    """Base class for all cache-related errors."""
    pass


class CacheFetchError(CacheError):
    """Raised when the remote evaluation cache cannot be queried. Treated as a miss."""
    pass


class CacheConnectionError(CacheError):
    """Raised when unable to connect to or initialize the local cache database."""
    pass


class CacheReadError(CacheError):
    """Raised when an error occurs while reading from the local cache database."""
    pass


class CacheWriteError(CacheError):
    """Raised when an error occurs while writing to the local cache database."""
    pass


class OpeningBookError(GameReviewError):
    """Raised when no opening-book partition could be loaded."""
    pass


class PgnError(GameReviewError):
    """Base class for errors related to PGN handling."""
    pass


class PgnServiceError(PgnError):
    """
    Raised for file I/O errors when reading PGN files.

    This typically wraps lower-level exceptions like `FileNotFoundError`.
    """
    pass
