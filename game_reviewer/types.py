# game_reviewer/types.py
"""
A central module for shared data structures and collaborator interfaces (Protocols).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import (Awaitable, Callable, List, Optional, Protocol, TYPE_CHECKING,
                    get_args, runtime_checkable, TypeAlias, Union)

if TYPE_CHECKING:
    from game_reviewer.config.settings import ReviewSettings
    from game_reviewer.orchestration.progress import ProgressReporter

FEN: TypeAlias = str
ProgressCallback = Callable[[int], Awaitable[None]]


class MoveQuality(str, Enum):
    BOOK = "Book"; BEST = "Best"; BRILLIANT = "Brilliant"; VERY_GOOD = "Very Good"
    GOOD = "Good"; DUBIOUS = "Dubious"; MISTAKE = "Mistake"; BLUNDER = "Blunder"
    UNKNOWN = "Unknown"

    def display_label(self, merge_brilliant: bool = True) -> str:
        """
        Returns the label shown to users.

        With `merge_brilliant`, exceptional moves are presented as "Very Good",
        which is how reviews have historically been displayed.
        """
        if merge_brilliant and self is MoveQuality.BRILLIANT:
            return MoveQuality.VERY_GOOD.value
        return self.value


# --- Collaborator data contracts ---

@dataclass(frozen=True, slots=True)
class AppliedMove:
    new_fen: FEN; uci: str; san: str

@dataclass(frozen=True, slots=True)
class EngineLine:
    cp: Optional[int]; mate: Optional[int]; depth: int
    principal_variation: List[str] = field(default_factory=list)

@dataclass(frozen=True, slots=True)
class PositionEvaluation:
    best_move_uci: Optional[str]; lines: List[EngineLine]

@dataclass(frozen=True, slots=True)
class CandidateMove:
    """A move suggested by the evaluation cache; score and win rate are side-to-move."""
    uci: str; san: str; score: Optional[float]; winrate_percent: Optional[float]

@dataclass(frozen=True, slots=True)
class CacheKey:
    fen: FEN; depth: int; multipv: int; engine_id: str


# --- Phase 1 records: a tagged union of ply states ---

@dataclass(frozen=True, slots=True)
class PlyCommon:
    ply_index: int; active_player: str; pre_move_fen: FEN; post_move_fen: FEN
    move_notation: str; move_uci: str; move_san: str

    @property
    def is_white_turn(self) -> bool:
        return self.active_player == "w"

@dataclass(frozen=True, slots=True)
class BookPly(PlyCommon):
    """The position after the move is a known opening position; nothing was evaluated."""

@dataclass(frozen=True, slots=True)
class CacheHitPly(PlyCommon):
    pre_move_win_rate: float; best_move_uci: str; best_move_san: str; eval_cp: int
    second_best_win_rate: Optional[float] = None

@dataclass(frozen=True, slots=True)
class EngineEvalPly(PlyCommon):
    pre_move_win_rate: float; best_move_uci: Optional[str]; best_move_san: Optional[str]
    eval_cp: int; second_best_win_rate: Optional[float] = None

@dataclass(frozen=True, slots=True)
class UnevaluatedPly(PlyCommon):
    """The evaluator failed for this ply; the move was still applied."""
    error: str

PlyState: TypeAlias = Union[BookPly, CacheHitPly, EngineEvalPly, UnevaluatedPly]
EvaluatedPly: TypeAlias = Union[CacheHitPly, EngineEvalPly]
# Runtime counterpart of `EvaluatedPly` for isinstance checks.
EVALUATED_PLY_TYPES = get_args(EvaluatedPly)


# --- Phase 2 output ---

@dataclass(frozen=True, slots=True)
class MoveAnalysis:
    ply_number: int; notation: str; quality: MoveQuality; fen: FEN; player: str
    post_move_fen: FEN; move_uci: str; move_san: str
    best_move_san: Optional[str] = None; eval_cp: Optional[int] = None

@dataclass(frozen=True, slots=True)
class PlyError:
    ply_number: int; notation: str; fen: FEN; message: str

@dataclass
class ReviewResult:
    analyses: List[MoveAnalysis]; errors: List[PlyError]
    warnings: List[str] = field(default_factory=list)
    generation: int = 0; completed: bool = True


# --- PROTOCOLS: Abstract Interfaces for Collaborators ---
# Concrete adapters live in `game_reviewer.services` and `game_reviewer.core.rules_engine`.

@runtime_checkable
class RulesEngine(Protocol):
    """Defines the stateful board used to replay a game move by move."""
    def apply_move(self, notation: str) -> AppliedMove: ...
    def current_fen(self) -> FEN: ...
    def active_color(self) -> str: ...
    def uci_to_san(self, fen: FEN, uci: str) -> Optional[str]: ...

@runtime_checkable
class PositionEvaluator(Protocol):
    """Defines a single, exclusive position-evaluation resource."""
    async def evaluate(self, fen: FEN, depth: int, multipv: int) -> PositionEvaluation: ...

@runtime_checkable
class OpeningBook(Protocol):
    """Membership test over the piece-placement field of known opening positions."""
    def contains(self, piece_placement: str) -> bool: ...

@runtime_checkable
class EvaluationCache(Protocol):
    """A FEN-keyed source of ranked candidate moves."""
    async def lookup(self, fen: FEN) -> List[CandidateMove]: ...

class Heuristic(Protocol):
    """A single classification rule. Returns a quality, or None to defer to the next rule."""
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]: ...

class ProcessingStage(Protocol):
    """Protocol for a single, named stage in the review pipeline."""
    async def execute(self, context: "ReviewContext") -> "ReviewContext": ...


# --- Pipeline contexts ---

@dataclass(frozen=True, slots=True)
class PlyClassificationContext:
    ply: PlyState; post_move_win_rate: Optional[float]; settings: "ReviewSettings"

@dataclass
class ReviewCollaborators:
    rules_engine_factory: Callable[[], RulesEngine]
    evaluator: Optional[PositionEvaluator]
    opening_book: OpeningBook
    evaluation_cache: Optional[EvaluationCache] = None

@dataclass
class ReviewContext:
    moves: List[str]; settings: "ReviewSettings"; collaborators: ReviewCollaborators
    progress: "ProgressReporter"
    ply_states: List[PlyState] = field(default_factory=list)
    errors: List[PlyError] = field(default_factory=list)
    analyses: List[MoveAnalysis] = field(default_factory=list)
