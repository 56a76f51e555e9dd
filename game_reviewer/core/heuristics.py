# game_reviewer/core/heuristics.py
"""
Contains the concrete `Heuristic` implementations used by the classifier.

Each heuristic is a single rule in the move classification chain, adhering to
the `Heuristic` protocol defined in `types.py`. A heuristic either returns a
`MoveQuality`, which ends the chain, or None to defer to the next rule. The
order of the chain therefore encodes rule precedence.
"""

from typing import Optional, TYPE_CHECKING

from game_reviewer.core.move_quality import assess_move_quality, is_exceptional_move
from game_reviewer.types import (EVALUATED_PLY_TYPES, BookPly, Heuristic,
                                 MoveQuality, UnevaluatedPly)

if TYPE_CHECKING:
    from game_reviewer.types import PlyClassificationContext


def _post_or_pre(context: "PlyClassificationContext", pre: float) -> float:
    """Without a later evaluation, the move is assumed not to have changed the win rate."""
    return context.post_move_win_rate if context.post_move_win_rate is not None else pre


class BookMoveHeuristic(Heuristic):
    """Positions reached from the opening book are labelled 'Book' before anything else."""
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]:
        return MoveQuality.BOOK if isinstance(context.ply, BookPly) else None


class UnevaluatedPlyHeuristic(Heuristic):
    """Plies whose evaluation failed cannot be judged."""
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]:
        return MoveQuality.UNKNOWN if isinstance(context.ply, UnevaluatedPly) else None


class ExceptionalMoveHeuristic(Heuristic):
    """
    Awards 'Brilliant' to moves that reversed the outcome or were the only
    viable option, outside of hopeless positions.
    """
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]:
        ply = context.ply
        if not isinstance(ply, EVALUATED_PLY_TYPES):
            return None
        post = _post_or_pre(context, ply.pre_move_win_rate)
        if is_exceptional_move(
            ply.pre_move_win_rate, post, ply.is_white_turn,
            ply.second_best_win_rate, context.settings.exceptional_move
        ):
            return MoveQuality.BRILLIANT
        return None


class BestMoveHeuristic(Heuristic):
    """
    Labels the engine's top choice 'Best', regardless of how the win rate moved.
    """
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]:
        ply = context.ply
        if not isinstance(ply, EVALUATED_PLY_TYPES):
            return None
        if ply.best_move_uci and ply.move_uci == ply.best_move_uci:
            return MoveQuality.BEST
        return None


class WinRateLossHeuristic(Heuristic):
    """
    The fallback rule: bucket the move by how much win rate it gave away.

    This is always the last heuristic in the chain.
    """
    def apply(self, context: "PlyClassificationContext") -> Optional[MoveQuality]:
        ply = context.ply
        if not isinstance(ply, EVALUATED_PLY_TYPES):
            return None
        post = _post_or_pre(context, ply.pre_move_win_rate)
        return assess_move_quality(
            ply.pre_move_win_rate, post, ply.is_white_turn, context.settings.thresholds
        )
