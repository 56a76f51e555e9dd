# game_reviewer/core/move_classifier.py
"""
Contains the central classification engine of the application.

This module provides the `MoveClassifier`, a pure component that runs an
ordered chain of `Heuristic` objects over a single ply. The first heuristic
that returns a quality decides the label, so the order of the chain is the
precedence of the rules.
"""
from typing import List, Optional, Sequence, TYPE_CHECKING

from game_reviewer.core.heuristics import (BestMoveHeuristic, BookMoveHeuristic,
                                           ExceptionalMoveHeuristic,
                                           UnevaluatedPlyHeuristic,
                                           WinRateLossHeuristic)
from game_reviewer.types import (EVALUATED_PLY_TYPES, MoveQuality,
                                 PlyClassificationContext)

if TYPE_CHECKING:
    from game_reviewer.config.settings import ReviewSettings
    from game_reviewer.types import Heuristic, PlyState


def next_pre_move_win_rate(ply_states: Sequence["PlyState"], index: int) -> Optional[float]:
    """
    Returns the win rate the game reached after the move at `index`.

    That is the pre-move win rate of the following ply, when the following
    ply was evaluated. The last ply, and plies followed by a book or
    unevaluated ply, have no such value.
    """
    if index + 1 >= len(ply_states):
        return None
    following = ply_states[index + 1]
    if isinstance(following, EVALUATED_PLY_TYPES):
        return following.pre_move_win_rate
    return None


class MoveClassifier:
    """A stateless classifier that runs a chain of heuristics to label a single ply."""

    def __init__(self, heuristics: Optional[List["Heuristic"]] = None):
        """Initializes the classifier and defines the ordered heuristic chain."""
        self._heuristic_chain: List["Heuristic"] = heuristics or [
            BookMoveHeuristic(),          # 1. Opening theory
            UnevaluatedPlyHeuristic(),    # 2. Nothing to judge
            ExceptionalMoveHeuristic(),   # 3. Brilliant
            BestMoveHeuristic(),          # 4. Engine's top choice
            WinRateLossHeuristic(),       # 5. Standard buckets
        ]

    def classify_ply(
        self, ply: "PlyState", post_move_win_rate: Optional[float], settings: "ReviewSettings"
    ) -> MoveQuality:
        """
        Runs the heuristic chain for a single ply.

        Args:
            ply: The Phase 1 record for the move.
            post_move_win_rate: The win rate after the move, if known.
            settings: Thresholds and criteria for the rules.

        Returns:
            The quality from the first heuristic that made a decision.
        """
        context = PlyClassificationContext(
            ply=ply, post_move_win_rate=post_move_win_rate, settings=settings
        )
        for heuristic in self._heuristic_chain:
            quality = heuristic.apply(context)
            if quality is not None:
                return quality
        return MoveQuality.UNKNOWN

    def classify_game(
        self, ply_states: Sequence["PlyState"], settings: "ReviewSettings"
    ) -> List[MoveQuality]:
        """Labels every ply in order, reading each ply's successor for its post-move win rate."""
        return [
            self.classify_ply(ply, next_pre_move_win_rate(ply_states, i), settings)
            for i, ply in enumerate(ply_states)
        ]
