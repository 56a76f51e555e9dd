# game_reviewer/core/chess_utils.py
"""
Provides a collection of pure, stateless helpers for FEN handling.

This module acts as the small "math library" for positions. Its functions are
deterministic and never raise on malformed input; they return a neutral value
instead.
"""

from typing import Final, Optional, Tuple

import chess

WHITE: Final[str] = "w"
BLACK: Final[str] = "b"


def piece_placement(fen: str) -> str:
    """Returns the piece-placement field of a FEN, i.e. everything before the first space."""
    return fen.strip().split(" ", 1)[0]


def color_code(color: chess.Color) -> str:
    return WHITE if color == chess.WHITE else BLACK


def side_to_move(fen: str) -> str:
    """Returns 'w' or 'b' from the active-color field of a FEN, defaulting to White."""
    fields = fen.split()
    return BLACK if len(fields) > 1 and fields[1] == BLACK else WHITE


def is_valid_fen(fen: str) -> bool:
    """Checks a FEN for both syntax and basic position validity."""
    if not fen or not fen.strip():
        return False
    try:
        board = chess.Board(fen)
    except ValueError:
        return False
    return board.is_valid()


def to_white_perspective(
    winrate_percent: Optional[float], score_cp: Optional[float], mover: str
) -> Tuple[Optional[float], Optional[float]]:
    """
    Reorients a side-to-move win rate and score to White's perspective.

    Args:
        winrate_percent: Win rate for the side to move, 0-100.
        score_cp: Centipawn score for the side to move.
        mover: 'w' or 'b'.

    Returns:
        A `(winrate_percent, score_cp)` tuple from White's point of view.
    """
    if mover == WHITE:
        return winrate_percent, score_cp
    winrate = 100.0 - winrate_percent if winrate_percent is not None else None
    score = -score_cp if score_cp is not None else None
    return winrate, score
