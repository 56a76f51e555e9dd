# game_reviewer/core/rules_engine.py
"""
A `RulesEngine` adapter over `python-chess`.

This module acts as an Anti-Corruption Layer: the pipeline only ever sees
FEN strings, UCI/SAN text and the `AppliedMove` contract, never
`chess.Board` objects. Move text may be given in SAN ("Nf3") or UCI ("g1f3").
"""

from typing import Optional

import chess
import structlog

from game_reviewer.core.chess_utils import color_code
from game_reviewer.exceptions import IllegalMoveError
from game_reviewer.types import AppliedMove, FEN, RulesEngine

logger = structlog.get_logger(__name__)


class ChessRulesEngine(RulesEngine):
    """Replays a game on a single board, one move at a time."""

    def __init__(self, starting_fen: FEN = chess.STARTING_FEN):
        self._board = chess.Board(starting_fen)

    def _parse_move(self, notation: str) -> chess.Move:
        text = notation.strip()
        try:
            return self._board.parse_san(text)
        except ValueError:
            pass
        # Fall back to UCI, e.g. when moves come straight from an engine.
        move = chess.Move.from_uci(text)
        if not self._board.is_legal(move):
            raise chess.IllegalMoveError(f"illegal uci: {text!r}")
        return move

    def apply_move(self, notation: str) -> AppliedMove:
        """
        Applies a move to the board.

        Raises:
            IllegalMoveError: If the text is not a legal move in the current
                position. The board is left unchanged.
        """
        fen_before = self._board.fen()
        try:
            move = self._parse_move(notation)
        except ValueError as e:
            # chess.IllegalMoveError and chess.InvalidMoveError both subclass ValueError.
            raise IllegalMoveError(notation, fen_before) from e

        san = self._board.san(move)
        self._board.push(move)
        return AppliedMove(new_fen=self._board.fen(), uci=move.uci(), san=san)

    def current_fen(self) -> FEN:
        return self._board.fen()

    def active_color(self) -> str:
        return color_code(self._board.turn)

    def uci_to_san(self, fen: FEN, uci: str) -> Optional[str]:
        """Converts an engine move to SAN in the given position, or None if it is not legal there."""
        try:
            board = chess.Board(fen)
            move = chess.Move.from_uci(uci)
        except ValueError:
            logger.debug("Could not convert engine move to SAN.", fen=fen, uci=uci)
            return None
        if not board.is_legal(move):
            return None
        return board.san(move)
