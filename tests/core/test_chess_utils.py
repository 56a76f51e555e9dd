# tests/core/test_chess_utils.py
import chess

from game_reviewer.core.chess_utils import (color_code, is_valid_fen, piece_placement,
                                            side_to_move, to_white_perspective)


def test_piece_placement():
    assert piece_placement(chess.STARTING_FEN) == chess.STARTING_BOARD_FEN
    assert piece_placement("  8/8/8/8/8/8/8/8 w - - 0 1") == "8/8/8/8/8/8/8/8"

def test_color_code():
    assert color_code(chess.WHITE) == "w"
    assert color_code(chess.BLACK) == "b"

def test_side_to_move():
    assert side_to_move(chess.STARTING_FEN) == "w"
    assert side_to_move("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1") == "b"
    assert side_to_move("garbage") == "w"

def test_is_valid_fen():
    assert is_valid_fen(chess.STARTING_FEN)
    assert not is_valid_fen("")
    assert not is_valid_fen("not a fen")
    # Syntactically fine, but White has no king.
    assert not is_valid_fen("4k3/8/8/8/8/8/8/8 w - - 0 1")

def test_to_white_perspective():
    assert to_white_perspective(60.0, 35.0, "w") == (60.0, 35.0)
    assert to_white_perspective(60.0, 35.0, "b") == (40.0, -35.0)
    assert to_white_perspective(None, None, "b") == (None, None)
