# tests/core/test_opening_book.py
import chess

from game_reviewer.core.opening_book import PartitionedOpeningBook, is_book_position

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"
AFTER_E4_PLACEMENT = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR"


def test_entries_are_normalized_to_piece_placement():
    book = PartitionedOpeningBook([[AFTER_E4]])
    assert book.contains(AFTER_E4_PLACEMENT)
    assert len(book) == 1

def test_lookup_is_an_or_across_partitions():
    # Arrange
    book = PartitionedOpeningBook([[chess.STARTING_FEN], [AFTER_E4]])

    # Act / Assert
    assert book.partition_count == 2
    assert book.contains(AFTER_E4_PLACEMENT)
    assert book.contains(chess.STARTING_BOARD_FEN)
    assert not book.contains("8/8/8/8/8/8/8/8")

def test_empty_book_contains_nothing():
    book = PartitionedOpeningBook()
    assert book.partition_count == 0
    assert not is_book_position(chess.STARTING_FEN, book)

def test_is_book_position_ignores_clocks_and_side_to_move():
    book = PartitionedOpeningBook([[AFTER_E4]])
    transposed = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR w - - 12 30"
    assert is_book_position(transposed, book)
