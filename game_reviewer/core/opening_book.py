# game_reviewer/core/opening_book.py
"""
The opening-book gate and an in-memory, partitioned book.

A position is "in book" when its piece placement appears in any partition.
Castling rights, side to move and move counters are ignored.
"""

from typing import FrozenSet, Iterable, List

from game_reviewer.core.chess_utils import piece_placement
from game_reviewer.types import FEN, OpeningBook


class PartitionedOpeningBook(OpeningBook):
    """An opening book made of independent partitions, queried with a logical OR."""

    def __init__(self, partitions: Iterable[Iterable[str]] = ()):
        self._partitions: List[FrozenSet[str]] = [
            frozenset(piece_placement(entry) for entry in partition)
            for partition in partitions
        ]

    @property
    def partition_count(self) -> int:
        return len(self._partitions)

    def __len__(self) -> int:
        return sum(len(partition) for partition in self._partitions)

    def contains(self, piece_placement_field: str) -> bool:
        return any(piece_placement_field in partition for partition in self._partitions)


def is_book_position(fen: FEN, book: OpeningBook) -> bool:
    """Checks the piece placement of `fen` against the opening book."""
    return book.contains(piece_placement(fen))
