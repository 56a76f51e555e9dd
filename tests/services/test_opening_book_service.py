# tests/services/test_opening_book_service.py
import json

import chess
import pytest

from game_reviewer.exceptions import OpeningBookError
from game_reviewer.services.opening_book_service import load_opening_book

AFTER_E4 = "rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR b KQkq - 0 1"


@pytest.mark.asyncio
async def test_loads_one_partition_per_file(tmp_path):
    # Arrange
    eco_a = tmp_path / "ecoA.json"
    eco_a.write_text(json.dumps({AFTER_E4: {"name": "King's Pawn", "moves": "1. e4"}}))
    eco_b = tmp_path / "ecoB.json"
    eco_b.write_text(json.dumps([chess.STARTING_FEN]))

    # Act
    book = await load_opening_book([eco_a, eco_b])

    # Assert
    assert book.partition_count == 2
    assert book.contains("rnbqkbnr/pppppppp/8/8/4P3/8/PPPP1PPP/RNBQKBNR")
    assert book.contains(chess.STARTING_BOARD_FEN)

@pytest.mark.asyncio
async def test_bad_partitions_are_skipped(tmp_path):
    good = tmp_path / "good.json"
    good.write_text(json.dumps({AFTER_E4: {}}))
    corrupt = tmp_path / "corrupt.json"
    corrupt.write_text("{not json")
    scalar = tmp_path / "scalar.json"
    scalar.write_text("42")

    book = await load_opening_book([good, corrupt, scalar, tmp_path / "missing.json"])

    assert book.partition_count == 1

@pytest.mark.asyncio
async def test_no_paths_gives_an_empty_book():
    book = await load_opening_book([])
    assert book.partition_count == 0
    assert len(book) == 0

@pytest.mark.asyncio
async def test_strict_mode_raises_when_nothing_loads(tmp_path):
    with pytest.raises(OpeningBookError):
        await load_opening_book([tmp_path / "missing.json"], strict=True)
