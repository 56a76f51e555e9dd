# game_reviewer/services/pgn_service.py
"""
Provides a service for reading games from PGN files.

This module is the filesystem adapter for PGN input. It turns each game's
main line into the plain move list the review pipeline consumes, along with
the starting position and a stable identifier used for log correlation.
"""

import asyncio
import io
import re
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import aiofiles
import chess
import chess.pgn
import structlog

from game_reviewer.exceptions import PgnServiceError

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class GameRecord:
    game_id: str; starting_fen: str; moves: List[str]
    white: str; black: str; result: str


class PgnService:
    """A stateless service for PGN file input."""

    # Patterns tried in order when deriving a game ID from the headers.
    _GAME_ID_EXTRACTION_PATTERNS: List[Tuple[str, re.Pattern]] = [
        ("Link", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
        ("Site", re.compile(r"lichess\.org/([a-zA-Z0-9]{8})")),
        ("Link", re.compile(r"chess\.com/game/live/(\d+)")),
        ("Site", re.compile(r"chess\.com/game/live/(\d+)")),
    ]

    @classmethod
    def extract_game_id(cls, headers: chess.pgn.Headers) -> str:
        """
        Extracts a unique ID from a game's PGN headers.

        Lichess and Chess.com URLs in the "Link" or "Site" tags win; otherwise
        the ID is built from the player names and the date.
        """
        for tag_name, pattern in cls._GAME_ID_EXTRACTION_PATTERNS:
            if header_value := headers.get(tag_name):
                if match := pattern.search(str(header_value)):
                    prefix = "lichess" if "lichess" in str(header_value) else "chesscom"
                    return f"{prefix}_{match.group(1)}"

        white = headers.get("White", "Unknown").replace(" ", "_")
        black = headers.get("Black", "Unknown").replace(" ", "_")
        date = headers.get("Date", "0000.00.00")
        return f"local_{white}_vs_{black}_{date}"

    @classmethod
    def _to_record(cls, game: chess.pgn.Game) -> GameRecord:
        board = game.board()
        starting_fen = board.fen()
        moves: List[str] = []
        for move in game.mainline_moves():
            moves.append(board.san(move))
            board.push(move)
        headers = game.headers
        return GameRecord(
            game_id=cls.extract_game_id(headers),
            starting_fen=starting_fen,
            moves=moves,
            white=headers.get("White", "?"),
            black=headers.get("Black", "?"),
            result=headers.get("Result", "*"),
        )

    @classmethod
    def parse_games(cls, pgn_text: str) -> List[GameRecord]:
        """Parses every game in a PGN string. Games python-chess cannot read are skipped."""
        records: List[GameRecord] = []
        handle = io.StringIO(pgn_text)
        while True:
            game = chess.pgn.read_game(handle)
            if game is None:
                break
            if game.errors:
                logger.warning("Skipping game with PGN errors.", error=str(game.errors[0]))
                continue
            records.append(cls._to_record(game))
        return records

    async def read_games(self, pgn_filepath: Path) -> List[GameRecord]:
        """
        Reads all games from a PGN file.

        Raises:
            PgnServiceError: If the file cannot be found or read.
        """
        try:
            async with aiofiles.open(pgn_filepath, "r", encoding="utf-8", errors="replace") as f:
                text = await f.read()
        except OSError as e:
            raise PgnServiceError(f"Could not read PGN file {pgn_filepath}: {e}") from e
        return await asyncio.to_thread(self.parse_games, text)
