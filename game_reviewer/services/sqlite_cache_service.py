# game_reviewer/services/sqlite_cache_service.py
"""
Persistent, on-disk store of local engine evaluations using SQLite.

Engine searches at review depth take seconds per position, and the same
opening and middlegame positions recur across games. Storing each
`PositionEvaluation` under a key made of the FEN, the search settings and the
engine identity lets later reviews skip those searches.
"""

import json
from dataclasses import asdict
from pathlib import Path
from typing import Optional, Tuple, Type, TYPE_CHECKING

import aiosqlite
import structlog

from game_reviewer.exceptions import CacheConnectionError, CacheReadError, CacheWriteError
from game_reviewer.types import CacheKey, EngineLine, PositionEvaluation
from game_reviewer.utils.retry import retry_with_backoff

if TYPE_CHECKING:
    from game_reviewer.config.settings import CacheSettings

logger = structlog.get_logger(__name__)

# "database is locked" under WAL contention is the error worth retrying.
RETRYABLE_EXCEPTIONS: Tuple[Type[Exception], ...] = (
    aiosqlite.OperationalError,
)

CREATE_CACHE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS position_evaluations (
    fen TEXT NOT NULL,
    depth INTEGER NOT NULL,
    multipv_count INTEGER NOT NULL,
    engine_identifier TEXT NOT NULL,
    best_move_uci TEXT,
    lines_json TEXT NOT NULL,
    timestamp DATETIME DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (fen, depth, multipv_count, engine_identifier)
)
"""

SELECT_EVALUATION_SQL = """
SELECT best_move_uci, lines_json FROM position_evaluations
WHERE fen = ? AND depth = ? AND multipv_count = ? AND engine_identifier = ?
"""

INSERT_EVALUATION_SQL = """
INSERT OR IGNORE INTO position_evaluations
    (fen, depth, multipv_count, engine_identifier, best_move_uci, lines_json)
VALUES (?, ?, ?, ?, ?, ?)
"""


class SqliteCacheService:
    """
    A key-value store of `PositionEvaluation`s in a local SQLite database.

    This class is an async context manager, managing its own connection lifecycle.
    """

    def __init__(self, settings: "CacheSettings"):
        self._db_path = Path(settings.db_filepath)
        self._connection: Optional[aiosqlite.Connection] = None

    async def __aenter__(self) -> "SqliteCacheService":
        """Opens the database and creates the schema on entering the context."""
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(self._db_path, timeout=10.0)
            await self._connection.execute("PRAGMA journal_mode=WAL;")
            await self._connection.execute(CREATE_CACHE_TABLE_SQL)
            await self._connection.commit()
        except (aiosqlite.Error, OSError) as e:
            await self._discard_connection()
            raise CacheConnectionError(f"Failed to initialize SQLite cache: {e}") from e
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _discard_connection(self) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            await connection.close()
        except aiosqlite.Error as e:
            logger.warning("Failed to close SQLite cache after a setup error.", error=str(e))

    def _ensure_connected(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise CacheConnectionError("Cache service is not connected.")
        return self._connection

    @retry_with_backoff(exceptions_to_catch=RETRYABLE_EXCEPTIONS, system="sqlite")
    async def get(self, key: CacheKey) -> Optional[PositionEvaluation]:
        """
        Looks up a stored evaluation.

        Returns:
            The stored `PositionEvaluation`, or None on a miss or a corrupt row.

        Raises:
            CacheReadError: If a non-retriable database error occurs.
        """
        conn = self._ensure_connected()
        params = (key.fen, key.depth, key.multipv, key.engine_id)
        try:
            async with conn.execute(SELECT_EVALUATION_SQL, params) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.OperationalError:
            raise
        except aiosqlite.Error as e:
            raise CacheReadError(f"Failed to fetch from cache: {e}") from e

        if row is None:
            return None

        best_move_uci, lines_json = row
        try:
            lines = [EngineLine(**data) for data in json.loads(lines_json)]
        except (json.JSONDecodeError, TypeError) as e:
            logger.warning("Corrupt data in cache for key, skipping.", cache_key=key, error=str(e))
            return None
        return PositionEvaluation(best_move_uci=best_move_uci, lines=lines)

    @retry_with_backoff(exceptions_to_catch=RETRYABLE_EXCEPTIONS, system="sqlite")
    async def put(self, key: CacheKey, evaluation: PositionEvaluation) -> None:
        """
        Stores an evaluation. Existing rows are kept, which makes the call idempotent.

        Raises:
            CacheWriteError: If a non-retriable database error occurs.
        """
        conn = self._ensure_connected()
        row = (
            key.fen, key.depth, key.multipv, key.engine_id, evaluation.best_move_uci,
            json.dumps([asdict(line) for line in evaluation.lines]),
        )
        try:
            await conn.execute(INSERT_EVALUATION_SQL, row)
            await conn.commit()
        except aiosqlite.OperationalError:
            raise
        except aiosqlite.Error as e:
            await conn.rollback()
            raise CacheWriteError(f"Failed to store into cache: {e}") from e
