# tests/services/test_sqlite_cache_service.py
from unittest.mock import AsyncMock, MagicMock

import aiosqlite
import pytest

from game_reviewer.config.settings import CacheSettings
from game_reviewer.exceptions import CacheConnectionError
from game_reviewer.services.sqlite_cache_service import SqliteCacheService
from game_reviewer.types import CacheKey, EngineLine, PositionEvaluation

KEY = CacheKey(fen="8/8/8/8/8/8/8/8 w - - 0 1", depth=11, multipv=3, engine_id="stockfish_16")
EVALUATION = PositionEvaluation(
    best_move_uci="e2e4",
    lines=[
        EngineLine(cp=35, mate=None, depth=11, principal_variation=["e2e4", "e7e5"]),
        EngineLine(cp=None, mate=-3, depth=11),
    ],
)


@pytest.fixture
def cache_settings(tmp_path):
    return CacheSettings(db_filepath=str(tmp_path / "nested" / "cache.db"))


@pytest.mark.asyncio
async def test_put_then_get(cache_settings):
    # Arrange
    async with SqliteCacheService(cache_settings) as store:
        # Act
        await store.put(KEY, EVALUATION)
        stored = await store.get(KEY)

    # Assert
    assert stored == EVALUATION

@pytest.mark.asyncio
async def test_miss_returns_none(cache_settings):
    async with SqliteCacheService(cache_settings) as store:
        await store.put(KEY, EVALUATION)
        other_depth = CacheKey(fen=KEY.fen, depth=20, multipv=3, engine_id=KEY.engine_id)
        assert await store.get(other_depth) is None

@pytest.mark.asyncio
async def test_put_is_idempotent(cache_settings):
    replacement = PositionEvaluation(best_move_uci="d2d4", lines=[EngineLine(cp=0, mate=None, depth=11)])
    async with SqliteCacheService(cache_settings) as store:
        await store.put(KEY, EVALUATION)
        await store.put(KEY, replacement)
        assert await store.get(KEY) == EVALUATION

@pytest.mark.asyncio
async def test_rows_survive_reopening(cache_settings):
    async with SqliteCacheService(cache_settings) as store:
        await store.put(KEY, EVALUATION)
    async with SqliteCacheService(cache_settings) as store:
        assert await store.get(KEY) == EVALUATION

@pytest.mark.asyncio
async def test_unopened_store_raises(cache_settings):
    store = SqliteCacheService(cache_settings)
    with pytest.raises(CacheConnectionError):
        await store.get(KEY)

@pytest.mark.asyncio
async def test_unusable_directory_raises_connection_error(tmp_path):
    # Arrange
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("")
    settings = CacheSettings(db_filepath=str(blocker / "cache.db"))

    # Act / Assert
    with pytest.raises(CacheConnectionError):
        async with SqliteCacheService(settings):
            pass

@pytest.mark.asyncio
async def test_schema_failure_closes_connection(cache_settings, monkeypatch):
    # Arrange
    connection = MagicMock()
    connection.execute = AsyncMock(side_effect=aiosqlite.OperationalError("disk I/O error"))
    connection.close = AsyncMock()
    monkeypatch.setattr(aiosqlite, "connect", AsyncMock(return_value=connection))
    store = SqliteCacheService(cache_settings)

    # Act
    with pytest.raises(CacheConnectionError):
        await store.__aenter__()

    # Assert
    connection.close.assert_awaited_once()
    with pytest.raises(CacheConnectionError):
        await store.get(KEY)
