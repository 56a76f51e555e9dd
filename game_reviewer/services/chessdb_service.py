# game_reviewer/services/chessdb_service.py
"""
Provides the `EvaluationCache` backed by the ChessDB cloud database.

ChessDB answers `queryall` requests with every known move in a position,
ranked, along with a score and a win rate for the side to move. A usable
answer lets the pipeline skip a local engine search for that ply.
"""

from typing import Any, Dict, List, Optional, TYPE_CHECKING

import httpx
import structlog

from game_reviewer.core.chess_utils import is_valid_fen
from game_reviewer.core.win_rate import percent_to_number
from game_reviewer.exceptions import CacheFetchError
from game_reviewer.types import FEN, CandidateMove, EvaluationCache
from game_reviewer.utils.retry import retry_with_backoff

if TYPE_CHECKING:
    from game_reviewer.config.settings import CloudCacheSettings

logger = structlog.get_logger(__name__)


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def parse_candidates(payload: Dict[str, Any], max_candidates: int) -> List[CandidateMove]:
    """
    Turns a `queryall` JSON body into ranked candidates.

    Any status other than "ok" (for example "unknown" for unseen positions)
    means there is nothing to use.
    """
    if payload.get("status") != "ok":
        return []
    moves = payload.get("moves")
    if not isinstance(moves, list):
        return []

    candidates = []
    for move in moves[:max_candidates]:
        if not isinstance(move, dict) or not move.get("uci"):
            continue
        candidates.append(
            CandidateMove(
                uci=str(move["uci"]),
                san=str(move.get("san") or move["uci"]),
                score=_to_float(move.get("score")),
                winrate_percent=percent_to_number(move.get("winrate")),
            )
        )
    return candidates


class ChessDbService(EvaluationCache):
    """
    An async client for ChessDB. Use as an async context manager, or pass in
    an existing `httpx.AsyncClient`.
    """

    def __init__(self, settings: "CloudCacheSettings", client: Optional[httpx.AsyncClient] = None):
        self._settings = settings
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "ChessDbService":
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout_s)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    def _build_params(self, fen: FEN) -> Dict[str, Any]:
        params: Dict[str, Any] = {"action": "queryall", "board": fen, "json": 1}
        if self._settings.learn:
            params["learn"] = 1
        return params

    @retry_with_backoff(exceptions_to_catch=(httpx.TransportError,), system="cloud_cache")
    async def _query(self, fen: FEN) -> Dict[str, Any]:
        if self._client is None:
            raise CacheFetchError("ChessDB client is not open.")
        response = await self._client.get(self._settings.base_url, params=self._build_params(fen))
        response.raise_for_status()
        return response.json()

    async def lookup(self, fen: FEN) -> List[CandidateMove]:
        """
        Returns up to `max_candidates` ranked moves for `fen`, best first.

        An invalid FEN returns an empty list without a request.

        Raises:
            CacheFetchError: On network errors, HTTP errors or an undecodable body.
        """
        if not is_valid_fen(fen):
            return []
        try:
            payload = await self._query(fen)
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            raise CacheFetchError(f"ChessDB lookup failed: {e}") from e
        if not isinstance(payload, dict):
            raise CacheFetchError("ChessDB returned an unexpected body.")

        candidates = parse_candidates(payload, self._settings.max_candidates)
        logger.debug("ChessDB lookup complete.", fen=fen, candidates=len(candidates))
        return candidates
