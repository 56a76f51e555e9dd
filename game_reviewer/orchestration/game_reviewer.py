# game_reviewer/orchestration/game_reviewer.py
"""
The stateful owner of review results.

`GameReviewer` holds what a consumer displays: the latest analyses, a 0-100
progress value and a busy flag. Each call to `review_game` gets a new
generation number; a run that finishes after a newer one has started is
stale and is discarded instead of overwriting the newer output.
"""

import time
import uuid
from typing import Iterable, List, Optional, TYPE_CHECKING

import structlog

from game_reviewer.exceptions import EvaluatorUnavailableError, GameReviewError
from game_reviewer.orchestration.review import review_moves
from game_reviewer.tracing import ReviewCorrelationID
from game_reviewer.types import MoveAnalysis, PlyError, ReviewResult
from game_reviewer.utils import metrics

if TYPE_CHECKING:
    from game_reviewer.config.settings import ReviewSettings
    from game_reviewer.types import ProcessingStage, ProgressCallback, ReviewCollaborators

logger = structlog.get_logger(__name__)

ENGINE_UNAVAILABLE_WARNING = "Chess engine unavailable. Try a different engine build or check the engine path."


class GameReviewer:
    """Runs reviews and publishes the result of the most recent one."""

    def __init__(
        self,
        settings: "ReviewSettings",
        collaborators: "ReviewCollaborators",
        progress_callback: Optional["ProgressCallback"] = None,
        stages: Optional[List["ProcessingStage"]] = None,
    ):
        self._settings = settings
        self._collaborators = collaborators
        self._progress_callback = progress_callback
        self._stages = stages
        self._generation = 0
        self._analyses: List[MoveAnalysis] = []
        self._errors: List[PlyError] = []
        self._warnings: List[str] = []
        self._progress = 0
        self._is_loading = False

    @property
    def analyses(self) -> List[MoveAnalysis]:
        return list(self._analyses)

    @property
    def errors(self) -> List[PlyError]:
        return list(self._errors)

    @property
    def warnings(self) -> List[str]:
        return list(self._warnings)

    @property
    def progress(self) -> int:
        return self._progress

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def generation(self) -> int:
        return self._generation

    def is_current(self, result: ReviewResult) -> bool:
        return result.generation == self._generation

    async def review_game(self, moves: Iterable[str], review_id: Optional[str] = None) -> ReviewResult:
        """
        Reviews a game and, if no newer review was started meanwhile, publishes the result.

        Failures never propagate: an unavailable evaluator or a pipeline-wide
        error becomes a warning, and the previously published analyses are kept.
        """
        self._generation += 1
        generation = self._generation
        cid = ReviewCorrelationID(review_id=review_id or uuid.uuid4().hex[:8], generation=generation)
        structlog.contextvars.bind_contextvars(review=cid.short_id)

        self._is_loading = True
        self._progress = 0

        async def _on_progress(value: int) -> None:
            if generation != self._generation:
                return
            self._progress = value
            if self._progress_callback is not None:
                await self._progress_callback(value)

        started = time.perf_counter()
        try:
            result = await review_moves(
                moves, self._settings, self._collaborators, _on_progress, self._stages
            )
            outcome = "completed"
        except EvaluatorUnavailableError:
            logger.warning("Chess engine unavailable, review not started.")
            result = ReviewResult(analyses=[], errors=[], warnings=[ENGINE_UNAVAILABLE_WARNING], completed=False)
            outcome = "evaluator_unavailable"
        except GameReviewError as e:
            logger.error("Review failed.", error=str(e), exc_info=True)
            result = ReviewResult(analyses=[], errors=[], warnings=[f"Analysis failed: {e}"], completed=False)
            outcome = "failed"
        except Exception as e:
            logger.critical("Unexpected error during review.", error=str(e), exc_info=True)
            result = ReviewResult(analyses=[], errors=[], warnings=[f"Analysis failed: {e}"], completed=False)
            outcome = "failed"
        finally:
            structlog.contextvars.unbind_contextvars("review")
            # Also covers cancellation, which is not caught above.
            if generation == self._generation:
                self._is_loading = False

        result.generation = generation

        if generation != self._generation:
            logger.info("Discarding stale review result.", generation=generation, current=self._generation)
            metrics.REVIEWS_TOTAL.labels(outcome="stale").inc()
            return result

        metrics.REVIEWS_TOTAL.labels(outcome=outcome).inc()
        self._warnings = list(result.warnings)
        if result.completed:
            metrics.REVIEW_DURATION_SECONDS.observe(time.perf_counter() - started)
            # Results are replaced wholesale, never merged.
            self._analyses = list(result.analyses)
            self._errors = list(result.errors)
        return result
