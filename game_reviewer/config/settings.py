# game_reviewer/config/settings.py
"""
Configuration settings for the game review pipeline, powered by Pydantic.

This module centralizes all tunable parameters, default values, and configuration
schemas. Settings can be overridden from environment variables, keeping
configuration separate from code.
"""
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Nested Models for Configuration Schemas ---

class QualityThresholdsModel(BaseModel):
    """
    Win-rate loss thresholds for the standard move buckets.

    Values are signed changes in win rate (0-100 scale) from the mover's
    perspective. A change below `blunder` is a Blunder, below `mistake` a
    Mistake, and so on; anything at or above `good` is Very Good.
    """
    blunder: float = Field(-22.2, description="Win-rate change below which a move is a 'Blunder'.")
    mistake: float = Field(-11.1, description="Win-rate change below which a move is a 'Mistake'.")
    dubious: float = Field(-5.5, description="Win-rate change below which a move is 'Dubious'.")
    good: float = Field(-2.2, description="Win-rate change below which a move is only 'Good'.")

    @model_validator(mode='after')
    def validate_thresholds_are_sorted(self) -> 'QualityThresholdsModel':
        """Ensures the thresholds are ascending from Blunder to Good."""
        values = [self.blunder, self.mistake, self.dubious, self.good]
        if not all(values[i] <= values[i + 1] for i in range(len(values) - 1)):
            raise ValueError("Configuration error: quality thresholds must be sorted.")
        return self

class ExceptionalMoveCriteriaModel(BaseModel):
    """Defines the criteria for a move to be classified as 'Brilliant'."""
    max_advantage_drop: float = Field(2.0, description="The move may not lose more than this much win rate.")
    min_swing: float = Field(10.0, description="Minimum improvement for a reversed outcome, and minimum gap over the second-best line.")
    equality_line: float = Field(50.0, description="The win rate that must be crossed for the outcome to count as reversed.")
    behind_threshold: float = Field(55.0, description="A mover below (White) or above (Black) this after the move is still behind.")
    white_alternative_winning: float = Field(99.0, description="White's second-best line above this means any move was winning.")
    black_alternative_winning: float = Field(4.0, description="Black's second-best line below this means any move was winning.")

class ReviewSettings(BaseModel):
    """Groups all settings related to the review pipeline."""
    depth: int = Field(11, description="The search depth for the position evaluator.")
    multipv: int = Field(3, description="The number of ranked lines requested per position.")
    isolate_evaluator_failures: bool = Field(
        True, description="Mark a ply 'Unknown' when its evaluation fails instead of aborting the review."
    )
    phase_one_weight: float = Field(95.0, description="Share of the progress bar spent collecting evaluations.")

    thresholds: QualityThresholdsModel = Field(default_factory=QualityThresholdsModel)
    exceptional_move: ExceptionalMoveCriteriaModel = Field(default_factory=ExceptionalMoveCriteriaModel)

class EngineSettings(BaseModel):
    """Configuration for the Stockfish position evaluator."""
    path: Optional[str] = Field(None, description="The file path to the Stockfish executable. Searched for when omitted.")
    depth: int = Field(11, description="The default search depth for this engine.")
    parameters: dict = Field(default_factory=lambda: {"Threads": 1, "Hash": 128},
                             description="UCI parameters set on engine startup.")

class CloudCacheSettings(BaseModel):
    """Configuration for the remote ChessDB evaluation cache."""
    enabled: bool = True
    base_url: str = "https://www.chessdb.cn/cdb.php"
    timeout_s: float = Field(10.0, description="Per-request timeout in seconds.")
    learn: bool = Field(True, description="Ask ChessDB to queue unknown positions for learning.")
    max_candidates: int = Field(5, description="Number of ranked candidates kept from a response.")

class CacheSettings(BaseModel):
    """Configuration for the local engine-result store."""
    enabled: bool = True
    db_filepath: str = Field("data/evaluation_cache.db", description="The file path for the SQLite cache database.")

class OpeningBookSettings(BaseModel):
    """Configuration for the opening-book partitions."""
    partition_paths: List[str] = Field(default_factory=list, description="JSON files keyed by FEN, one per partition.")

# --- Main Application Settings Class ---

class Settings(BaseSettings):
    """
    Main configuration class for the application.

    It loads settings from environment variables with the prefix 'GAME_REVIEWER_'.
    Nested models can be configured using a double underscore delimiter, e.g.,
    `GAME_REVIEWER_REVIEW__DEPTH=15`.
    """
    model_config = SettingsConfigDict(env_prefix='GAME_REVIEWER_', env_nested_delimiter='__')

    review: ReviewSettings = Field(default_factory=ReviewSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)
    cloud_cache: CloudCacheSettings = Field(default_factory=CloudCacheSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    opening_book: OpeningBookSettings = Field(default_factory=OpeningBookSettings)
    log_level: str = "INFO"

# A singleton instance of the settings, accessible throughout the application.
settings = Settings()
