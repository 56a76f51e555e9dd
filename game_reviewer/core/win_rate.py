# game_reviewer/core/win_rate.py
"""
Pure conversions from engine evaluations to a 0-100 win rate.

Win rates are expressed from White's perspective. The centipawn curve is
centred on 55 rather than 50, which matches the empirical calibration the
review thresholds were tuned against.
"""

import math
from typing import Final, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from game_reviewer.types import EngineLine

CP_CLAMP: Final[int] = 1100
CONVERSION_FACTOR: Final[float] = -0.0038988
BASELINE_WIN_RATE: Final[float] = 55.0
UNSCORED_WIN_RATE: Final[float] = 50.0
MIN_WIN_RATE: Final[float] = 0.0
MAX_WIN_RATE: Final[float] = 100.0


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(value, high))


def centipawn_to_win_rate(cp: float) -> float:
    """
    Converts a centipawn score to a win rate.

    The raw curve spans [0, 110]; the result is clamped to [0, 100] so that
    large advantages read as certain wins instead of exceeding the scale.
    """
    clamped_cp = _clamp(cp, -CP_CLAMP, CP_CLAMP)
    probability = 2 / (1 + math.exp(CONVERSION_FACTOR * clamped_cp)) - 1
    return _clamp(BASELINE_WIN_RATE + BASELINE_WIN_RATE * probability, MIN_WIN_RATE, MAX_WIN_RATE)


def mate_to_win_rate(mate_distance: int) -> float:
    if mate_distance == 0:
        return BASELINE_WIN_RATE
    return MAX_WIN_RATE if mate_distance > 0 else MIN_WIN_RATE


def evaluation_to_win_rate(line: Optional["EngineLine"]) -> float:
    """
    Converts an engine line to a win rate.

    A missing line yields the neutral 55; a line with neither a mate nor a
    centipawn score yields 50.
    """
    if line is None:
        return BASELINE_WIN_RATE
    if line.mate is not None:
        return mate_to_win_rate(line.mate)
    if line.cp is not None:
        return centipawn_to_win_rate(line.cp)
    return UNSCORED_WIN_RATE


def percent_to_number(percent: Optional[str]) -> Optional[float]:
    """Parses strings like '57.31%' or '57.31'. Returns None for anything unparsable."""
    if percent is None:
        return None
    try:
        value = float(str(percent).replace('%', '').strip())
    except ValueError:
        return None
    return value if math.isfinite(value) else None
