"""
Utility functions for working with scores and summaries.

Provides helper functions for:
- Converting averaged scores to red/yellow/green status
- Normalizing averages to a health percentage
- Classifying a score series as improving/stable/declining
- Formatting distributions for display
"""

from typing import Dict, Optional, Sequence

from .records import HealthStatus, TrendDirection


MAX_SCORE = 3.0

DEFAULT_GREEN_THRESHOLD = 2.5
DEFAULT_YELLOW_THRESHOLD = 1.5
DEFAULT_TREND_THRESHOLD = 0.2


def score_to_status(
    score: float,
    green_threshold: float = DEFAULT_GREEN_THRESHOLD,
    yellow_threshold: float = DEFAULT_YELLOW_THRESHOLD,
) -> HealthStatus:
    """Convert an averaged 1-3 score to red/yellow/green status."""
    if score >= green_threshold:
        return HealthStatus.GREEN
    elif score >= yellow_threshold:
        return HealthStatus.YELLOW
    else:
        return HealthStatus.RED


def health_percentage(score: Optional[float]) -> Optional[float]:
    """Express an averaged score as a percentage of the best possible score."""
    if score is None:
        return None
    return score / MAX_SCORE * 100


def classify_trend(
    scores: Sequence[Optional[float]],
    threshold: float = DEFAULT_TREND_THRESHOLD,
) -> TrendDirection:
    """
    Classify a chronological series of period averages.

    Periods with no data (None) are skipped. The last two remaining values
    are compared; a move larger than `threshold` either way is a trend.
    """
    observed = [score for score in scores if score is not None]
    if len(observed) < 2:
        return TrendDirection.UNKNOWN

    diff = observed[-1] - observed[-2]

    if diff > threshold:
        return TrendDirection.IMPROVING
    elif diff < -threshold:
        return TrendDirection.DECLINING
    else:
        return TrendDirection.STABLE


def weighted_mean(values: Dict[str, float], weights: Dict[str, float]) -> Optional[float]:
    """Weighted mean over the keys present in `values`; None when nothing carries weight."""
    total_weight = sum(weights.get(key, 1.0) for key in values)
    if total_weight <= 0:
        return None
    return sum(value * weights.get(key, 1.0) for key, value in values.items()) / total_weight


def format_distribution_for_display(red: int, yellow: int, green: int) -> Dict[str, str]:
    """Format a red/yellow/green distribution for human-readable display."""
    total = red + yellow + green
    if total == 0:
        return {"total": "0", "green": "0", "yellow": "0", "red": "0"}

    return {
        "total": str(total),
        "green": f"{green} ({green / total * 100:.1f}%)",
        "yellow": f"{yellow} ({yellow / total * 100:.1f}%)",
        "red": f"{red} ({red / total * 100:.1f}%)",
    }
