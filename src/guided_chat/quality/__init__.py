"""Quality gate for generated aspirations."""

from .critic import MIN_QUALITY_SCORE, QualityGate, QualityVerdict, parse_total_score
from .fallback import build_aspiration_fallback, build_next_small_step

__all__ = [
    "MIN_QUALITY_SCORE",
    "QualityGate",
    "QualityVerdict",
    "build_aspiration_fallback",
    "build_next_small_step",
    "parse_total_score",
]
