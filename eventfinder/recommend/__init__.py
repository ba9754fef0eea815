"""Prompt parsing, relevance ranking and schedule selection for events."""

from .engine import RecommendationEngine
from .intent import extract_filters
from .scorer import score_candidates
from .selector import select_schedule

__all__ = ["RecommendationEngine", "extract_filters", "score_candidates", "select_schedule"]
