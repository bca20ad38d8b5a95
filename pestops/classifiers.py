"""Keyword classifiers for pest category and job complexity"""
import re
from typing import List, Optional, Sequence, Tuple

from .models import Job
from config import (
    PEST_CATEGORY_RULES, COMPLEXITY_WEIGHTS, COMPLEXITY_LEVELS, FALLBACK_CATEGORY
)


class CategoryClassifier:
    """
    Ordered rule table mapping free text to a pest category.

    Rules are (category, regex) pairs checked in order against the lower-cased
    title and description; the first match wins.
    """

    def __init__(self, rules: Sequence[Tuple[str, str]] = PEST_CATEGORY_RULES,
                 fallback: str = FALLBACK_CATEGORY):
        self.rules = [(category, re.compile(pattern, re.IGNORECASE)) for category, pattern in rules]
        self.fallback = fallback

    def classify_text(self, text: str) -> str:
        lowered = (text or '').lower()
        for category, pattern in self.rules:
            if pattern.search(lowered):
                return category
        return self.fallback

    def classify(self, job: Job) -> str:
        """Explicit category wins; otherwise classify title + description."""
        if job.category and job.category.strip():
            return job.category.strip()
        return self.classify_text(f"{job.title} {job.description}")


class ComplexityScorer:
    """
    Advisory complexity score from keywords in description and report.

    Each keyword found adds its weight once; every assignee beyond the first
    adds one point. The score never goes below zero.
    """

    def __init__(self, weights: Sequence[Tuple[str, int]] = COMPLEXITY_WEIGHTS,
                 levels: Sequence[Tuple[int, str]] = COMPLEXITY_LEVELS):
        self.weights = [(keyword.lower(), weight) for keyword, weight in weights]
        self.levels = sorted(levels, key=lambda level: level[0], reverse=True)

    def matched_keywords(self, text: str) -> List[str]:
        lowered = (text or '').lower()
        return [keyword for keyword, _ in self.weights if keyword in lowered]

    def score_text(self, text: str, technician_count: int = 1) -> int:
        lowered = (text or '').lower()
        score = sum(weight for keyword, weight in self.weights if keyword in lowered)
        if technician_count > 1:
            score += technician_count - 1
        return max(0, score)

    def score(self, job: Job) -> int:
        return self.score_text(f"{job.description} {job.report}", job.technician_count)

    def level(self, score: int) -> Optional[str]:
        for minimum, name in self.levels:
            if score >= minimum:
                return name
        return None
