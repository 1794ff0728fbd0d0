from typing import List, Tuple

from ..models.analytics import GradedEntry


GRADE_THRESHOLDS = [
    (90, "A+"),
    (75, "A"),
    (50, "B"),
    (25, "C"),
    (10, "D"),
]


def percentile_for_rank(index: int, population: int) -> float:
    """Percentile of the entry at 0-based `index` in a best-first ranking of `population` entries."""
    if population <= 1:
        return 100.0
    return (population - index - 1) / (population - 1) * 100


def letter_grade(percentile: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentile >= threshold:
            return grade
    return "F"


def grade_population(entries: List[Tuple[str, float]]) -> List[GradedEntry]:
    """
    Rank (key, score) pairs best-first and grade each against the whole population.
    Ties keep their insertion order.
    """
    ranked = sorted(entries, key=lambda entry: entry[1], reverse=True)
    graded: List[GradedEntry] = []
    for index, (key, score) in enumerate(ranked):
        percentile = percentile_for_rank(index, len(ranked))
        graded.append(GradedEntry(
            key=key,
            score=score,
            rank=index + 1,
            percentile=percentile,
            grade=letter_grade(percentile),
        ))
    return graded
