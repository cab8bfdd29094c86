import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Tuple
from ..schemas.grading import GradeCategory, RecordedScore, CategorySummary
import logging

logger = logging.getLogger(__name__)

# Lower bound of each band, checked top-down
GRADE_THRESHOLDS: List[Tuple[float, str]] = [
    (80, "A"),
    (75, "B+"),
    (70, "B"),
    (65, "C+"),
    (60, "C"),
    (55, "D+"),
    (50, "D"),
]
FAILING_GRADE = "F"


def round_half_up(value: float, places: int = 2) -> float:
    """Round like a person would: 0.125 -> 0.13, not banker's rounding."""
    # Beyond this magnitude a float has no digits left after the decimal point
    if not math.isfinite(value) or abs(value) >= 1e15:
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def calculate_raw_percentage(earned: float, maximum: float) -> float:
    """Unrounded percentage of earned over maximum; a maximum of 0 gives 0."""
    if maximum == 0:
        logger.debug(f"Maximum of 0 for {earned} earned points, percentage is 0")
        return 0.0
    return earned / maximum * 100


def calculate_percentage(earned: float, maximum: float) -> float:
    """Percentage of earned over maximum, rounded to 2 decimal places."""
    return round_half_up(calculate_raw_percentage(earned, maximum))


def calculate_weighted_points(percentage: float, weight: float) -> float:
    return round_half_up(percentage * weight / 100)


def sum_points(scores: Iterable[RecordedScore]) -> float:
    # fsum is exact, so the total does not depend on the order of the scores
    return math.fsum(score.points for score in scores)


def calculate_category_summary(category: GradeCategory, scores: Iterable[RecordedScore]) -> CategorySummary:
    """
    Summarize the scores resolved to one category.

    Every score is summed, even if several assignments land in the same
    category; the sum is not capped at the category maximum.
    """
    earned_points = sum_points(scores)
    percentage = calculate_percentage(earned_points, category.max_points)

    return CategorySummary(
        category_id=category.id,
        category_name=category.name,
        earned_points=earned_points,
        max_points=category.max_points,
        percentage=percentage,
        weight=category.weight,
        weighted_points=calculate_weighted_points(percentage, category.weight),
    )


def calculate_total_earned_points(summaries: Iterable[CategorySummary]) -> float:
    return math.fsum(summary.earned_points for summary in summaries)


def calculate_final_percentage(total_earned_points: float, total_points: float) -> float:
    """
    Unrounded final percentage from raw points over the structure's total points.

    The weighted points of each category are for display only and do not
    feed into this number. Map the letter grade from this value and round
    only what is shown.
    """
    return calculate_raw_percentage(total_earned_points, total_points)


def calculate_final_grade(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return FAILING_GRADE
