from enum import Enum
from typing import NamedTuple, Optional, Sequence
from ..schemas.grading import GradeCategory, RecordedScore
import logging

logger = logging.getLogger(__name__)


class ResolutionKind(str, Enum):
    EXACT_MATCH = "exact_match"
    FALLBACK_TO_FIRST = "fallback_to_first"
    UNATTRIBUTED = "unattributed"


class CategoryResolution(NamedTuple):
    kind: ResolutionKind
    category: Optional[GradeCategory] = None


def first_category(categories: Sequence[GradeCategory]) -> Optional[GradeCategory]:
    """Category with order 1, or the lowest order when a legacy sequence has none."""
    if not categories:
        return None
    for category in categories:
        if category.order == 1:
            return category
    return min(categories, key=lambda c: c.order)


def resolve_category(score: RecordedScore, categories: Sequence[GradeCategory]) -> CategoryResolution:
    """
    Decide which category of the active structure a recorded score counts toward.

    Scores without a category, or pointing at a category that no longer exists
    in the current structure, are folded into the first category. This keeps
    grades recorded under a replaced structure visible, at the cost of
    misattributing them.
    """
    if not categories:
        return CategoryResolution(ResolutionKind.UNATTRIBUTED)

    if score.category_id:
        for category in categories:
            if category.id == score.category_id:
                return CategoryResolution(ResolutionKind.EXACT_MATCH, category)

    fallback = first_category(categories)
    logger.debug(
        f"Score for assignment {score.assignment_id} (category {score.category_id!r}) "
        f"falls back to category {fallback.id}"
    )
    return CategoryResolution(ResolutionKind.FALLBACK_TO_FIRST, fallback)
