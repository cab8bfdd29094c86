from typing import Optional, Sequence
from ..core.errors import ValidationFailure, weight_sum_invalid, non_positive_weight
import logging

logger = logging.getLogger(__name__)

WEIGHT_TOTAL = 100.0
WEIGHT_TOLERANCE = 0.01


def validate_grade_structure(categories: Sequence) -> Optional[ValidationFailure]:
    """
    Check the weights of a proposed category sequence.

    Each item needs a ``weight`` attribute. Returns None when the sequence may
    become a grade structure, otherwise the first failure found: the weight
    total is checked before individual weights.
    """
    weights = [float(category.weight) for category in categories]
    total_weight = sum(weights)

    if abs(total_weight - WEIGHT_TOTAL) > WEIGHT_TOLERANCE:
        logger.info(f"Rejected grade structure: weights add up to {total_weight}")
        return weight_sum_invalid(total_weight)

    for index, weight in enumerate(weights):
        if weight <= 0:
            logger.info(f"Rejected grade structure: category {index} has weight {weight}")
            return non_positive_weight(index, weight)

    return None
