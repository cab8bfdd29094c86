"""
Structured failure values returned by the grading components.

Nothing here is raised: validators and services return one of these objects
and the HTTP layer decides which status code and message to show.
"""
from enum import Enum
from typing import Any, Dict
from pydantic import BaseModel


class FailureKind(str, Enum):
    WEIGHT_SUM_INVALID = "WeightSumInvalid"
    NON_POSITIVE_WEIGHT = "NonPositiveWeight"
    SCORE_OUT_OF_RANGE = "ScoreOutOfRange"
    NO_ACTIVE_STRUCTURE = "NoActiveStructure"
    STUDENT_NOT_FOUND = "StudentNotFound"
    CLASS_NOT_FOUND = "ClassNotFound"
    ASSIGNMENT_NOT_FOUND = "AssignmentNotFound"
    STRUCTURE_NOT_FOUND = "StructureNotFound"


class GradingFailure(BaseModel):
    kind: FailureKind
    message: str
    details: Dict[str, Any] = {}

    class Config:
        frozen = True


class ValidationFailure(GradingFailure):
    """Input was rejected; nothing was written."""


class NotFound(GradingFailure):
    """A referenced record does not exist, so the result cannot be computed."""


def weight_sum_invalid(total_weight: float) -> ValidationFailure:
    return ValidationFailure(
        kind=FailureKind.WEIGHT_SUM_INVALID,
        message=f"Category weights must add up to 100% (currently {total_weight:g}%)",
        details={"total_weight": total_weight},
    )


def non_positive_weight(index: int, weight: float) -> ValidationFailure:
    return ValidationFailure(
        kind=FailureKind.NON_POSITIVE_WEIGHT,
        message="Every category weight must be greater than 0%",
        details={"index": index, "weight": weight},
    )


def not_found(kind: FailureKind, message: str, **details) -> NotFound:
    return NotFound(kind=kind, message=message, details=details)
