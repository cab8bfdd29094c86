from datetime import datetime, timezone
from typing import List, Optional, Union
from ..core.errors import FailureKind, GradingFailure, ValidationFailure, not_found
from ..schemas.grading import GradeEntry, RecordedScore
from ..utils.calculations import calculate_percentage
from .store import ClassDirectory, GradeStore, StudentDirectory
import logging

logger = logging.getLogger(__name__)

# Placeholder some clients send instead of leaving the category out
DEFAULT_CATEGORY_ID = "default"


def normalize_category_id(category_id: Optional[str]) -> Optional[str]:
    if not category_id or category_id == DEFAULT_CATEGORY_ID:
        return None
    return category_id


class GradeRecorder:
    def __init__(self, store: GradeStore, classes: ClassDirectory, students: StudentDirectory):
        self.store = store
        self.classes = classes
        self.students = students

    async def record(self, entry: GradeEntry) -> Union[RecordedScore, GradingFailure]:
        """Create or update the single grade of a student for an assignment."""
        if entry.points < 0 or entry.points > entry.max_points:
            return ValidationFailure(
                kind=FailureKind.SCORE_OUT_OF_RANGE,
                message="Points must be between 0 and the maximum points",
                details={"points": entry.points, "max_points": entry.max_points},
            )

        if await self.classes.get_assignment_class(entry.assignment_id) is None:
            logger.warning(f"Assignment {entry.assignment_id} not found")
            return not_found(FailureKind.ASSIGNMENT_NOT_FOUND, "Assignment not found",
                             assignment_id=entry.assignment_id)

        if await self.students.find_student_name(entry.student_id) is None:
            logger.warning(f"Student {entry.student_id} not found")
            return not_found(FailureKind.STUDENT_NOT_FOUND, "Student not found", student_id=entry.student_id)

        score = RecordedScore(
            assignment_id=entry.assignment_id,
            student_id=entry.student_id,
            category_id=normalize_category_id(entry.category_id),
            points=entry.points,
            max_points=entry.max_points,
            percentage=calculate_percentage(entry.points, entry.max_points),
            feedback=entry.feedback,
            graded_at=datetime.now(timezone.utc),
            graded_by=entry.graded_by,
        )

        async with self.store.transaction():
            saved = await self.store.upsert_score(score)

        logger.info(f"Saved grade for student {entry.student_id} on assignment {entry.assignment_id}")
        return saved

    async def list_scores(self, assignment_id: Optional[int] = None, student_id: Optional[int] = None,
                          class_id: Optional[int] = None) -> List[RecordedScore]:
        return await self.store.list_scores(assignment_id=assignment_id, student_id=student_id, class_id=class_id)
