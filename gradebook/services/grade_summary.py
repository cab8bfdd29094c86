from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable, Dict, List, Sequence, Union
from ..core.errors import FailureKind, GradingFailure, not_found
from ..schemas.grading import GradeCategory, RecordedScore, StudentGradeSummary
from ..utils.calculations import (
    calculate_category_summary,
    calculate_total_earned_points,
    calculate_final_percentage,
    round_half_up,
    calculate_final_grade,
)
from ..utils.categories import CategoryResolution, ResolutionKind, resolve_category
from .store import ClassDirectory, GradeStore, StudentDirectory
import logging

logger = logging.getLogger(__name__)

Resolver = Callable[[RecordedScore, Sequence[GradeCategory]], CategoryResolution]


def group_scores_by_category(scores: Sequence[RecordedScore], categories: Sequence[GradeCategory],
                             resolver: Resolver = resolve_category) -> Dict[str, List[RecordedScore]]:
    grouped: Dict[str, List[RecordedScore]] = defaultdict(list)
    for score in scores:
        resolution = resolver(score, categories)
        if resolution.kind == ResolutionKind.UNATTRIBUTED:
            continue
        grouped[resolution.category.id].append(score)
    return grouped


class GradeSummaryService:
    def __init__(self, store: GradeStore, classes: ClassDirectory, students: StudentDirectory,
                 resolver: Resolver = resolve_category):
        self.store = store
        self.classes = classes
        self.students = students
        self.resolver = resolver

    async def summarize(self, student_id: int, class_id: int) -> Union[StudentGradeSummary, GradingFailure]:
        """
        Compute a student's grade in a class against the class's active grade structure.

        Only reads; the summary is not stored.
        """
        logger.info(f"Getting grade summary for student {student_id} in class {class_id}")

        structure = await self.store.find_active_structure(class_id)
        if structure is None:
            logger.warning(f"No active grade structure for class {class_id}")
            return not_found(FailureKind.NO_ACTIVE_STRUCTURE, "No grade structure found for this class",
                             class_id=class_id)

        student_name = await self.students.find_student_name(student_id)
        if student_name is None:
            logger.warning(f"Student {student_id} not found")
            return not_found(FailureKind.STUDENT_NOT_FOUND, "Student not found", student_id=student_id)

        assignment_ids = await self.classes.find_assignment_ids(class_id)
        scores = await self.store.find_scores(assignment_ids, student_id)
        logger.info(
            f"Found {len(assignment_ids)} assignments and {len(scores)} grades "
            f"for student {student_id} in class {class_id}"
        )

        grouped = group_scores_by_category(scores, structure.categories, self.resolver)
        category_summaries = tuple(
            calculate_category_summary(category, grouped.get(category.id, []))
            for category in structure.categories
        )

        total_earned_points = calculate_total_earned_points(category_summaries)
        # The letter comes from the unrounded percentage; only the displayed value is rounded
        final_percentage = calculate_final_percentage(total_earned_points, structure.total_points)

        return StudentGradeSummary(
            student_id=student_id,
            student_name=student_name,
            grade_structure_id=structure.id,
            categories=category_summaries,
            total_earned_points=total_earned_points,
            total_max_points=structure.total_points,
            final_percentage=round_half_up(final_percentage),
            final_grade=calculate_final_grade(final_percentage),
            last_updated=datetime.now(timezone.utc),
        )
