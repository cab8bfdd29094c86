"""
Data access for the grading services.

The services only talk to the three protocols below. The SQLAlchemy classes
implement them on top of one ``AsyncSession`` per request.
"""
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import AsyncIterator, List, Optional, Protocol, Sequence
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from ..models.classroom import ClassRoom
from ..models.student import Student
from ..models.assignment import Assignment
from ..models.grade_structure import GradeStructureRecord
from ..models.grade import AssignmentGrade
from ..schemas.grading import GradeCategory, GradeStructure, RecordedScore
import logging

logger = logging.getLogger(__name__)


class ClassDirectory(Protocol):
    async def class_exists(self, class_id: int) -> bool: ...

    async def find_assignment_ids(self, class_id: int) -> List[int]: ...

    async def get_assignment_class(self, assignment_id: int) -> Optional[int]: ...


class StudentDirectory(Protocol):
    async def find_student_name(self, student_id: int) -> Optional[str]: ...


class GradeStore(Protocol):
    def transaction(self): ...

    async def find_active_structure(self, class_id: int) -> Optional[GradeStructure]: ...

    async def list_structures(self, class_id: int) -> List[GradeStructure]: ...

    async def get_structure(self, structure_id: int) -> Optional[GradeStructure]: ...

    async def deactivate_structures(self, class_id: int) -> int: ...

    async def insert_structure(self, class_id: int, teacher_id: int, name: str, description: str,
                               categories: Sequence[GradeCategory], total_points: float) -> GradeStructure: ...

    async def find_scores(self, assignment_ids: Sequence[int], student_id: int) -> List[RecordedScore]: ...

    async def list_scores(self, assignment_id: Optional[int] = None, student_id: Optional[int] = None,
                          class_id: Optional[int] = None) -> List[RecordedScore]: ...

    async def upsert_score(self, score: RecordedScore) -> RecordedScore: ...


def structure_from_record(record: GradeStructureRecord) -> GradeStructure:
    return GradeStructure(
        id=record.id,
        class_id=record.class_id,
        teacher_id=record.teacher_id,
        name=record.name,
        description=record.description or "",
        total_points=record.total_points,
        categories=tuple(GradeCategory.model_validate(c) for c in record.categories or []),
        is_active=record.is_active,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def score_from_record(record: AssignmentGrade) -> RecordedScore:
    return RecordedScore.model_validate(record)


class SqlAlchemyClassDirectory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def class_exists(self, class_id: int) -> bool:
        result = await self.session.execute(select(ClassRoom.id).filter(ClassRoom.id == class_id))
        return result.scalar_one_or_none() is not None

    async def find_assignment_ids(self, class_id: int) -> List[int]:
        result = await self.session.execute(
            select(Assignment.id).filter(Assignment.class_id == class_id).order_by(Assignment.id)
        )
        return list(result.scalars().all())

    async def get_assignment_class(self, assignment_id: int) -> Optional[int]:
        result = await self.session.execute(
            select(Assignment.class_id).filter(Assignment.id == assignment_id)
        )
        return result.scalar_one_or_none()


class SqlAlchemyStudentDirectory:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_student_name(self, student_id: int) -> Optional[str]:
        result = await self.session.execute(select(Student).filter(Student.id == student_id))
        student = result.scalar_one_or_none()
        return student.full_name if student else None


class SqlAlchemyGradeStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Commit everything written inside the block together, or nothing."""
        try:
            yield
            await self.session.commit()
        except Exception as e:
            logger.error(f"Rolling back grade store transaction: {e}")
            await self.session.rollback()
            raise

    async def find_active_structure(self, class_id: int) -> Optional[GradeStructure]:
        result = await self.session.execute(
            select(GradeStructureRecord)
            .filter(GradeStructureRecord.class_id == class_id, GradeStructureRecord.is_active == True)
            .order_by(GradeStructureRecord.id.desc())
        )
        # Newest wins if a concurrent activation left two rows active
        record = result.scalars().first()
        return structure_from_record(record) if record else None

    async def list_structures(self, class_id: int) -> List[GradeStructure]:
        result = await self.session.execute(
            select(GradeStructureRecord)
            .filter(GradeStructureRecord.class_id == class_id)
            .order_by(GradeStructureRecord.id.desc())
        )
        return [structure_from_record(r) for r in result.scalars().all()]

    async def get_structure(self, structure_id: int) -> Optional[GradeStructure]:
        result = await self.session.execute(
            select(GradeStructureRecord).filter(GradeStructureRecord.id == structure_id)
        )
        record = result.scalar_one_or_none()
        return structure_from_record(record) if record else None

    async def deactivate_structures(self, class_id: int) -> int:
        result = await self.session.execute(
            update(GradeStructureRecord)
            .where(GradeStructureRecord.class_id == class_id, GradeStructureRecord.is_active == True)
            .values(is_active=False, updated_at=datetime.now(timezone.utc))
        )
        await self.session.flush()
        return result.rowcount or 0

    async def insert_structure(self, class_id: int, teacher_id: int, name: str, description: str,
                               categories: Sequence[GradeCategory], total_points: float) -> GradeStructure:
        record = GradeStructureRecord(
            class_id=class_id,
            teacher_id=teacher_id,
            name=name,
            description=description,
            total_points=total_points,
            categories=[c.model_dump() for c in categories],
            is_active=True,
        )
        self.session.add(record)
        await self.session.flush()
        await self.session.refresh(record)
        return structure_from_record(record)

    async def find_scores(self, assignment_ids: Sequence[int], student_id: int) -> List[RecordedScore]:
        if not assignment_ids:
            return []
        result = await self.session.execute(
            select(AssignmentGrade)
            .filter(AssignmentGrade.student_id == student_id, AssignmentGrade.assignment_id.in_(assignment_ids))
            .order_by(AssignmentGrade.assignment_id)
        )
        return [score_from_record(r) for r in result.scalars().all()]

    async def list_scores(self, assignment_id: Optional[int] = None, student_id: Optional[int] = None,
                          class_id: Optional[int] = None) -> List[RecordedScore]:
        query = select(AssignmentGrade)
        if assignment_id is not None:
            query = query.filter(AssignmentGrade.assignment_id == assignment_id)
        if student_id is not None:
            query = query.filter(AssignmentGrade.student_id == student_id)
        if class_id is not None:
            query = query.join(Assignment, AssignmentGrade.assignment_id == Assignment.id).filter(
                Assignment.class_id == class_id
            )
        result = await self.session.execute(query.order_by(AssignmentGrade.assignment_id, AssignmentGrade.student_id))
        return [score_from_record(r) for r in result.scalars().all()]

    def _insert(self):
        # ON CONFLICT support lives in the dialect-specific insert constructs
        dialect = self.session.get_bind().dialect.name
        if dialect == "postgresql":
            return postgresql.insert
        if dialect == "sqlite":
            return sqlite.insert
        raise NotImplementedError(f"Grade upsert is not supported on {dialect}")

    async def upsert_score(self, score: RecordedScore) -> RecordedScore:
        values = {
            "assignment_id": score.assignment_id,
            "student_id": score.student_id,
            "category_id": score.category_id,
            "points": score.points,
            "max_points": score.max_points,
            "percentage": score.percentage,
            "feedback": score.feedback,
            "graded_by": score.graded_by,
            "graded_at": score.graded_at or datetime.now(timezone.utc),
        }
        insert = self._insert()
        statement = insert(AssignmentGrade).values(**values)
        statement = statement.on_conflict_do_update(
            index_elements=[AssignmentGrade.assignment_id, AssignmentGrade.student_id],
            set_={key: statement.excluded[key] for key in values if key not in ("assignment_id", "student_id")},
        )
        await self.session.execute(statement)
        await self.session.flush()

        result = await self.session.execute(
            select(AssignmentGrade)
            .filter(AssignmentGrade.assignment_id == score.assignment_id,
                    AssignmentGrade.student_id == score.student_id)
            .execution_options(populate_existing=True)
        )
        return score_from_record(result.scalar_one())
