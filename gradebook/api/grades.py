from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from ..core.database import get_db
from ..core.errors import GradingFailure
from ..schemas.grading import GradeEntry, RecordedScore, StudentGradeSummary
from ..services.grades import GradeRecorder
from ..services.grade_summary import GradeSummaryService
from ..services.store import SqlAlchemyClassDirectory, SqlAlchemyGradeStore, SqlAlchemyStudentDirectory
from .grade_structures import raise_for_failure
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


def get_recorder(db: AsyncSession = Depends(get_db)) -> GradeRecorder:
    return GradeRecorder(SqlAlchemyGradeStore(db), SqlAlchemyClassDirectory(db), SqlAlchemyStudentDirectory(db))


def get_summary_service(db: AsyncSession = Depends(get_db)) -> GradeSummaryService:
    return GradeSummaryService(
        SqlAlchemyGradeStore(db), SqlAlchemyClassDirectory(db), SqlAlchemyStudentDirectory(db)
    )


@router.get("/grades", response_model=List[RecordedScore])
async def get_grades(assignment_id: Optional[int] = Query(None, alias="assignmentId"),
                     student_id: Optional[int] = Query(None, alias="studentId"),
                     class_id: Optional[int] = Query(None, alias="classId"),
                     recorder: GradeRecorder = Depends(get_recorder)):
    try:
        return await recorder.list_scores(assignment_id=assignment_id, student_id=student_id, class_id=class_id)
    except Exception as e:
        logger.error(f"Error getting grades: {e}")
        raise HTTPException(status_code=500, detail="Error retrieving grades")


@router.post("/grades", response_model=RecordedScore)
async def save_grade(entry: GradeEntry, recorder: GradeRecorder = Depends(get_recorder)):
    try:
        result = await recorder.record(entry)
        if isinstance(result, GradingFailure):
            raise_for_failure(result)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error saving grade: {e}")
        raise HTTPException(status_code=500, detail="Error saving grade")


@router.get("/grades/summary", response_model=StudentGradeSummary)
async def get_grade_summary(student_id: int = Query(..., alias="studentId"),
                            class_id: int = Query(..., alias="classId"),
                            service: GradeSummaryService = Depends(get_summary_service)):
    try:
        result = await service.summarize(student_id, class_id)
        if isinstance(result, GradingFailure):
            raise_for_failure(result)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error calculating grade summary: {e}")
        raise HTTPException(status_code=500, detail="Error calculating grade summary")
