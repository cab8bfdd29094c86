from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel, Field
from typing import List
from ..core.database import get_db
from ..core.errors import GradingFailure, ValidationFailure
from ..schemas.grading import GradeCategoryInput, GradeStructure, StructureMeta
from ..services.grade_structures import ClassLocks, GradeStructureManager
from ..services.store import SqlAlchemyClassDirectory, SqlAlchemyGradeStore
import logging

logger = logging.getLogger(__name__)
router = APIRouter()

class_locks = ClassLocks()


class GradeStructureCreate(BaseModel):
    name: str = Field(min_length=1)
    description: str = ""
    class_id: int = Field(alias="classId")
    teacher_id: int = Field(alias="teacherId")
    categories: List[GradeCategoryInput]

    class Config:
        populate_by_name = True


def get_manager(db: AsyncSession = Depends(get_db)) -> GradeStructureManager:
    return GradeStructureManager(SqlAlchemyGradeStore(db), SqlAlchemyClassDirectory(db), class_locks)


def raise_for_failure(failure: GradingFailure):
    status_code = 400 if isinstance(failure, ValidationFailure) else 404
    raise HTTPException(status_code=status_code, detail=failure.model_dump(mode="json"))


@router.get("/grade-structures", response_model=List[GradeStructure])
async def get_grade_structures(class_id: int = Query(..., alias="classId"),
                               manager: GradeStructureManager = Depends(get_manager)):
    try:
        return await manager.list_for_class(class_id)
    except Exception as e:
        logger.error(f"Error getting grade structures for class {class_id}: {e}")
        raise HTTPException(status_code=500, detail="Error retrieving grade structures")


@router.get("/grade-structures/{structure_id}", response_model=GradeStructure)
async def get_grade_structure(structure_id: int, manager: GradeStructureManager = Depends(get_manager)):
    try:
        result = await manager.get(structure_id)
        if isinstance(result, GradingFailure):
            raise_for_failure(result)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting grade structure {structure_id}: {e}")
        raise HTTPException(status_code=500, detail="Error retrieving grade structure")


@router.post("/grade-structures", response_model=GradeStructure)
async def create_grade_structure(payload: GradeStructureCreate,
                                 manager: GradeStructureManager = Depends(get_manager)):
    try:
        meta = StructureMeta(teacher_id=payload.teacher_id, name=payload.name, description=payload.description)
        result = await manager.activate(payload.class_id, payload.categories, meta)
        if isinstance(result, GradingFailure):
            raise_for_failure(result)
        return result
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating grade structure: {e}")
        raise HTTPException(status_code=500, detail="Error creating grade structure")
