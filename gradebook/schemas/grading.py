from datetime import datetime
from typing import Optional, Tuple
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class GradingModel(BaseModel):
    """Immutable value type, serialized with camelCase keys."""

    class Config:
        frozen = True
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class GradeCategoryInput(GradingModel):
    name: str = Field(min_length=1)
    description: str = ""
    weight: float = Field(allow_inf_nan=False)
    max_points: float = Field(gt=0, allow_inf_nan=False)


class GradeCategory(GradingModel):
    id: str = Field(min_length=1)
    name: str
    description: str = ""
    weight: float = Field(allow_inf_nan=False)
    # Zero is tolerated for categories read back from older documents
    max_points: float = Field(ge=0, allow_inf_nan=False)
    order: int = Field(ge=1)


class StructureMeta(GradingModel):
    teacher_id: int
    name: str = Field(min_length=1)
    description: str = ""


class GradeStructure(GradingModel):
    id: int
    class_id: int
    teacher_id: int
    name: str
    description: str = ""
    total_points: float = Field(ge=0, allow_inf_nan=False)
    categories: Tuple[GradeCategory, ...] = ()
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("categories")
    @classmethod
    def check_categories(cls, categories: Tuple[GradeCategory, ...]) -> Tuple[GradeCategory, ...]:
        ids = [c.id for c in categories]
        if len(set(ids)) != len(ids):
            raise ValueError("category ids must be unique within a grade structure")
        orders = [c.order for c in categories]
        if len(set(orders)) != len(orders):
            raise ValueError("category order values must be unique within a grade structure")
        return tuple(sorted(categories, key=lambda c: c.order))


class GradeEntry(GradingModel):
    """A grade as submitted by a teacher, before range checks."""

    assignment_id: int
    student_id: int
    category_id: Optional[str] = None
    points: float = Field(allow_inf_nan=False)
    max_points: float = Field(gt=0, allow_inf_nan=False)
    feedback: str = Field("", max_length=500)
    graded_by: int


class RecordedScore(GradingModel):
    assignment_id: int
    student_id: int
    category_id: Optional[str] = None
    points: float = Field(ge=0, allow_inf_nan=False)
    max_points: float = Field(gt=0, allow_inf_nan=False)
    percentage: float = 0
    feedback: str = ""
    graded_at: Optional[datetime] = None
    graded_by: int

    @model_validator(mode="after")
    def check_points(self) -> "RecordedScore":
        if self.points > self.max_points:
            raise ValueError("points cannot exceed max_points")
        return self


class CategorySummary(GradingModel):
    category_id: str
    category_name: str
    earned_points: float
    max_points: float
    percentage: float
    weight: float
    weighted_points: float


class StudentGradeSummary(GradingModel):
    student_id: int
    student_name: str
    grade_structure_id: int
    categories: Tuple[CategorySummary, ...]
    total_earned_points: float
    total_max_points: float
    final_percentage: float
    final_grade: str
    last_updated: datetime
