from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base


class AssignmentGrade(Base):
    __tablename__ = "gb_assignment_grades"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", name="uq_grade_assignment_student"),
    )

    id = Column(Integer, primary_key=True, index=True)
    points = Column(Float, nullable=False)
    max_points = Column(Float, nullable=False)
    percentage = Column(Float, nullable=False, default=0)
    feedback = Column(String, nullable=False, default="")

    # Plain string, may point at a category of a retired grade structure
    category_id = Column(String, nullable=True)

    graded_by = Column(Integer, nullable=False)
    graded_at = Column(DateTime(timezone=True), server_default=func.now())
    assignment_id = Column(Integer, ForeignKey("gb_assignments.id"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("gb_students.id"), nullable=False, index=True)

    assignment = relationship("Assignment", back_populates="grades")
    student = relationship("Student", back_populates="grades")
