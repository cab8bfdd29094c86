from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base


class GradeStructureRecord(Base):
    __tablename__ = "gb_grade_structures"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(String, nullable=False, default="")
    teacher_id = Column(Integer, nullable=False)
    total_points = Column(Float, nullable=False)

    # Categories are embedded documents: id, name, description, weight, max_points, order
    categories = Column(JSON, nullable=False, default=list)

    is_active = Column(Boolean, nullable=False, default=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    class_id = Column(Integer, ForeignKey("gb_classes.id"), nullable=False, index=True)

    classroom = relationship("ClassRoom", back_populates="grade_structures")
