from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from ..core.database import Base


class Assignment(Base):
    __tablename__ = "gb_assignments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    max_points = Column(Float, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    class_id = Column(Integer, ForeignKey("gb_classes.id"), nullable=False, index=True)

    classroom = relationship("ClassRoom", back_populates="assignments")
    grades = relationship("AssignmentGrade", back_populates="assignment", cascade="all, delete-orphan")
