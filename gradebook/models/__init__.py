from .classroom import ClassRoom
from .student import Student
from .assignment import Assignment
from .grade_structure import GradeStructureRecord
from .grade import AssignmentGrade

__all__ = [
    "ClassRoom",
    "Student",
    "Assignment",
    "GradeStructureRecord",
    "AssignmentGrade"
]
