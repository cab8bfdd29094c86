import asyncio
import uuid
from contextlib import asynccontextmanager
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Union
from ..core.errors import FailureKind, GradingFailure, not_found
from ..schemas.grading import GradeCategory, GradeCategoryInput, GradeStructure, StructureMeta
from ..utils.validation import validate_grade_structure
from .store import ClassDirectory, GradeStore
import logging

logger = logging.getLogger(__name__)


class ClassLocks:
    """
    One asyncio lock per class, so activations for a class run one at a time in this process.

    A class's lock only lives while someone holds or waits for it, so the
    registry does not grow with the number of classes ever activated.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._holders: Dict[int, int] = defaultdict(int)

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, class_id: int):
        lock = self._locks.setdefault(class_id, asyncio.Lock())
        self._holders[class_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._holders[class_id] -= 1
            if not self._holders[class_id]:
                del self._holders[class_id]
                del self._locks[class_id]


def new_category_id() -> str:
    return uuid.uuid4().hex


def build_categories(proposed: Sequence[GradeCategoryInput]) -> List[GradeCategory]:
    return [
        GradeCategory(
            id=new_category_id(),
            name=category.name,
            description=category.description,
            weight=category.weight,
            max_points=category.max_points,
            order=index + 1,
        )
        for index, category in enumerate(proposed)
    ]


class GradeStructureManager:
    def __init__(self, store: GradeStore, classes: ClassDirectory, locks: Optional[ClassLocks] = None):
        self.store = store
        self.classes = classes
        self.locks = locks

    async def activate(self, class_id: int, proposed_categories: Sequence[GradeCategoryInput],
                       meta: StructureMeta) -> Union[GradeStructure, GradingFailure]:
        """
        Make a new grade structure the only active one for a class.

        Validation happens before anything is written. Older structures are
        kept but deactivated; the deactivation is flushed before the new row
        is inserted and both are committed through the store's transaction.
        """
        failure = validate_grade_structure(proposed_categories)
        if failure:
            return failure

        if not await self.classes.class_exists(class_id):
            logger.warning(f"Class {class_id} not found")
            return not_found(FailureKind.CLASS_NOT_FOUND, "Class not found", class_id=class_id)

        categories = build_categories(proposed_categories)
        total_points = sum(c.max_points for c in categories)

        if self.locks is None:
            return await self._replace_active(class_id, categories, total_points, meta)
        async with self.locks.hold(class_id):
            return await self._replace_active(class_id, categories, total_points, meta)

    async def _replace_active(self, class_id: int, categories: List[GradeCategory], total_points: float,
                              meta: StructureMeta) -> GradeStructure:
        async with self.store.transaction():
            deactivated = await self.store.deactivate_structures(class_id)
            structure = await self.store.insert_structure(
                class_id=class_id,
                teacher_id=meta.teacher_id,
                name=meta.name,
                description=meta.description,
                categories=categories,
                total_points=total_points,
            )

        logger.info(
            f"Activated grade structure {structure.id} for class {class_id} "
            f"({len(categories)} categories, {deactivated} deactivated)"
        )
        return structure

    async def list_for_class(self, class_id: int) -> List[GradeStructure]:
        return await self.store.list_structures(class_id)

    async def get(self, structure_id: int) -> Union[GradeStructure, GradingFailure]:
        structure = await self.store.get_structure(structure_id)
        if structure is None:
            logger.warning(f"Grade structure {structure_id} not found")
            return not_found(FailureKind.STRUCTURE_NOT_FOUND, "Grade structure not found",
                             structure_id=structure_id)
        return structure
