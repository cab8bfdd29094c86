from types import SimpleNamespace
import pytest
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from gradebook.core.database import Base
from gradebook.models import ClassRoom, Student, Assignment
from gradebook.schemas.grading import GradeCategoryInput, StructureMeta


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def school(session):
    """One class with four assignments, two enrolled students and an empty second class."""
    classroom = ClassRoom(name="Mathematics M.1", teacher_id=7)
    other_class = ClassRoom(name="Science M.1", teacher_id=7)
    alice = Student(first_name="Alice", last_name="Wong")
    bob = Student(first_name="Bob", last_name="Lee")
    session.add_all([classroom, other_class, alice, bob])
    await session.flush()

    assignments = [
        Assignment(title=f"Assignment {n}", max_points=max_points, class_id=classroom.id)
        for n, max_points in enumerate([25, 20, 25, 30], start=1)
    ]
    foreign = Assignment(title="Lab report", max_points=10, class_id=other_class.id)
    session.add_all(assignments + [foreign])
    await session.commit()

    return SimpleNamespace(
        class_id=classroom.id,
        other_class_id=other_class.id,
        teacher_id=7,
        alice_id=alice.id,
        bob_id=bob.id,
        assignment_ids=[a.id for a in assignments],
        foreign_assignment_id=foreign.id,
    )


@pytest.fixture
def midterm_categories():
    return [
        GradeCategoryInput(name="Before midterm", weight=25, max_points=25),
        GradeCategoryInput(name="Midterm exam", weight=20, max_points=20),
        GradeCategoryInput(name="After midterm", weight=25, max_points=25),
        GradeCategoryInput(name="Final exam", weight=30, max_points=30),
    ]


@pytest.fixture
def meta(school):
    return StructureMeta(teacher_id=school.teacher_id, name="Mathematics M.1 term 1")
