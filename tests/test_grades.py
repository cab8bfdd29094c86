import pytest
from sqlalchemy import select, func
from gradebook.core.errors import FailureKind, NotFound, ValidationFailure
from gradebook.models import AssignmentGrade
from gradebook.schemas.grading import GradeEntry, RecordedScore
from gradebook.services.grades import GradeRecorder
from gradebook.services.store import SqlAlchemyClassDirectory, SqlAlchemyGradeStore, SqlAlchemyStudentDirectory


@pytest.fixture
def recorder(session):
    return GradeRecorder(SqlAlchemyGradeStore(session), SqlAlchemyClassDirectory(session),
                         SqlAlchemyStudentDirectory(session))


async def count_grades(session):
    result = await session.execute(select(func.count(AssignmentGrade.id)))
    return result.scalar()


async def test_record_new_grade(recorder, school):
    score = await recorder.record(GradeEntry(assignment_id=school.assignment_ids[0], student_id=school.alice_id,
                                             category_id="abc", points=18, max_points=24, feedback="Good work",
                                             graded_by=7))

    assert isinstance(score, RecordedScore)
    assert score.points == 18
    assert score.percentage == 75
    assert score.category_id == "abc"
    assert score.feedback == "Good work"
    assert score.graded_by == 7
    assert score.graded_at is not None


async def test_recording_twice_updates_in_place(session, recorder, school):
    assignment_id = school.assignment_ids[0]
    await recorder.record(GradeEntry(assignment_id=assignment_id, student_id=school.alice_id, points=10,
                                     max_points=25, feedback="first try", graded_by=7))
    updated = await recorder.record(GradeEntry(assignment_id=assignment_id, student_id=school.alice_id,
                                               points=22, max_points=25, feedback="regraded", graded_by=8))

    assert await count_grades(session) == 1
    assert (updated.points, updated.feedback, updated.graded_by) == (22, "regraded", 8)

    stored = await recorder.list_scores(assignment_id=assignment_id)
    assert len(stored) == 1
    assert (stored[0].points, stored[0].feedback, stored[0].percentage) == (22, "regraded", 88)


async def test_other_students_keep_their_own_grade(session, recorder, school):
    assignment_id = school.assignment_ids[0]
    await recorder.record(GradeEntry(assignment_id=assignment_id, student_id=school.alice_id, points=10,
                                     max_points=25, graded_by=7))
    await recorder.record(GradeEntry(assignment_id=assignment_id, student_id=school.bob_id, points=20,
                                     max_points=25, graded_by=7))
    assert await count_grades(session) == 2


@pytest.mark.parametrize("points", [-1, 25.5])
async def test_points_out_of_range(session, recorder, school, points):
    failure = await recorder.record(GradeEntry(assignment_id=school.assignment_ids[0], student_id=school.alice_id,
                                               points=points, max_points=25, graded_by=7))
    assert isinstance(failure, ValidationFailure)
    assert failure.kind == FailureKind.SCORE_OUT_OF_RANGE
    assert await count_grades(session) == 0


async def test_unknown_assignment(recorder, school):
    failure = await recorder.record(GradeEntry(assignment_id=999, student_id=school.alice_id, points=1,
                                               max_points=25, graded_by=7))
    assert isinstance(failure, NotFound)
    assert failure.kind == FailureKind.ASSIGNMENT_NOT_FOUND


async def test_unknown_student(recorder, school):
    failure = await recorder.record(GradeEntry(assignment_id=school.assignment_ids[0], student_id=999, points=1,
                                               max_points=25, graded_by=7))
    assert failure.kind == FailureKind.STUDENT_NOT_FOUND


@pytest.mark.parametrize("category_id", ["default", ""])
async def test_placeholder_category_is_stored_as_missing(recorder, school, category_id):
    score = await recorder.record(GradeEntry(assignment_id=school.assignment_ids[0], student_id=school.alice_id,
                                             category_id=category_id, points=5, max_points=25, graded_by=7))
    assert score.category_id is None


async def test_list_scores_filters(recorder, school):
    a1, a2, _, _ = school.assignment_ids
    for assignment_id, student_id in [(a1, school.alice_id), (a2, school.alice_id), (a1, school.bob_id),
                                      (school.foreign_assignment_id, school.alice_id)]:
        await recorder.record(GradeEntry(assignment_id=assignment_id, student_id=student_id, points=5,
                                         max_points=10, graded_by=7))

    assert len(await recorder.list_scores()) == 4
    assert len(await recorder.list_scores(student_id=school.alice_id)) == 3
    assert len(await recorder.list_scores(class_id=school.class_id)) == 3
    assert len(await recorder.list_scores(class_id=school.class_id, student_id=school.alice_id)) == 2
    assert [s.student_id for s in await recorder.list_scores(assignment_id=a1)] == [school.alice_id, school.bob_id]


def test_recorded_score_rejects_points_above_maximum():
    with pytest.raises(ValueError):
        RecordedScore(assignment_id=1, student_id=1, points=11, max_points=10, graded_by=1)
