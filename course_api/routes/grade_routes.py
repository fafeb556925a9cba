import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from course_api.auth.dependencies import require_roles
from course_api.database import get_db
from course_api.models.course import Course
from course_api.models.grade import Grade
from course_api.models.user import Role, User
from course_api.schemas import AssignGradeRequest, GradeResponse, MessageResponse, parse_int

router = APIRouter(tags=['grades'])

logger = logging.getLogger(__name__)

require_teacher = require_roles(Role.TEACHER)
require_student = require_roles(Role.STUDENT)

# Dialects with INSERT ... ON CONFLICT DO UPDATE.
UPSERT_INSERTS = {
    'sqlite': sqlite.insert,
    'postgresql': postgresql.insert,
}

GRADE_THRESHOLDS = (
    (90, 'A'),
    (80, 'B'),
    (70, 'C'),
    (60, 'D'),
)
FAILING_GRADE = 'F'


def convert_marks_to_grade(marks: float) -> str:
    for minimum, letter in GRADE_THRESHOLDS:
        if marks >= minimum:
            return letter
    return FAILING_GRADE


def upsert_grade(db: Session, course_id: int, student_id: int, marks: float) -> None:
    """Write ``marks`` for the pair, replacing any grade it already has.

    On SQLite and PostgreSQL this is one statement keyed by the
    (student_id, course_id) unique constraint. Other dialects fall back to
    find-then-write, which concurrent requests can race.
    """
    insert = UPSERT_INSERTS.get(db.get_bind().dialect.name)

    if insert is not None:
        statement = insert(Grade).values(course_id=course_id, student_id=student_id, marks=marks)
        statement = statement.on_conflict_do_update(
            index_elements=[Grade.student_id, Grade.course_id],
            set_={'marks': statement.excluded.marks},
        )
        db.execute(statement)
    else:
        existing_grade = db.query(Grade).filter(
            Grade.student_id == student_id,
            Grade.course_id == course_id,
        ).first()
        if existing_grade:
            existing_grade.marks = marks
        else:
            db.add(Grade(course_id=course_id, student_id=student_id, marks=marks))

    db.commit()


@router.post(
    '/teacher/course/{course_id}/student/{student_id}/grade',
    response_model=MessageResponse,
)
def assign_grade(
    course_id: str,
    student_id: str,
    data: AssignGradeRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    parsed_course_id = parse_int(course_id)
    parsed_student_id = parse_int(student_id)
    if parsed_course_id is None or parsed_student_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error assigning grade')

    if data.grade is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Grade is required')

    try:
        course = db.query(Course).options(selectinload(Course.students)).filter(
            Course.id == parsed_course_id,
        ).first()
        if course is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')

        if not any(student.id == parsed_student_id for student in course.students):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail='Student not enrolled in this course',
            )

        upsert_grade(db, parsed_course_id, parsed_student_id, data.grade)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error assigning grade in course %s', parsed_course_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Error assigning grade',
        ) from exc

    logger.info(
        'Teacher %s graded student %s in course %s',
        current_user.id,
        parsed_student_id,
        parsed_course_id,
    )
    return {'message': 'Grade assigned successfully'}


@router.get('/student/course/{course_id}/grade', response_model=GradeResponse)
def get_my_grade(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_student),
):
    parsed_course_id = parse_int(course_id)
    if parsed_course_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error fetching grade')

    try:
        grade = db.query(Grade).filter(
            Grade.student_id == current_user.id,
            Grade.course_id == parsed_course_id,
        ).first()
    except SQLAlchemyError as exc:
        logger.exception('Error fetching grade in course %s', parsed_course_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Error fetching grade',
        ) from exc

    if grade is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail='Grade not found for this student in the course',
        )

    return {'marks': grade.marks, 'grade': convert_marks_to_grade(grade.marks)}
