import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from course_api.auth.dependencies import require_roles
from course_api.database import get_db
from course_api.models.course import Course
from course_api.models.user import Role, User
from course_api.schemas import EnrolledCourseResponse, EnrollRequest, MessageResponse, parse_int

router = APIRouter(prefix='/student', tags=['enrollment'])

logger = logging.getLogger(__name__)

require_student = require_roles(Role.STUDENT)


def find_student_grade(course: Course, student_id: int) -> float | None:
    for grade in course.grades:
        if grade.student_id == student_id:
            return grade.marks
    return None


@router.post('/course', response_model=MessageResponse)
def enroll(
    data: EnrollRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_student),
):
    course_id = parse_int(data.course_id)
    if course_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error enrolling in course')

    try:
        course = db.query(Course).filter(Course.id == course_id).first()
        if course is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error enrolling in course')

        if current_user not in course.students:
            course.students.append(current_user)
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error enrolling student %s in course %s', current_user.id, course_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Error enrolling in course',
        ) from exc

    logger.info('Student %s enrolled in course %s', current_user.id, course_id)
    return {'message': 'Enrolled in course'}


@router.delete('/course/{course_id}', response_model=MessageResponse)
def de_enroll(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_student),
):
    parsed_course_id = parse_int(course_id)
    if parsed_course_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error de-enrolling from course')

    try:
        course = db.query(Course).filter(Course.id == parsed_course_id).first()
        if course is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error de-enrolling from course')

        if current_user in course.students:
            course.students.remove(current_user)
            db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error de-enrolling student %s from course %s', current_user.id, parsed_course_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Error de-enrolling from course',
        ) from exc

    logger.info('Student %s de-enrolled from course %s', current_user.id, parsed_course_id)
    return {'message': 'Successfully de-enrolled from course'}


@router.get('/courses', response_model=list[EnrolledCourseResponse])
def list_my_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_student),
):
    try:
        courses = db.query(Course).options(selectinload(Course.grades)).filter(
            Course.students.any(User.id == current_user.id),
        ).order_by(Course.id).all()

        return [
            EnrolledCourseResponse(
                id=course.id,
                title=course.title,
                description=course.description,
                teacher_id=course.teacher_id,
                grade=find_student_grade(course, current_user.id),
            )
            for course in courses
        ]
    except SQLAlchemyError as exc:
        logger.exception('Error fetching enrolled courses for student %s', current_user.id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Error fetching enrolled courses',
        ) from exc
