import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from course_api.auth.dependencies import ALL_ROLES, require_roles
from course_api.database import get_db
from course_api.models.course import Course
from course_api.models.user import Role, User
from course_api.schemas import (
    CourseCreatedResponse,
    CourseDetailResponse,
    CourseRequest,
    CourseUpdatedResponse,
    CourseWithTeacherResponse,
    MessageResponse,
    UserResponse,
    parse_int,
)

router = APIRouter(tags=['courses'])

logger = logging.getLogger(__name__)

require_admin = require_roles(Role.ADMIN)
require_teacher = require_roles(Role.TEACHER)
require_any_role = require_roles(*ALL_ROLES)


def parse_course_id(value) -> int:
    course_id = parse_int(value)
    if course_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid course ID')
    return course_id


def parse_teacher_id(value) -> int:
    teacher_id = parse_int(value)
    if teacher_id is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid teacherId')
    return teacher_id


def storage_error(exc: SQLAlchemyError, detail: str) -> HTTPException:
    logger.exception(detail)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.post('/admin/course', response_model=CourseCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_course(
    data: CourseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    teacher_id = parse_teacher_id(data.teacher_id)

    if not data.title:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error creating course')

    try:
        course = Course(title=data.title, description=data.description, teacher_id=teacher_id)
        db.add(course)
        db.commit()
        db.refresh(course)
    except IntegrityError as exc:
        db.rollback()
        logger.warning('Rejected course for teacher %s: %s', teacher_id, exc)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error creating course') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise storage_error(exc, 'Error creating course') from exc

    logger.info('Admin %s created course %s', current_user.id, course.id)
    return {'message': 'Course created', 'course': course}


@router.get('/admin/courses', response_model=list[CourseDetailResponse])
def list_courses_admin(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    try:
        return db.query(Course).options(
            selectinload(Course.teacher),
            selectinload(Course.students),
        ).order_by(Course.id).all()
    except SQLAlchemyError as exc:
        raise storage_error(exc, 'Error fetching courses') from exc


@router.put('/admin/course/{course_id}', response_model=CourseUpdatedResponse)
def update_course(
    course_id: str,
    data: CourseRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    parsed_course_id = parse_course_id(course_id)
    teacher_id = parse_teacher_id(data.teacher_id)

    try:
        course = db.query(Course).filter(Course.id == parsed_course_id).first()
        if course is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error updating course')

        if data.title is not None:
            course.title = data.title
        if data.description is not None:
            course.description = data.description
        course.teacher_id = teacher_id

        db.commit()
        db.refresh(course)
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error updating course') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise storage_error(exc, 'Error updating course') from exc

    logger.info('Admin %s updated course %s', current_user.id, course.id)
    return {'message': 'Course updated successfully', 'updated_course': course}


@router.delete('/admin/course/{course_id}', response_model=MessageResponse)
def delete_course(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    parsed_course_id = parse_course_id(course_id)

    try:
        course = db.query(Course).filter(Course.id == parsed_course_id).first()
        if course is None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error deleting course')

        db.delete(course)
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Error deleting course') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise storage_error(exc, 'Error deleting course') from exc

    logger.info('Admin %s deleted course %s', current_user.id, parsed_course_id)
    return {'message': 'Course deleted successfully'}


@router.get('/courses', response_model=list[CourseWithTeacherResponse])
def list_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_any_role),
):
    try:
        return db.query(Course).options(selectinload(Course.teacher)).order_by(Course.id).all()
    except SQLAlchemyError as exc:
        raise storage_error(exc, 'Error fetching available courses') from exc


@router.get('/teacher/courses', response_model=list[CourseDetailResponse])
def list_teacher_courses(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    try:
        return db.query(Course).options(
            selectinload(Course.teacher),
            selectinload(Course.students),
        ).filter(Course.teacher_id == current_user.id).order_by(Course.id).all()
    except SQLAlchemyError as exc:
        raise storage_error(exc, 'Error fetching courses') from exc


@router.get('/teacher/course/{course_id}/students', response_model=list[UserResponse])
def list_course_students(
    course_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_teacher),
):
    parsed_course_id = parse_course_id(course_id)

    try:
        course = db.query(Course).options(selectinload(Course.students)).filter(
            Course.id == parsed_course_id,
        ).first()
    except SQLAlchemyError as exc:
        raise storage_error(exc, 'Error fetching students for the course') from exc

    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail='Course not found')

    return course.students
