import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from course_api.auth import jwt_handler
from course_api.auth.passwords import hash_password, verify_password
from course_api.database import get_db
from course_api.models.user import Role, User
from course_api.schemas import (
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    TeacherSummaryResponse,
)

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)

VALID_ROLES = {role.value for role in Role}


@router.post('/register', response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(data: RegisterRequest, db: Session = Depends(get_db)):
    if not data.name or not data.email or not data.password or not data.role:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='All fields are required')

    if data.role not in VALID_ROLES:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='Invalid role')

    try:
        hashed_password = hash_password(data.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    try:
        existing_user = db.query(User).filter(User.email == data.email).first()
        if existing_user:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists')

        user = User(
            name=data.name,
            email=data.email,
            password=hashed_password,
            role=data.role,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same email.
        db.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='User already exists') from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Error in /register')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Internal server error',
        ) from exc

    logger.info('Registered %s user %s', user.role, user.email)
    return {'message': 'User registered successfully', 'user': user}


@router.post('/login', response_model=LoginResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.email or not data.password:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

    try:
        user = db.query(User).filter(User.email == data.email).first()
    except SQLAlchemyError as exc:
        logger.exception('Error in /login')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Something went wrong',
        ) from exc

    if user is None or not verify_password(data.password, user.password):
        logger.warning('Failed login for %s', data.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail='Invalid credentials')

    token = jwt_handler.create_access_token(user.id)
    logger.info('User logged in: %s (%s)', user.email, user.role)
    return {'token': token, 'user': user}


@router.get('/teachers', response_model=list[TeacherSummaryResponse])
def list_teachers(db: Session = Depends(get_db)):
    try:
        return db.query(User).filter(User.role == Role.TEACHER.value).order_by(User.id).all()
    except SQLAlchemyError as exc:
        logger.exception('Error fetching teachers')
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Failed to fetch teachers',
        ) from exc
