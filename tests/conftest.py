import os

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')
os.environ.setdefault('JWT_SECRET_KEY', 'test-secret')
os.environ.setdefault('BCRYPT_ROUNDS', '4')

from course_api.auth.passwords import hash_password  # noqa: E402
from course_api.database import Base, get_db  # noqa: E402
from course_api.main import app  # noqa: E402
from course_api.models.course import Course  # noqa: E402
from course_api.models.user import User  # noqa: E402

DEFAULT_PASSWORD = 'secret123'


@pytest.fixture
def db_engine():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_user(db):
    def _make_user(name: str, email: str, role: str, password: str = DEFAULT_PASSWORD) -> User:
        user = User(name=name, email=email, password=hash_password(password), role=role)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_course(db):
    def _make_course(title: str, teacher: User | None = None, description: str | None = None) -> Course:
        course = Course(
            title=title,
            description=description,
            teacher_id=teacher.id if teacher else None,
        )
        db.add(course)
        db.commit()
        db.refresh(course)
        return course

    return _make_course


def register(client: TestClient, name: str, email: str, role: str, password: str = DEFAULT_PASSWORD):
    return client.post(
        '/register',
        json={'name': name, 'email': email, 'password': password, 'role': role},
    )


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    response = client.post('/login', json={'email': email, 'password': password})
    assert response.status_code == 200
    return response.json()['token']


def bearer(token: str) -> dict:
    return {'Authorization': f'Bearer {token}'}
