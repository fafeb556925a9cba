from datetime import datetime, timedelta, timezone

import jwt
import pytest

from conftest import bearer
from course_api.auth import jwt_handler
from course_api.auth.passwords import hash_password, verify_password
from course_api.core import config
from course_api.models.user import User


def test_hash_password_is_salted_and_verifiable() -> None:
    first = hash_password('secret123')
    second = hash_password('secret123')

    assert first != second
    assert verify_password('secret123', first)
    assert not verify_password('secret124', first)


def test_verify_password_rejects_non_bcrypt_hash() -> None:
    assert not verify_password('secret123', 'plain-text')


def test_protected_route_without_token_is_unauthorized(client) -> None:
    response = client.get('/courses')

    assert response.status_code == 401
    assert response.json() == {'error': 'Unauthorized'}


def test_protected_route_with_non_bearer_scheme_is_unauthorized(client, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    token = jwt_handler.create_access_token(user.id)

    response = client.get('/courses', headers={'Authorization': f'Basic {token}'})

    assert response.status_code == 401


def test_token_signed_with_other_secret_is_unauthorized(client, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    forged = jwt.encode({'sub': str(user.id)}, 'another-secret', algorithm='HS256')

    response = client.get('/courses', headers=bearer(forged))

    assert response.status_code == 401


def test_expired_token_is_unauthorized(client, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    token = jwt_handler.create_access_token(user.id, expires_minutes=-1)

    response = client.get('/courses', headers=bearer(token))

    assert response.status_code == 401


def test_token_for_deleted_user_is_forbidden(client, db, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    token = jwt_handler.create_access_token(user.id)
    db.delete(user)
    db.commit()

    response = client.get('/courses', headers=bearer(token))

    assert response.status_code == 403
    assert response.json() == {'error': 'Forbidden'}


@pytest.mark.parametrize(
    ('method', 'path'),
    [
        ('post', '/admin/course'),
        ('get', '/admin/courses'),
        ('put', '/admin/course/1'),
        ('delete', '/admin/course/1'),
        ('get', '/teacher/courses'),
        ('get', '/teacher/course/1/students'),
        ('post', '/teacher/course/1/student/1/grade'),
    ],
)
def test_student_token_is_forbidden_on_admin_and_teacher_routes(client, make_user, method: str, path: str) -> None:
    student = make_user('Sam', 's@example.com', 'STUDENT')
    headers = bearer(jwt_handler.create_access_token(student.id))

    if method in ('post', 'put'):
        response = getattr(client, method)(path, json={}, headers=headers)
    else:
        response = getattr(client, method)(path, headers=headers)

    assert response.status_code == 403


def test_role_change_applies_to_existing_token(client, db, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    headers = bearer(jwt_handler.create_access_token(user.id))
    assert client.get('/admin/courses', headers=headers).status_code == 403

    db.query(User).filter(User.id == user.id).update({'role': 'ADMIN'})
    db.commit()

    assert client.get('/admin/courses', headers=headers).status_code == 200


def test_decode_user_id_returns_integer_subject() -> None:
    token = jwt_handler.create_access_token(42)

    assert jwt_handler.decode_user_id(token) == 42


@pytest.mark.parametrize('subject', ['abc', '99999999999999999999'])
def test_decode_user_id_rejects_subject_that_is_not_a_user_id(subject: str) -> None:
    token = jwt.encode(
        {'sub': subject, 'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    with pytest.raises(jwt.InvalidTokenError):
        jwt_handler.decode_user_id(token)


def test_token_with_oversized_subject_is_unauthorized(client) -> None:
    token = jwt.encode(
        {'sub': '99999999999999999999', 'exp': datetime.now(timezone.utc) + timedelta(minutes=5)},
        config.JWT_SECRET_KEY,
        algorithm=config.JWT_ALGORITHM,
    )

    response = client.get('/courses', headers=bearer(token))

    assert response.status_code == 401
    assert response.json() == {'error': 'Unauthorized'}


def test_token_without_expiry_is_unauthorized(client, make_user) -> None:
    user = make_user('Sam', 's@example.com', 'STUDENT')
    token = jwt.encode({'sub': str(user.id)}, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)

    response = client.get('/courses', headers=bearer(token))

    assert response.status_code == 401
