"""Request and response bodies shared by the route modules.

JSON keys are camelCase (``teacherId``) while the ORM attributes are
snake_case (``teacher_id``); the alias generator maps between the two.
"""

import re

from pydantic import BaseModel, ConfigDict, FiniteFloat
from pydantic.alias_generators import to_camel

_INTEGER_PATTERN = re.compile(r'^[+-]?\d+$')

# Ids are stored as signed 64-bit integers.
MIN_ID = -2**63
MAX_ID = 2**63 - 1


def _to_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str) and _INTEGER_PATTERN.match(value.strip()):
        return int(value.strip())
    return None


def parse_int(value) -> int | None:
    """Return ``value`` as an int, or None when it is not an integer id."""
    parsed = _to_int(value)
    if parsed is None or not MIN_ID <= parsed <= MAX_ID:
        return None
    return parsed


class ApiModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class RegisterRequest(ApiModel):
    name: str | None = None
    email: str | None = None
    password: str | None = None
    role: str | None = None


class LoginRequest(ApiModel):
    email: str | None = None
    password: str | None = None


class CourseRequest(ApiModel):
    title: str | None = None
    description: str | None = None
    teacher_id: int | str | None = None


class EnrollRequest(ApiModel):
    course_id: int | str | None = None


class AssignGradeRequest(ApiModel):
    grade: FiniteFloat | None = None


class TeacherSummaryResponse(ApiModel):
    id: int
    name: str
    email: str


class UserResponse(TeacherSummaryResponse):
    role: str


class RegisterResponse(ApiModel):
    message: str
    user: UserResponse


class LoginResponse(ApiModel):
    token: str
    user: UserResponse


class MessageResponse(ApiModel):
    message: str


class CourseResponse(ApiModel):
    id: int
    title: str
    description: str | None = None
    teacher_id: int | None = None


class CourseWithTeacherResponse(CourseResponse):
    teacher: UserResponse | None = None


class CourseDetailResponse(CourseWithTeacherResponse):
    students: list[UserResponse] = []


class CourseCreatedResponse(ApiModel):
    message: str
    course: CourseResponse


class CourseUpdatedResponse(ApiModel):
    message: str
    updated_course: CourseResponse


class EnrolledCourseResponse(CourseResponse):
    grade: float | None = None


class GradeResponse(ApiModel):
    marks: float
    grade: str
