"""Course model definitions."""

from sqlalchemy import Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from course_api.database import Base
from course_api.models.grade import Grade
from course_api.models.user import User


course_students = Table(
    "course_students",
    Base.metadata,
    Column("course_id", Integer, ForeignKey("courses.id", ondelete="CASCADE"), primary_key=True),
    Column("student_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Course(Base):
    """Represents a course taught by one teacher."""
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(String, nullable=True)
    teacher_id = Column(Integer, ForeignKey("users.id"), index=True)

    teacher = relationship(User, foreign_keys=[teacher_id])
    students = relationship(User, secondary=course_students, order_by=User.id)
    grades = relationship(Grade, back_populates="course", cascade="all, delete-orphan")
