"""Grade model definitions."""

from sqlalchemy import Column, Float, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from course_api.database import GRADE_UNIQUE_INDEX, Base


class Grade(Base):
    """Numeric marks of one student in one course."""
    __tablename__ = "grades"

    id = Column(Integer, primary_key=True)
    course_id = Column(Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    marks = Column(Float, nullable=False)

    course = relationship("Course", back_populates="grades")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name=GRADE_UNIQUE_INDEX),
    )
