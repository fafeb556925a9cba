from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from course_api.core import config


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(config.DATABASE_URL, connect_args=_connect_args(config.DATABASE_URL))

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

GRADE_UNIQUE_INDEX = "uq_grades_student_course"

_schema_lock = Lock()
_grade_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def ensure_grade_schema(bind=None) -> None:
    """Add the (student_id, course_id) unique index to a grades table created without it."""
    global _grade_schema_checked

    if _grade_schema_checked:
        return

    with _schema_lock:
        if _grade_schema_checked:
            return

        bind = bind or engine
        inspector = inspect(bind)

        if 'grades' not in inspector.get_table_names():
            _grade_schema_checked = True
            return

        unique_columns = [
            set(constraint['column_names'])
            for constraint in inspector.get_unique_constraints('grades')
        ]
        unique_columns.extend(
            set(index['column_names'])
            for index in inspector.get_indexes('grades')
            if index.get('unique')
        )

        if {'student_id', 'course_id'} not in unique_columns:
            with bind.begin() as connection:
                connection.execute(
                    text(
                        f'CREATE UNIQUE INDEX IF NOT EXISTS {GRADE_UNIQUE_INDEX} '
                        'ON grades(student_id, course_id)'
                    )
                )

        _grade_schema_checked = True
