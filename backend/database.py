from threading import Lock

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import declarative_base, sessionmaker

from backend.core import config


connect_args = {'check_same_thread': False} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_engine(config.DATABASE_URL, echo=config.SQL_ECHO, connect_args=connect_args)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)

Base = declarative_base()

_schema_lock = Lock()
_tuition_schema_checked = False
_application_schema_checked = False


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def _add_missing_columns(table_name: str, migration_steps: list[tuple[str, str]], indexes: list[str]) -> None:
    inspector = inspect(engine)

    if table_name not in inspector.get_table_names():
        return

    existing_columns = {column['name'] for column in inspector.get_columns(table_name)}

    with engine.begin() as connection:
        for column_name, statement in migration_steps:
            if column_name not in existing_columns:
                connection.execute(text(statement))
        for statement in indexes:
            connection.execute(text(statement))


def ensure_tuition_schema() -> None:
    global _tuition_schema_checked

    if _tuition_schema_checked:
        return

    with _schema_lock:
        if _tuition_schema_checked:
            return

        _add_missing_columns(
            'tuitions',
            [
                ('description', 'ALTER TABLE tuitions ADD COLUMN description VARCHAR'),
                ('hired_tutor_email', 'ALTER TABLE tuitions ADD COLUMN hired_tutor_email VARCHAR'),
                ('updated_at', 'ALTER TABLE tuitions ADD COLUMN updated_at TIMESTAMP'),
            ],
            [
                'CREATE INDEX IF NOT EXISTS idx_tuitions_status_created ON tuitions(status, created_at)',
                'CREATE INDEX IF NOT EXISTS idx_tuitions_student_hired ON tuitions(student_email, hired_tutor_email)',
            ],
        )

        _tuition_schema_checked = True


def ensure_application_schema() -> None:
    global _application_schema_checked

    if _application_schema_checked:
        return

    with _schema_lock:
        if _application_schema_checked:
            return

        _add_missing_columns(
            'applications',
            [
                ('student_email', 'ALTER TABLE applications ADD COLUMN student_email VARCHAR'),
                ('expected_salary', 'ALTER TABLE applications ADD COLUMN expected_salary VARCHAR'),
                ('updated_at', 'ALTER TABLE applications ADD COLUMN updated_at TIMESTAMP'),
            ],
            [
                'CREATE INDEX IF NOT EXISTS idx_applications_tuition_status ON applications(tuition_id, status)',
                'CREATE INDEX IF NOT EXISTS idx_applications_tutor_student ON applications(tutor_email, student_email)',
            ],
        )

        _application_schema_checked = True
