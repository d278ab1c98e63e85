import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from backend.auth.dependencies import Identity  # noqa: E402
from backend.database import Base  # noqa: E402
from backend.models import application, payment, tuition, user  # noqa: E402,F401
from backend.models.user import Role, User  # noqa: E402


@pytest.fixture
def session_factory(tmp_path):
    engine = create_engine(
        f"sqlite:///{tmp_path / 'tuition_finder.db'}",
        connect_args={'check_same_thread': False},
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_user(db):
    def _make_user(email: str, role: Role = Role.STUDENT, **fields) -> Identity:
        db.add(User(email=email, role=role.value, **fields))
        db.commit()
        return Identity(email=email, role=role.value)

    return _make_user


@pytest.fixture
def student(make_user) -> Identity:
    return make_user('student@example.com', Role.STUDENT, name='Sadia', phone='01700000001', address='Dhanmondi')


@pytest.fixture
def admin(make_user) -> Identity:
    return make_user('admin@example.com', Role.ADMIN, name='Admin')


@pytest.fixture
def tutor_x(make_user) -> Identity:
    return make_user('tutor.x@example.com', Role.TUTOR, name='Rahim', phone='01800000002')


@pytest.fixture
def tutor_y(make_user) -> Identity:
    return make_user('tutor.y@example.com', Role.TUTOR, name='Karim', phone='01900000003')
