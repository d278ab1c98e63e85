from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, get_current_identity
from backend.auth.permissions import require_role, require_self_or_admin
from backend.core import config
from backend.database import get_db
from backend.models.tuition import TuitionPost, TuitionStatus
from backend.models.user import Role
from backend.routes.common import database_errors, ensure_database_ready
from backend.services import tuition_lifecycle

router = APIRouter(tags=['tuitions'])

MAX_DESCRIPTION_LENGTH = 1000


def _strip_optional(value: str | None) -> str | None:
    if value is None:
        return None
    normalized = value.strip()
    return normalized or None


class TuitionEditRequest(BaseModel):
    subject: str | None = None
    class_level: str | None = None
    budget: str | None = None
    location: str | None = None
    description: str | None = None

    @field_validator('subject', 'class_level', 'budget', 'location')
    @classmethod
    def strip_fields(cls, value: str | None) -> str | None:
        return _strip_optional(value)

    @field_validator('description')
    @classmethod
    def validate_description(cls, value: str | None) -> str | None:
        normalized = _strip_optional(value)
        if normalized and len(normalized) > MAX_DESCRIPTION_LENGTH:
            raise ValueError(f'Description must be {MAX_DESCRIPTION_LENGTH} characters or fewer.')
        return normalized


class CreateTuitionRequest(TuitionEditRequest):
    subject: str

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, value: str | None) -> str:
        normalized = (value or '').strip()
        if not normalized:
            raise ValueError('Subject is required.')
        return normalized


class UpdateTuitionStatusRequest(BaseModel):
    status: str


class TuitionResponse(BaseModel):
    id: int
    student_email: str
    subject: str | None = None
    class_level: str | None = None
    budget: str | None = None
    location: str | None = None
    description: str | None = None
    status: str
    hired_tutor_email: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def _approved_posts(db: Session, limit: int | None = None) -> list[TuitionPost]:
    query = db.query(TuitionPost).filter(
        TuitionPost.status == TuitionStatus.APPROVED.value,
    ).order_by(TuitionPost.created_at.desc())
    if limit is not None:
        query = query.limit(limit)
    return query.all()


@router.post('', response_model=TuitionResponse, status_code=status.HTTP_201_CREATED)
def create_tuition(
    data: CreateTuitionRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    require_role(identity, Role.STUDENT, Role.ADMIN)
    ensure_database_ready()

    with database_errors(db):
        return tuition_lifecycle.create(db, identity.email, data.model_dump())


@router.get('', response_model=list[TuitionResponse])
def list_tuitions(
    email: str | None = Query(default=None),
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    if email is None:
        require_role(identity, Role.ADMIN)
    else:
        email = email.strip().lower()
        require_self_or_admin(identity, email)

    ensure_database_ready()

    with database_errors(db):
        query = db.query(TuitionPost)
        if email is not None:
            query = query.filter(TuitionPost.student_email == email)
        return query.order_by(TuitionPost.created_at.desc()).all()


@router.get('/approved', response_model=list[TuitionResponse])
def list_approved_tuitions(db: Session = Depends(get_db)):
    ensure_database_ready()

    with database_errors(db):
        return _approved_posts(db)


@router.get('/latest', response_model=list[TuitionResponse])
def list_latest_tuitions(db: Session = Depends(get_db)):
    ensure_database_ready()

    with database_errors(db):
        return _approved_posts(db, limit=config.LATEST_TUITIONS_LIMIT)


@router.get('/my-posts', response_model=list[TuitionResponse])
def list_my_posts(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return db.query(TuitionPost).filter(
            TuitionPost.student_email == identity.email,
        ).order_by(TuitionPost.created_at.desc()).all()


@router.get('/{tuition_id}', response_model=TuitionResponse)
def get_tuition(tuition_id: int, db: Session = Depends(get_db)):
    ensure_database_ready()

    with database_errors(db):
        return tuition_lifecycle.get_post(db, tuition_id)


@router.patch('/status/{tuition_id}', response_model=TuitionResponse)
def update_tuition_status(
    tuition_id: int,
    data: UpdateTuitionStatusRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return tuition_lifecycle.set_status(db, tuition_id, data.status.strip(), identity.role)


@router.patch('/{tuition_id}', response_model=TuitionResponse)
def edit_tuition(
    tuition_id: int,
    data: TuitionEditRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return tuition_lifecycle.edit(db, tuition_id, data.model_dump(exclude_unset=True), identity.email)


@router.delete('/{tuition_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_tuition(
    tuition_id: int,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        tuition_lifecycle.delete(db, tuition_id, identity.email, identity.role)
