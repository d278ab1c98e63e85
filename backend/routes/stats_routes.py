from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, get_current_identity
from backend.auth.permissions import has_role, require_self_or_admin
from backend.core.errors import Forbidden
from backend.database import get_db
from backend.models.user import Role
from backend.routes.common import database_errors
from backend.services import stats

router = APIRouter(tags=['stats'])


class StudentStatsResponse(BaseModel):
    total_posts: int
    total_applications: int
    hired_count: int


class TutorStatsResponse(BaseModel):
    total_applications: int
    hired_count: int
    pending: int


@router.get('/student/{email}', response_model=StudentStatsResponse)
def get_student_stats(
    email: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    normalized_email = email.strip().lower()
    require_self_or_admin(identity, normalized_email)

    with database_errors(db):
        return stats.student_stats(db, normalized_email)


@router.get('/tutor/{email}', response_model=TutorStatsResponse)
def get_tutor_stats(
    email: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    normalized_email = email.strip().lower()
    if not has_role(identity, Role.TUTOR, Role.ADMIN):
        raise Forbidden('Forbidden access: requires Tutor role.')
    require_self_or_admin(identity, normalized_email)

    with database_errors(db):
        return stats.tutor_stats(db, normalized_email)
