from datetime import datetime

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, get_current_identity
from backend.auth.permissions import require_role
from backend.database import get_db
from backend.models.application import Application
from backend.models.tuition import TuitionPost
from backend.models.user import Role
from backend.routes.common import database_errors, ensure_database_ready
from backend.services import application_lifecycle
from backend.services.application_lifecycle import PaymentReceipt

router = APIRouter(tags=['applications'])


class CreateApplicationRequest(BaseModel):
    tuition_id: int
    student_email: str | None = None
    tutor_name: str | None = None
    qualifications: str | None = None
    experience: str | None = None
    expected_salary: str | None = None

    @field_validator('student_email')
    @classmethod
    def normalize_student_email(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().lower() or None


class PaymentDetails(BaseModel):
    amount: float | None = None
    transaction_id: str | None = None

    @field_validator('amount')
    @classmethod
    def validate_amount(cls, value: float | None) -> float | None:
        if value is not None and value <= 0:
            raise ValueError('Payment amount must be positive.')
        return value

    def to_receipt(self) -> PaymentReceipt | None:
        if self.amount is None and self.transaction_id is None:
            return None
        return PaymentReceipt(amount=self.amount, transaction_id=self.transaction_id)


class UpdateApplicationStatusRequest(PaymentDetails):
    new_status: str


class ApplicationResponse(BaseModel):
    id: int
    tuition_id: int
    tutor_email: str
    student_email: str
    tutor_name: str | None = None
    qualifications: str | None = None
    experience: str | None = None
    expected_salary: str | None = None
    status: str
    applied_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class StudentPostApplicationResponse(ApplicationResponse):
    tuition_subject: str | None = None
    tuition_class: str | None = None
    tuition_location: str | None = None


@router.post('', response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
def create_application(
    data: CreateApplicationRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    require_role(identity, Role.TUTOR)
    ensure_database_ready()

    details = data.model_dump(exclude={'tuition_id', 'student_email'})
    with database_errors(db):
        return application_lifecycle.apply(
            db,
            data.tuition_id,
            identity.email,
            student_email=data.student_email,
            details=details,
        )


@router.get('/my-applications', response_model=list[ApplicationResponse])
def list_my_applications(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return db.query(Application).filter(
            Application.tutor_email == identity.email,
        ).order_by(Application.applied_at.desc()).all()


@router.get('/by-student-posts', response_model=list[StudentPostApplicationResponse])
def list_applications_for_my_posts(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        posts = db.query(TuitionPost).filter(TuitionPost.student_email == identity.email).all()
        posts_by_id = {post.id: post for post in posts}
        if not posts_by_id:
            return []

        applications = db.query(Application).filter(
            Application.tuition_id.in_(list(posts_by_id)),
        ).order_by(Application.applied_at.desc()).all()

    responses = []
    for application in applications:
        post = posts_by_id[application.tuition_id]
        response = StudentPostApplicationResponse.model_validate(application)
        response.tuition_subject = post.subject
        response.tuition_class = post.class_level
        response.tuition_location = post.location
        responses.append(response)

    return responses


@router.patch('/status/{application_id}', response_model=ApplicationResponse)
def update_application_status(
    application_id: int,
    data: UpdateApplicationStatusRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    with database_errors(db):
        return application_lifecycle.update_status(
            db,
            application_id,
            data.new_status.strip(),
            identity.email,
            receipt=data.to_receipt(),
        )


@router.post('/{application_id}/confirm-payment', response_model=ApplicationResponse)
def confirm_payment(
    application_id: int,
    data: PaymentDetails | None = None,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    receipt = data.to_receipt() if data is not None else None
    with database_errors(db):
        return application_lifecycle.confirm_payment(db, application_id, identity.email, receipt)
