"""Application state machine: Applied -> Paid-Confirmed.

Confirming payment is the one operation that writes two records. The post is
written first through a conditional update, so of two racing
confirmations on the same post only one can match; the loser rolls back
before touching its application.
"""

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.orm import Session

from backend.core.errors import Conflict, Forbidden, InvalidArgument, NotFound
from backend.models.application import Application, ApplicationStatus
from backend.models.payment import Payment
from backend.models.tuition import TuitionPost
from backend.services import tuition_lifecycle

logger = logging.getLogger(__name__)

DETAIL_FIELDS = ('tutor_name', 'qualifications', 'experience', 'expected_salary')


@dataclass
class PaymentReceipt:
    """What the student reports the gateway charged. Trusted as given."""
    amount: float | None = None
    transaction_id: str | None = None


def get_application(db: Session, application_id: int) -> Application:
    application = db.get(Application, application_id)
    if application is None:
        raise NotFound('Application not found.')
    return application


def apply(
    db: Session,
    tuition_id: int,
    tutor_email: str,
    student_email: str | None = None,
    details: dict | None = None,
) -> Application:
    # The post's status is not checked: tutors may apply to Pending or Paid posts.
    post = tuition_lifecycle.get_post(db, tuition_id)
    if student_email is not None and student_email != post.student_email:
        raise InvalidArgument('Student email does not match the owner of this tuition post.')

    details = details or {}
    now = datetime.now()
    application = Application(
        tuition_id=post.id,
        tutor_email=tutor_email,
        student_email=post.student_email,
        status=ApplicationStatus.APPLIED.value,
        applied_at=now,
        updated_at=now,
        **{field: details.get(field) for field in DETAIL_FIELDS},
    )
    db.add(application)
    db.commit()
    db.refresh(application)

    logger.info('Tutor %s applied to tuition post %s', tutor_email, post.id)
    return application


def _owned_post(db: Session, application: Application, caller_email: str) -> TuitionPost:
    # Resolved from the post row, not from the application's copy of the owner.
    post = db.get(TuitionPost, application.tuition_id)
    if post is None:
        raise NotFound('Tuition post for this application no longer exists.')
    if post.student_email != caller_email:
        raise Forbidden('Only the student who posted this tuition can update its applications.')
    return post


def confirm_payment(
    db: Session,
    application_id: int,
    caller_email: str,
    receipt: PaymentReceipt | None = None,
) -> Application:
    application = get_application(db, application_id)
    post = _owned_post(db, application, caller_email)
    tuition_id = post.id

    if not tuition_lifecycle.mark_hired(db, tuition_id, application.tutor_email):
        db.rollback()
        logger.warning(
            'Payment confirmation for application %s rejected: tuition post %s already hired',
            application_id,
            tuition_id,
        )
        raise Conflict('This tuition has already been hired.')

    now = datetime.now()
    application.status = ApplicationStatus.PAID_CONFIRMED.value
    application.updated_at = now

    if receipt is not None:
        db.add(Payment(
            email=caller_email,
            tuition_id=tuition_id,
            application_id=application.id,
            tutor_email=application.tutor_email,
            amount=receipt.amount,
            transaction_id=receipt.transaction_id,
            paid_at=now,
        ))

    db.commit()
    db.refresh(application)
    logger.info(
        'Application %s confirmed: tutor %s hired for tuition post %s',
        application.id,
        application.tutor_email,
        tuition_id,
    )
    return application


def update_status(
    db: Session,
    application_id: int,
    new_status: str,
    caller_email: str,
    receipt: PaymentReceipt | None = None,
) -> Application:
    if new_status == ApplicationStatus.PAID_CONFIRMED.value:
        return confirm_payment(db, application_id, caller_email, receipt)

    if new_status not in {status.value for status in ApplicationStatus}:
        raise InvalidArgument(f'Unknown application status: {new_status}.')

    application = get_application(db, application_id)
    _owned_post(db, application, caller_email)

    if application.status == ApplicationStatus.PAID_CONFIRMED.value:
        raise Conflict('A confirmed hire cannot change status.')

    application.status = new_status
    application.updated_at = datetime.now()
    db.commit()
    db.refresh(application)
    return application
