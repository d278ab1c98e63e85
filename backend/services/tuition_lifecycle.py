"""Tuition post state machine: Pending -> Approved -> Paid.

Paid is terminal and is only ever written by ``mark_hired``, which the
application lifecycle calls from inside the payment confirmation transaction.
Any edit of the descriptive fields sends the post back to Pending for review.
"""

import logging
from datetime import datetime

from sqlalchemy.orm import Session

from backend.core.errors import Forbidden, InvalidArgument, NotFound, Unauthorized
from backend.models.tuition import TuitionPost, TuitionStatus
from backend.models.user import Role

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('subject', 'class_level', 'budget', 'location', 'description')
ADMIN_SETTABLE_STATUSES = {TuitionStatus.PENDING.value, TuitionStatus.APPROVED.value}


def get_post(db: Session, tuition_id: int) -> TuitionPost:
    post = db.get(TuitionPost, tuition_id)
    if post is None:
        raise NotFound('Tuition post not found.')
    return post


def create(db: Session, student_email: str, payload: dict) -> TuitionPost:
    if not student_email:
        raise Unauthorized('A valid owning identity is required.')

    now = datetime.now()
    post = TuitionPost(
        student_email=student_email,
        status=TuitionStatus.PENDING.value,
        created_at=now,
        updated_at=now,
        **{field: payload.get(field) for field in EDITABLE_FIELDS},
    )
    db.add(post)
    db.commit()
    db.refresh(post)

    logger.info('Tuition post %s created by %s', post.id, student_email)
    return post


def set_status(db: Session, tuition_id: int, status: str, caller_role: str) -> TuitionPost:
    if caller_role != Role.ADMIN.value:
        raise Forbidden('Forbidden access: requires Admin role.')

    if status == TuitionStatus.PAID.value:
        raise InvalidArgument('Paid can only be reached by confirming a payment.')
    if status not in ADMIN_SETTABLE_STATUSES:
        raise InvalidArgument(f'Unknown tuition status: {status}.')

    post = get_post(db, tuition_id)
    post.status = status
    post.updated_at = datetime.now()
    db.commit()
    db.refresh(post)

    logger.info('Tuition post %s set to %s', post.id, status)
    return post


def approve(db: Session, tuition_id: int, caller_role: str) -> TuitionPost:
    return set_status(db, tuition_id, TuitionStatus.APPROVED.value, caller_role)


def edit(db: Session, tuition_id: int, payload: dict, caller_email: str) -> TuitionPost:
    post = get_post(db, tuition_id)
    if post.student_email != caller_email:
        raise Forbidden('Only the student who posted this tuition can edit it.')

    for field in EDITABLE_FIELDS:
        if field in payload:
            setattr(post, field, payload[field])

    post.status = TuitionStatus.PENDING.value
    post.updated_at = datetime.now()
    db.commit()
    db.refresh(post)
    return post


def delete(db: Session, tuition_id: int, caller_email: str, caller_role: str) -> None:
    post = get_post(db, tuition_id)
    if caller_role != Role.ADMIN.value and post.student_email != caller_email:
        raise Forbidden('Only the owner or an admin can delete this tuition post.')

    db.delete(post)
    db.commit()
    logger.info('Tuition post %s deleted by %s', tuition_id, caller_email)


def mark_hired(db: Session, tuition_id: int, tutor_email: str) -> bool:
    """Conditionally move a post to Paid and record the hired tutor.

    Returns False when another confirmation got there first. Does not commit;
    the caller owns the transaction.
    """
    now = datetime.now()
    matched = db.query(TuitionPost).filter(
        TuitionPost.id == tuition_id,
        TuitionPost.status != TuitionStatus.PAID.value,
        TuitionPost.hired_tutor_email.is_(None),
    ).update(
        {
            TuitionPost.status: TuitionStatus.PAID.value,
            TuitionPost.hired_tutor_email: tutor_email,
            TuitionPost.updated_at: now,
        },
        synchronize_session=False,
    )
    return matched == 1
