"""Who may see whose phone number.

Contact details are released only between the two sides of a confirmed hire,
or to an admin. Only name, email and phone are ever returned.
"""

from sqlalchemy.orm import Session

from backend.core.errors import Forbidden, NotFound
from backend.models.application import Application, ApplicationStatus
from backend.models.tuition import TuitionPost, TuitionStatus
from backend.models.user import Role, User

CONTACT_FIELDS = ('name', 'email', 'phone')


def can_disclose(db: Session, requester_email: str, requester_role: str | None, target_email: str) -> bool:
    if requester_role == Role.ADMIN.value:
        return True

    if requester_role == Role.STUDENT.value:
        hired_post = db.query(TuitionPost.id).filter(
            TuitionPost.student_email == requester_email,
            TuitionPost.hired_tutor_email == target_email,
            TuitionPost.status == TuitionStatus.PAID.value,
        ).first()
        return hired_post is not None

    if requester_role == Role.TUTOR.value:
        # trusts the application's copy of the student email
        hired_application = db.query(Application.id).filter(
            Application.tutor_email == requester_email,
            Application.student_email == target_email,
            Application.status == ApplicationStatus.PAID_CONFIRMED.value,
        ).first()
        return hired_application is not None

    return False


def get_contact(db: Session, requester_email: str, requester_role: str | None, target_email: str) -> dict:
    target = db.query(User).filter(User.email == target_email).first()
    if target is None:
        raise NotFound('Contact not found.')

    if not can_disclose(db, requester_email, requester_role, target_email):
        raise Forbidden('Forbidden: not authorized to view this contact.')

    return {field: getattr(target, field) for field in CONTACT_FIELDS}
