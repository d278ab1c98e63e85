"""Read-only counts derived from posts and applications."""

from sqlalchemy.orm import Session

from backend.models.application import Application, ApplicationStatus
from backend.models.tuition import TuitionPost, TuitionStatus


def student_stats(db: Session, student_email: str) -> dict:
    posts = db.query(TuitionPost.id, TuitionPost.status).filter(
        TuitionPost.student_email == student_email,
    ).all()
    tuition_ids = [post_id for post_id, _ in posts]

    total_applications = 0
    if tuition_ids:
        total_applications = db.query(Application).filter(
            Application.tuition_id.in_(tuition_ids),
        ).count()

    return {
        'total_posts': len(posts),
        'total_applications': total_applications,
        'hired_count': sum(1 for _, status in posts if status == TuitionStatus.PAID.value),
    }


def tutor_stats(db: Session, tutor_email: str) -> dict:
    statuses = [
        status for (status,) in db.query(Application.status).filter(
            Application.tutor_email == tutor_email,
        ).all()
    ]
    return {
        'total_applications': len(statuses),
        'hired_count': statuses.count(ApplicationStatus.PAID_CONFIRMED.value),
        'pending': statuses.count(ApplicationStatus.APPLIED.value),
    }
