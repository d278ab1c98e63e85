import pytest
from pydantic import ValidationError

from backend.core.errors import Conflict, Forbidden
from backend.models.application import ApplicationStatus
from backend.models.payment import Payment
from backend.models.tuition import TuitionStatus
from backend.routes.application_routes import (
    CreateApplicationRequest,
    PaymentDetails,
    UpdateApplicationStatusRequest,
    confirm_payment,
    create_application,
    list_applications_for_my_posts,
    list_my_applications,
    update_application_status,
)
from backend.services import tuition_lifecycle


@pytest.fixture(autouse=True)
def skip_schema_check(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('backend.routes.application_routes.ensure_database_ready', lambda: None)


@pytest.fixture
def post(db, student, admin):
    created = tuition_lifecycle.create(
        db,
        student.email,
        {'subject': 'Math', 'class_level': 'Class 9', 'location': 'Mohammadpur'},
    )
    return tuition_lifecycle.approve(db, created.id, admin.role)


def test_payment_details_rejects_non_positive_amount() -> None:
    with pytest.raises(ValidationError):
        PaymentDetails(amount=0)
    with pytest.raises(ValidationError):
        PaymentDetails(amount=-10)


def test_payment_details_without_values_has_no_receipt() -> None:
    assert PaymentDetails().to_receipt() is None
    assert PaymentDetails(transaction_id='pi_1').to_receipt().transaction_id == 'pi_1'


def test_only_tutors_can_apply(db, post, student) -> None:
    with pytest.raises(Forbidden):
        create_application(CreateApplicationRequest(tuition_id=post.id), identity=student, db=db)


def test_tutor_applies_as_themselves(db, post, student, tutor_x) -> None:
    application = create_application(
        CreateApplicationRequest(tuition_id=post.id, student_email=' Student@Example.com ', tutor_name='Rahim'),
        identity=tutor_x,
        db=db,
    )

    assert application.tutor_email == tutor_x.email
    assert application.student_email == student.email
    assert application.tutor_name == 'Rahim'
    assert application.status == ApplicationStatus.APPLIED.value


def test_my_applications_lists_callers_bids(db, post, tutor_x, tutor_y) -> None:
    create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_x, db=db)
    create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_y, db=db)

    applications = list_my_applications(identity=tutor_x, db=db)

    assert [application.tutor_email for application in applications] == [tutor_x.email]


def test_applications_on_my_posts_include_post_details(db, post, student, tutor_x) -> None:
    create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_x, db=db)

    applications = list_applications_for_my_posts(identity=student, db=db)

    assert len(applications) == 1
    assert applications[0].tutor_email == tutor_x.email
    assert applications[0].tuition_subject == 'Math'
    assert applications[0].tuition_class == 'Class 9'
    assert applications[0].tuition_location == 'Mohammadpur'


def test_applications_on_my_posts_is_empty_without_posts(db, tutor_x) -> None:
    assert list_applications_for_my_posts(identity=tutor_x, db=db) == []


def test_confirm_payment_route_hires_and_records_payment(db, post, student, tutor_x) -> None:
    application = create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_x, db=db)

    confirmed = confirm_payment(
        application.id,
        data=PaymentDetails(amount=2500.0, transaction_id='pi_42'),
        identity=student,
        db=db,
    )

    assert confirmed.status == ApplicationStatus.PAID_CONFIRMED.value
    db.refresh(post)
    assert post.status == TuitionStatus.PAID.value
    assert post.hired_tutor_email == tutor_x.email
    assert db.query(Payment).one().transaction_id == 'pi_42'


def test_status_route_conflicts_on_second_hire(db, post, student, tutor_x, tutor_y) -> None:
    first = create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_x, db=db)
    second = create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_y, db=db)
    update_application_status(
        first.id,
        UpdateApplicationStatusRequest(new_status='Paid-Confirmed'),
        identity=student,
        db=db,
    )

    with pytest.raises(Conflict):
        update_application_status(
            second.id,
            UpdateApplicationStatusRequest(new_status='Paid-Confirmed'),
            identity=student,
            db=db,
        )

    db.refresh(second)
    assert second.status == ApplicationStatus.APPLIED.value


def test_tutor_cannot_confirm_own_application(db, post, tutor_x) -> None:
    application = create_application(CreateApplicationRequest(tuition_id=post.id), identity=tutor_x, db=db)

    with pytest.raises(Forbidden):
        confirm_payment(application.id, data=None, identity=tutor_x, db=db)
