from datetime import datetime
from types import SimpleNamespace

import pytest
import stripe
from fastapi import HTTPException

from backend.core import config
from backend.core.errors import Forbidden, InvalidArgument
from backend.models.payment import Payment
from backend.routes import payment_routes
from backend.routes.payment_routes import (
    PaymentIntentRequest,
    create_payment_intent,
    list_payment_history,
    to_minor_units,
)


@pytest.fixture
def stripe_configured(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    calls: list[dict] = []

    def fake_create(**kwargs):
        calls.append(kwargs)
        return SimpleNamespace(client_secret='pi_secret_123')

    monkeypatch.setattr(config, 'STRIPE_SECRET_KEY', 'sk_test_123')
    monkeypatch.setattr(payment_routes.stripe.PaymentIntent, 'create', fake_create)
    return calls


def test_to_minor_units_converts_price() -> None:
    assert to_minor_units(12.5) == 1250


@pytest.mark.parametrize(('price', 'expected'), [(19.99, 1999), (0.29, 29)])
def test_to_minor_units_rounds_instead_of_truncating(price: float, expected: int) -> None:
    assert to_minor_units(price) == expected


@pytest.mark.parametrize('price', [0, 0.001, -5])
def test_to_minor_units_rejects_non_positive_amounts(price: float) -> None:
    with pytest.raises(InvalidArgument):
        to_minor_units(price)


def test_create_payment_intent_for_student(student, stripe_configured) -> None:
    response = create_payment_intent(PaymentIntentRequest(price=1500), identity=student)

    assert response.client_secret == 'pi_secret_123'
    assert stripe_configured[0]['amount'] == 150000
    assert stripe_configured[0]['currency'] == config.PAYMENT_CURRENCY
    assert stripe_configured[0]['payment_method_types'] == ['card']


def test_create_payment_intent_rejects_tutors(tutor_x, stripe_configured) -> None:
    with pytest.raises(Forbidden):
        create_payment_intent(PaymentIntentRequest(price=1500), identity=tutor_x)

    assert stripe_configured == []


def test_create_payment_intent_rejects_invalid_amount_before_calling_stripe(student, stripe_configured) -> None:
    with pytest.raises(InvalidArgument):
        create_payment_intent(PaymentIntentRequest(price=0), identity=student)

    assert stripe_configured == []


def test_create_payment_intent_maps_gateway_errors(student, monkeypatch: pytest.MonkeyPatch) -> None:
    def failing_create(**kwargs):
        raise stripe.StripeError('card network down')

    monkeypatch.setattr(config, 'STRIPE_SECRET_KEY', 'sk_test_123')
    monkeypatch.setattr(payment_routes.stripe.PaymentIntent, 'create', failing_create)

    with pytest.raises(HTTPException) as exception_info:
        create_payment_intent(PaymentIntentRequest(price=100), identity=student)

    assert exception_info.value.status_code == 502


def test_create_payment_intent_without_stripe_key(student, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(config, 'STRIPE_SECRET_KEY', '')

    with pytest.raises(HTTPException) as exception_info:
        create_payment_intent(PaymentIntentRequest(price=100), identity=student)

    assert exception_info.value.status_code == 500


def test_payment_history_lists_only_callers_payments(db, student, make_user) -> None:
    other = make_user('other@example.com')
    for email, paid_at in ((student.email, datetime(2026, 1, 5)), (other.email, datetime(2026, 1, 6))):
        db.add(Payment(email=email, tuition_id=1, application_id=1, amount=100.0, paid_at=paid_at))
    db.commit()

    history = list_payment_history(identity=student, db=db)

    assert [payment.email for payment in history] == [student.email]
