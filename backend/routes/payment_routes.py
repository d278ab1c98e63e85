import logging
from datetime import datetime

import stripe
from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, get_current_identity
from backend.auth.permissions import require_role
from backend.core import config
from backend.core.errors import InvalidArgument
from backend.database import get_db
from backend.models.payment import Payment
from backend.models.user import Role
from backend.routes.common import database_errors

router = APIRouter(tags=['payments'])

logger = logging.getLogger(__name__)


class PaymentIntentRequest(BaseModel):
    price: float


class PaymentIntentResponse(BaseModel):
    client_secret: str


class PaymentResponse(BaseModel):
    id: int
    email: str
    tuition_id: int
    application_id: int
    tutor_email: str | None = None
    amount: float | None = None
    transaction_id: str | None = None
    paid_at: datetime | None = None

    class Config:
        from_attributes = True


def to_minor_units(price: float) -> int:
    amount = int(round(price * 100))
    if amount < 1:
        raise InvalidArgument('Invalid amount.')
    return amount


@router.post('/create-payment-intent', response_model=PaymentIntentResponse)
def create_payment_intent(
    data: PaymentIntentRequest,
    identity: Identity = Depends(get_current_identity),
):
    require_role(identity, Role.STUDENT)
    amount = to_minor_units(data.price)

    if not config.STRIPE_SECRET_KEY:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail='Stripe is not configured.',
        )

    try:
        intent = stripe.PaymentIntent.create(
            api_key=config.STRIPE_SECRET_KEY,
            amount=amount,
            currency=config.PAYMENT_CURRENCY,
            payment_method_types=['card'],
            metadata={'email': identity.email},
        )
    except stripe.StripeError as exc:
        logger.exception('Stripe payment intent creation failed for %s', identity.email)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail='Payment gateway error.',
        ) from exc

    return PaymentIntentResponse(client_secret=intent.client_secret)


@router.get('/history', response_model=list[PaymentResponse])
def list_payment_history(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    with database_errors(db):
        return db.query(Payment).filter(
            Payment.email == identity.email,
        ).order_by(Payment.paid_at.desc()).all()
