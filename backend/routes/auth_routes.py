import hmac
import logging

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth import jwt_handler
from backend.auth.dependencies import Identity, get_current_identity
from backend.core import config
from backend.core.errors import NotFound, Unauthorized
from backend.database import get_db
from backend.models.user import User
from backend.routes.common import database_errors

router = APIRouter(tags=['auth'])

logger = logging.getLogger(__name__)


class TokenRequest(BaseModel):
    email: str

    @field_validator('email')
    @classmethod
    def normalize_email(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError('Email is required.')
        return normalized


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


class IdentityResponse(BaseModel):
    email: str
    role: str


def verify_issuer_secret(issuer_secret: str | None) -> None:
    expected = config.AUTH_ISSUER_SECRET
    if not expected or not issuer_secret:
        raise Unauthorized('Unauthorized access: identity provider credentials required.')
    if not hmac.compare_digest(issuer_secret.encode(), expected.encode()):
        raise Unauthorized('Unauthorized access: invalid identity provider credentials.')


@router.post('/token', response_model=TokenResponse)
def issue_token(
    data: TokenRequest,
    issuer_secret: str | None = Header(default=None, alias='X-Issuer-Secret'),
    db: Session = Depends(get_db),
):
    # Called by the identity provider after it has checked the user's credentials.
    try:
        verify_issuer_secret(issuer_secret)
    except Unauthorized:
        logger.warning('Refused token request for %s: issuer secret missing or wrong', data.email)
        raise

    with database_errors(db):
        user = db.query(User).filter(User.email == data.email).first()
    if user is None:
        raise NotFound('User not found.')

    return TokenResponse(access_token=jwt_handler.create_access_token(email=user.email))


@router.get('/me', response_model=IdentityResponse)
def me(identity: Identity = Depends(get_current_identity)):
    return IdentityResponse(email=identity.email, role=identity.role)
