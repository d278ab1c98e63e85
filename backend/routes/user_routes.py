import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from backend.auth.dependencies import Identity, get_current_identity
from backend.auth.permissions import require_role
from backend.core.errors import Forbidden, InvalidArgument, NotFound
from backend.database import get_db
from backend.models.user import Role, User
from backend.routes.common import database_errors
from backend.services import contact_gate

router = APIRouter(tags=['users'])
tutors_router = APIRouter(tags=['tutors'])

logger = logging.getLogger(__name__)

SELF_REGISTER_ROLES = {Role.STUDENT.value, Role.TUTOR.value}


def _normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized or '@' not in normalized:
        raise ValueError('A valid email is required.')
    return normalized


class RegisterUserRequest(BaseModel):
    email: str
    name: str | None = None
    role: str = Role.STUDENT.value
    phone: str | None = None
    address: str | None = None
    photo: str | None = None
    subjects: str | None = None
    experience: str | None = None
    education: str | None = None
    area: str | None = None

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        if value not in SELF_REGISTER_ROLES:
            raise ValueError('Users can only register as Student or Tutor.')
        return value


class RegisterUserResponse(BaseModel):
    message: str
    inserted_id: int | None = None


class UpdateRoleRequest(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        if value not in {role.value for role in Role}:
            raise ValueError('Invalid role.')
        return value


class UpdateProfileRequest(BaseModel):
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    photo: str | None = None
    subjects: str | None = None
    experience: str | None = None
    education: str | None = None
    area: str | None = None


class UserResponse(BaseModel):
    id: int
    email: str
    role: str
    name: str | None = None
    phone: str | None = None
    address: str | None = None
    photo: str | None = None

    class Config:
        from_attributes = True


class PublicProfileResponse(BaseModel):
    email: str
    role: str
    name: str | None = None
    photo: str | None = None

    class Config:
        from_attributes = True


class ContactResponse(BaseModel):
    name: str | None = None
    email: str
    phone: str | None = None


class TutorListingResponse(BaseModel):
    name: str | None = None
    email: str
    subjects: str | None = None
    experience: str | None = None
    education: str | None = None
    area: str | None = None

    class Config:
        from_attributes = True


def _get_user(db: Session, email: str) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user is None:
        raise NotFound('User not found.')
    return user


@router.post('', response_model=RegisterUserResponse)
def register_user(data: RegisterUserRequest, db: Session = Depends(get_db)):
    with database_errors(db):
        existing_user = db.query(User).filter(User.email == data.email).first()
        if existing_user:
            return RegisterUserResponse(message='User already exists', inserted_id=None)

        user = User(**data.model_dump())
        db.add(user)
        db.commit()
        db.refresh(user)

    logger.info('Registered %s as %s', user.email, user.role)
    return RegisterUserResponse(message='User created', inserted_id=user.id)


@router.get('', response_model=list[UserResponse])
def list_users(
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    require_role(identity, Role.ADMIN)
    with database_errors(db):
        return db.query(User).order_by(User.id.asc()).all()


@router.get('/contact/{email}', response_model=ContactResponse)
def get_contact(
    email: str,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    with database_errors(db):
        return contact_gate.get_contact(db, identity.email, identity.role, email.strip().lower())


@router.get('/{email}', response_model=PublicProfileResponse)
def get_public_profile(email: str, db: Session = Depends(get_db)):
    with database_errors(db):
        return _get_user(db, email.strip().lower())


@router.patch('/role/{email}', response_model=UserResponse)
def update_role(
    email: str,
    data: UpdateRoleRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    require_role(identity, Role.ADMIN)
    with database_errors(db):
        user = _get_user(db, email.strip().lower())
        if user.email == identity.email and data.role != Role.ADMIN.value:
            raise InvalidArgument('Admins cannot remove their own admin role.')
        user.role = data.role
        db.commit()
        db.refresh(user)

    logger.info('Role of %s changed to %s by %s', user.email, user.role, identity.email)
    return user


@router.patch('/update/{email}', response_model=UserResponse)
def update_profile(
    email: str,
    data: UpdateProfileRequest,
    identity: Identity = Depends(get_current_identity),
    db: Session = Depends(get_db),
):
    normalized_email = email.strip().lower()
    if identity.email != normalized_email:
        raise Forbidden('You can only update your own profile.')

    with database_errors(db):
        user = _get_user(db, normalized_email)
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(user, field, value)
        db.commit()
        db.refresh(user)

    return user


@tutors_router.get('/tutors', response_model=list[TutorListingResponse])
def list_tutors(db: Session = Depends(get_db)):
    with database_errors(db):
        return db.query(User).filter(User.role == Role.TUTOR.value).order_by(User.id.asc()).all()
