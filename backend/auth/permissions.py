from backend.auth.dependencies import Identity
from backend.core.errors import Forbidden
from backend.models.user import Role


def has_role(identity: Identity | None, *roles: Role) -> bool:
    if identity is None:
        return False
    return identity.role in {role.value for role in roles}


def require_role(identity: Identity | None, *roles: Role) -> Identity:
    if not has_role(identity, *roles):
        allowed = ' or '.join(role.value for role in roles)
        raise Forbidden(f'Forbidden access: requires {allowed} role.')
    return identity


def require_self_or_admin(identity: Identity | None, email: str) -> Identity:
    if identity is None:
        raise Forbidden()
    if identity.role != Role.ADMIN.value and identity.email != email:
        raise Forbidden('Forbidden access: not your account.')
    return identity
