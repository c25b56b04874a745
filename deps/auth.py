import logging
from dataclasses import dataclass
from typing import Annotated, Dict, FrozenSet, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from deps.services import get_credential_store, get_token_service
from errors import Forbidden, Unauthenticated
from models import Role
from services.credentials import CredentialStore
from services.tokens import TokenService

logger = logging.getLogger("iqtest.auth")

_bearer = HTTPBearer(auto_error=False)

# Permission -> roles holding it. super_admin holds everything admin does.
PERMISSIONS: Dict[str, FrozenSet[Role]] = {
    "read_any_result": frozenset({Role.ADMIN, Role.SUPER_ADMIN}),
    "manage_content": frozenset({Role.ADMIN, Role.SUPER_ADMIN}),
}
STAFF_ROLES = frozenset({Role.ADMIN, Role.SUPER_ADMIN})


@dataclass(frozen=True)
class Principal:
    id: int
    role: Role
    email: str
    name: str

    def can(self, permission: str) -> bool:
        return self.role in PERMISSIONS.get(permission, frozenset())


def get_current_user(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(_bearer)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    store: Annotated[CredentialStore, Depends(get_credential_store)],
) -> Principal:
    """
    Authenticate the bearer token and resolve the user it refers to.
    The role is taken from the stored user, not from the token, so
    role changes apply without reissuing tokens.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated("Not authorized, no token")

    claims = tokens.verify(credentials.credentials)
    user = store.get_by_id(claims.id)
    if user is None:
        raise Unauthenticated("Not authorized, user not found")
    return Principal(id=user.id, role=user.role, email=user.email, name=user.name)


CurrentUser = Annotated[Principal, Depends(get_current_user)]


def authorize_roles(*roles: Role):
    """Dependency factory: allow only principals whose role is in ``roles``."""
    allowed = frozenset(roles)

    def _check(user: CurrentUser) -> Principal:
        if user.role not in allowed:
            logger.warning(
                "User %s (role: %s) attempted to access restricted route.",
                user.email,
                user.role.value,
            )
            raise Forbidden(f"User role {user.role.value} is not authorized to access this route")
        return user

    return _check


def require_permission(permission: str):
    return authorize_roles(*PERMISSIONS[permission])


AdminUser = Annotated[Principal, Depends(authorize_roles(*STAFF_ROLES))]
