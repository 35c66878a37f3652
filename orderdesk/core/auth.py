# orderdesk/core/auth.py
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from orderdesk.core.config import get_settings
from orderdesk.core.errors import ForbiddenError, UnauthorizedError
from orderdesk.models.user import User

settings = get_settings()
logger = logging.getLogger(__name__)

# HTTP Bearer scheme:
# - auto_error=False => missing Authorization header will NOT raise here;
#   each operation reports Unauthorized itself so every endpoint returns
#   the same result envelope.
bearer_scheme = HTTPBearer(auto_error=False)

ROLE_ADMIN = "admin"
ROLE_USER = "user"
ROLES: tuple[str, ...] = (ROLE_ADMIN, ROLE_USER)


@dataclass(frozen=True)
class Identity:
    """
    The resolved caller.

    `id` matches Supabase auth.users.id and public.users.id.
    The role is NOT carried here: it is looked up from the stored profile
    each time it matters (see IdentityGate.is_admin).
    """

    id: uuid.UUID
    email: str | None = None


def decode_access_token(token: str) -> dict[str, Any]:
    """
    Decode and verify a Supabase access token (JWT).

    Verification:
      - signature (HS256 using SUPABASE_JWT_SECRET)
      - expiration time (exp)
      - audience is NOT verified (Supabase 'aud' may vary)

    Raises:
        JWTError: if token is invalid/expired.
    """
    return jwt.decode(
        token,
        settings.SUPABASE_JWT_SECRET,
        algorithms=[settings.SUPABASE_JWT_ALG],
        options={"verify_aud": False},
    )


def identity_from_token(token: str) -> Identity | None:
    """
    Resolve an Identity from a raw JWT, or None if it can't be trusted.
    """
    try:
        payload = decode_access_token(token)
    except JWTError:
        logger.info("Rejected access token: invalid or expired")
        return None

    sub = payload.get("sub")
    if not sub:
        return None

    # Supabase provides sub as a string; enforce UUID
    try:
        user_id = uuid.UUID(str(sub))
    except ValueError:
        return None

    return Identity(id=user_id, email=payload.get("email"))


def get_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Identity | None:
    """
    FastAPI dependency: the caller's Identity, or None for anonymous callers.

    Never raises; operations decide what an anonymous caller may do.
    """
    if credentials is None:
        return None
    return identity_from_token(credentials.credentials)


class IdentityGate:
    """
    Authorization checks shared by every mutation.

    Role lookup policy (applied uniformly): if the stored role cannot be
    read, the caller is treated as a non-admin.
    """

    def require_identity(self, identity: Identity | None) -> Identity:
        if identity is None:
            raise UnauthorizedError()
        return identity

    def role_of(self, session: Session, user_id: uuid.UUID) -> str | None:
        """Stored role for the given user id, or None if there is no profile."""
        stmt = select(User.role).where(User.id == user_id)
        return session.exec(stmt).first()

    def is_admin(self, session: Session, identity: Identity) -> bool:
        try:
            return self.role_of(session, identity.id) == ROLE_ADMIN
        except SQLAlchemyError:
            logger.warning(
                "Role lookup failed for %s; treating as non-admin",
                identity.id,
                exc_info=True,
            )
            session.rollback()
            return False

    def require_admin(self, session: Session, identity: Identity | None) -> Identity:
        """
        Resolve the caller and enforce the admin role.

        Raises:
            UnauthorizedError: no identity.
            ForbiddenError: identity resolved but not an admin.
        """
        identity = self.require_identity(identity)
        if not self.is_admin(session, identity):
            raise ForbiddenError()
        return identity


async def identity_from_request(request: Request) -> Identity | None:
    """
    Resolve the caller straight from the request headers.

    Used where the dependency graph did not run (request validation
    failures), so those still report Unauthorized before bad input.
    """
    credentials = await bearer_scheme(request)
    return get_identity(credentials)
