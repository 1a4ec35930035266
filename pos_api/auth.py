"""
Bearer-token caller identity.

Tokens are HS256 JWTs with ``id`` and ``role`` claims.  Issuing tokens is
the login service's job; ``create_access_token`` exists for seeding and
tests.  Whether the user still exists is checked by the services, not
here.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from pos_config.schema import AuthConfig
from pos_kernel.domain.values import UserRole
from pos_kernel.exceptions import ForbiddenError, InvalidTokenError, MissingCredentialsError
from pos_kernel.logging_config import LogContext

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Caller:
    id: int
    role: UserRole


def create_access_token(
    user_id: int,
    role: UserRole | str,
    auth: AuthConfig,
    now: datetime | None = None,
) -> str:
    issued = now or datetime.now(timezone.utc)
    claims = {
        "id": user_id,
        "role": UserRole(role).value,
        "iat": issued,
        "exp": issued + timedelta(minutes=auth.token_ttl_minutes),
    }
    return jwt.encode(claims, auth.jwt_secret, algorithm=auth.jwt_algorithm)


def decode_access_token(token: str, auth: AuthConfig) -> Caller:
    try:
        claims = jwt.decode(token, auth.jwt_secret, algorithms=[auth.jwt_algorithm])
    except jwt.ExpiredSignatureError:
        raise InvalidTokenError("token expired") from None
    except jwt.PyJWTError as exc:
        raise InvalidTokenError(str(exc)) from None

    try:
        user_id = int(claims["id"])
        role = UserRole(claims["role"])
    except (KeyError, TypeError, ValueError):
        raise InvalidTokenError("missing or malformed id/role claims") from None
    return Caller(id=user_id, role=role)


async def current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> Caller:
    if credentials is None or not credentials.credentials:
        raise MissingCredentialsError()
    caller = decode_access_token(credentials.credentials, request.app.state.config.auth)
    LogContext.set(actor_id=caller.id)
    return caller


async def require_admin(caller: Caller = Depends(current_user)) -> Caller:
    if caller.role is not UserRole.ADMIN:
        raise ForbiddenError(caller.role.value, UserRole.ADMIN.value)
    return caller
