from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from typing import Optional

from ..core.config import settings
from ..core.exceptions import Unauthenticated, InvalidCredential, Forbidden, RateLimited
from ..core.redis import get_redis
from ..core.security import security, resolve_identity, CallerIdentity, UserRole

async def get_current_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> CallerIdentity:
    """Verify the bearer token and return the identity it asserts.

    Pure verification: the database is not consulted, so a rejected caller
    never reaches the appointment ledger.
    """
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()
    
    identity = resolve_identity(credentials.credentials)
    if identity is None:
        raise InvalidCredential()
    
    return identity

# Role-based access control dependencies
def require_role(*allowed_roles: UserRole):
    """Create a dependency that requires specific user roles."""
    async def role_checker(
        identity: CallerIdentity = Depends(get_current_identity)
    ) -> CallerIdentity:
        if identity.role not in allowed_roles:
            raise Forbidden(
                f"Access denied. Required roles: {[role.value for role in allowed_roles]}"
            )
        return identity
    
    return role_checker

get_current_doctor_identity = require_role(UserRole.DOCTOR)

# Rate limiting dependency
async def rate_limit_check(
    request: Request,
    redis_client = Depends(get_redis)
) -> None:
    """Fixed-window rate limiting for write endpoints."""
    if settings.RATE_LIMIT_REQUESTS <= 0:
        return
    
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:{client_ip}:{request.url.path}"
    
    current_requests = redis_client.get(key)
    if current_requests is None:
        redis_client.setex(key, settings.RATE_LIMIT_WINDOW_SECONDS, 1)
    else:
        if int(current_requests) >= settings.RATE_LIMIT_REQUESTS:
            raise RateLimited()
        redis_client.incr(key)
