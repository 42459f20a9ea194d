from datetime import datetime, timedelta, timezone
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi.security import HTTPBearer
from pydantic import BaseModel, ValidationError
from enum import Enum

from .config import settings

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# JWT Security - missing credentials are reported by the guard itself
security = HTTPBearer(auto_error=False)

class UserRole(str, Enum):
    ADMIN = "admin"
    DOCTOR = "doctor"
    PATIENT = "patient"

class TokenPayload(BaseModel):
    sub: Optional[str] = None
    role: Optional[str] = None
    exp: Optional[int] = None
    token_type: Optional[str] = None

class CallerIdentity(BaseModel):
    """Identity resolved from a verified access token."""
    id: int
    role: UserRole

# Password utilities
def get_password_hash(password: str) -> str:
    """Generate password hash."""
    return pwd_context.hash(password)

# JWT utilities
def create_access_token(
    identity: CallerIdentity,
    expires_delta: Optional[timedelta] = None
) -> str:
    """Create JWT access token for an identity."""
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    expire = datetime.now(timezone.utc) + expires_delta
    
    to_encode = {
        # RFC 7519 requires sub to be a string
        "sub": str(identity.id),
        "role": identity.role.value,
        "exp": expire,
        "token_type": "access",
    }
    
    return jwt.encode(
        to_encode,
        settings.SECRET_KEY,
        algorithm=settings.ALGORITHM
    )

def verify_token(token: str) -> Optional[TokenPayload]:
    """Verify and decode JWT token."""
    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
            options={"require_exp": True}
        )
        
        return TokenPayload(**payload)
    
    except (JWTError, ValidationError):
        return None

def resolve_identity(token: str) -> Optional[CallerIdentity]:
    """Decode an access token into the caller identity it asserts."""
    payload = verify_token(token)
    if not payload or payload.token_type != "access":
        return None
    
    if not payload.sub or not payload.role:
        return None
    
    try:
        return CallerIdentity(id=int(payload.sub), role=payload.role)
    except (ValueError, ValidationError):
        return None
