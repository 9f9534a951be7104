from datetime import datetime, timezone, timedelta
from typing import Optional
from uuid import UUID
from jose import jwt, JWTError
from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from .config import get_settings
from .database import get_session
from .errors import AuthenticationRequired
from ..models.users import User
from ..services.redis_service import redis_service


settings = get_settings()
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_minutes: int = 30) -> str:
    """Mint a bearer token the way the identity store does; used by seed data and tests."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=expires_minutes)
    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def _resolve_principal(token: str, session: Session) -> User:
    if redis_service.is_blacklisted(token):
        raise AuthenticationRequired("Token has been revoked")

    try:
        payload = jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM]
        )
    except JWTError:
        raise AuthenticationRequired("Could not validate credentials")

    user_id = payload.get("sub")
    if not user_id:
        raise AuthenticationRequired("Could not validate credentials")
    try:
        user = session.get(User, UUID(user_id))
    except ValueError:
        raise AuthenticationRequired("Could not validate credentials")
    if not user:
        raise AuthenticationRequired("User not found")
    return user


async def get_optional_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    session: Session = Depends(get_session)
) -> Optional[User]:
    """Current principal, or None for an anonymous caller."""
    if credentials is None:
        return None
    return _resolve_principal(credentials.credentials, session)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    session: Session = Depends(get_session)
) -> User:
    if credentials is None:
        raise AuthenticationRequired("Authentication required")
    return _resolve_principal(credentials.credentials, session)
