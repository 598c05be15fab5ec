import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security_utils import mask_sensitive_data, verify_jwt_token
from .shared.errors import Forbidden, Locked, Unauthenticated
from .shared.time_utils import utc_now

logger = logging.getLogger(__name__)

# auto_error=False so a missing header surfaces as our 401 envelope
security = HTTPBearer(auto_error=False)


def resolve_user(token: str, db: Session) -> User:
    """Resolve a bearer token to an active, unlocked user"""
    payload = verify_jwt_token(token)
    if not payload or not payload.get("sub"):
        logger.warning(f"⚠️ Rejected bearer token {mask_sensitive_data(token)}")
        raise Unauthenticated("Invalid or expired token")

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError) as e:
        raise Unauthenticated("Invalid token claims") from e

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.is_active:
        logger.warning(f"⚠️ Token for missing or inactive user {user_id}")
        raise Unauthenticated("User not found or inactive")

    if user.lock_until and user.lock_until > utc_now():
        logger.warning(f"🔒 Locked account {user.id} attempted access")
        raise Locked("Account is temporarily locked due to too many failed login attempts")

    return user


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Get current user from the bearer JWT"""
    if not credentials or not credentials.credentials:
        raise Unauthenticated("Not authorized to access this route")

    user = resolve_user(credentials.credentials, db)
    logger.debug(f"✅ User authenticated: {user.email}")
    return user


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """Current user when a valid token is sent, None for anonymous requests"""
    if not credentials or not credentials.credentials:
        return None
    try:
        return resolve_user(credentials.credentials, db)
    except (Unauthenticated, Locked):
        return None


def require_roles(*roles: str):
    """Dependency factory restricting a route to the given roles"""

    async def checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning(f"⚠️ User {user.id} with role {user.role} denied; requires {roles}")
            raise Forbidden(f"User role {user.role} is not authorized to access this route")
        return user

    return checker


require_customer = require_roles("user")
require_provider = require_roles("provider")
require_admin = require_roles("admin")
