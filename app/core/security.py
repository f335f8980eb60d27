"""
Bearer token helpers.

Tokens are issued by the external identity service; this service only verifies
them and reads the caller's id, role and team from the claims.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Tuple
from jose import JWTError, jwt
from app.core.config import settings

logger = logging.getLogger(__name__)


def create_access_token(
    user_id: int,
    role: str,
    team_id: Optional[int] = None,
    expires_minutes: Optional[int] = None,
) -> str:
    """Sign a token with the claims the identity service issues. Used by scripts and tests."""
    if expires_minutes is None:
        expires_minutes = settings.JWT_EXPIRE_MINUTES

    claims: Dict = {
        "sub": str(user_id),
        "role": role,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    if team_id is not None:
        claims["team_id"] = team_id

    return jwt.encode(claims, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> Dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as e:
        logger.debug("Token rejected: %s", e)
        raise ValueError("Invalid token")


def read_identity(token: str) -> Tuple[int, Optional[str], Optional[int]]:
    """
    Verify ``token`` and return ``(user_id, role, team_id)``.

    ``sub`` is required and must be an integer id. ``team_id`` is optional; when
    present it selects the team shift for check-in.

    Raises:
        ValueError: bad signature, expired token or malformed claims
    """
    payload = decode_token(token)
    sub_value = payload.get("sub")
    if sub_value is None:
        raise ValueError("Token has no subject")
    try:
        user_id = int(sub_value)
        team_id = payload.get("team_id")
        team_id = int(team_id) if team_id is not None else None
    except (TypeError, ValueError):
        raise ValueError("Token claims are malformed")
    return user_id, payload.get("role"), team_id
