"""
Dependencies and guards for FastAPI endpoints
"""
from dataclasses import dataclass
from typing import Generator, Optional
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.db.session import SessionLocal
from app.core.config import settings
from app.core.security import read_identity
from app.utils.roles import role_name


security = HTTPBearer()


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity resolved from the bearer token claims"""
    id: int
    role: str
    team_id: Optional[int] = None

    @property
    def is_privileged(self) -> bool:
        return self.role in settings.get_privileged_roles()

    @property
    def is_manager(self) -> bool:
        return self.role in settings.get_manager_roles()


def get_db() -> Generator:
    """Dependency for getting database session"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    """
    Get current authenticated user from JWT token

    The token must carry ``sub`` (user id) and ``role``; ``team_id`` is optional
    and selects the team shift.
    """
    try:
        user_id, role, team_id = read_identity(credentials.credentials)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return CurrentUser(id=user_id, role=role_name(role), team_id=team_id)


def require_privileged(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only roles configured in PRIVILEGED_ROLES (policy admin, close-day)"""
    if not current_user.is_privileged:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Attendance administrator role required."
        )
    return current_user


def require_manager(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    """Allow only roles configured in MANAGER_ROLES (team views)"""
    if not current_user.is_manager:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Team lead role required."
        )
    return current_user
