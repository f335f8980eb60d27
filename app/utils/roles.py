"""
Role names as carried in identity-service token claims
"""
import enum


class Role(str, enum.Enum):
    EMPLOYEE = "EMPLOYEE"
    TEAM_LEADER = "TEAM_LEADER"
    MANAGER = "MANAGER"
    HR = "HR"
    ADMIN = "ADMIN"


def role_name(role) -> str:
    """
    Normalize a role claim (enum, lowercase string, or missing) to an upper-case name

    Examples:
        >>> role_name(Role.HR)
        'HR'
        >>> role_name("team_leader")
        'TEAM_LEADER'
        >>> role_name(None)
        'EMPLOYEE'
    """
    if role is None:
        return Role.EMPLOYEE.value
    value = role.value if hasattr(role, "value") else str(role)
    return value.strip().upper() or Role.EMPLOYEE.value
