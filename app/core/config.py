"""
Configuration management for the Attendance Policy Engine
"""
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import Optional, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required settings
    JWT_SECRET_KEY: str = Field(..., description="Secret used to verify bearer tokens from the identity service")

    # Optional settings with defaults
    DATABASE_URL: str = Field(default="sqlite:///./attendance.db", description="SQLAlchemy database URL")
    JWT_ALGORITHM: str = Field(default="HS256", description="JWT algorithm")
    JWT_EXPIRE_MINUTES: int = Field(default=120, description="JWT token expiration in minutes")

    APP_ENV: str = Field(default="local", description="Application environment: local, staging, prod")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level: DEBUG, INFO, WARNING, ERROR")

    # CORS settings
    ALLOWED_ORIGINS: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins. Use '*' for local only."
    )

    # Policy times are wall-clock times in this zone; instants are stored in UTC
    ATTENDANCE_TZ: str = Field(default="Asia/Kolkata", description="Timezone that policy and shift times are expressed in")

    # Roles allowed to act on behalf of others and to check in when self check-in is disabled
    PRIVILEGED_ROLES: str = Field(
        default="ADMIN,HR",
        description="Comma-separated roles treated as privileged for attendance actions",
    )
    MANAGER_ROLES: str = Field(
        default="ADMIN,HR,MANAGER,TEAM_LEADER",
        description="Comma-separated roles allowed to view team attendance",
    )

    # Leave marking
    LEAVE_REASON_MIN_LENGTH: int = Field(default=10, ge=1, description="Minimum trimmed length of a leave reason")

    # Badge cadence
    EARLY_BIRD_BADGE_EVERY: int = Field(default=10, ge=1, description="Award an early bird badge every N early check-ins")
    STREAK_BADGE_MILESTONES: str = Field(default="7,30,100", description="Comma-separated streak lengths that earn a badge")

    # History queries
    HISTORY_MAX_DAYS: int = Field(default=366, ge=1, description="Largest date range accepted by history queries")

    # Version (can be git SHA or semver)
    VERSION: Optional[str] = Field(default=None, description="Application version (git SHA or semver)")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True

    @field_validator("APP_ENV")
    @classmethod
    def validate_app_env(cls, v: str) -> str:
        """Validate APP_ENV"""
        allowed = ["local", "staging", "prod"]
        if v not in allowed:
            raise ValueError(f"APP_ENV must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate LOG_LEVEL"""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v.upper()

    @field_validator("STREAK_BADGE_MILESTONES")
    @classmethod
    def validate_streak_milestones(cls, v: str) -> str:
        """Milestones must be positive integers"""
        for part in v.split(","):
            part = part.strip()
            if not part:
                continue
            if not part.isdigit() or int(part) < 1:
                raise ValueError("STREAK_BADGE_MILESTONES must be a comma-separated list of positive integers")
        return v

    @field_validator("ATTENDANCE_TZ")
    @classmethod
    def validate_attendance_tz(cls, v: str) -> str:
        """Must be an IANA zone name"""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"ATTENDANCE_TZ must be an IANA timezone name, got {v!r}")
        return v

    def validate_production(self) -> None:
        """
        Validate settings for production environment

        Raises:
            ValueError: If production settings are invalid
        """
        if self.APP_ENV == "prod":
            # JWT_SECRET_KEY must be at least 32 characters in production
            if len(self.JWT_SECRET_KEY) < 32:
                raise ValueError(
                    "JWT_SECRET_KEY must be at least 32 characters in production environment"
                )

            # ALLOWED_ORIGINS must not be wildcard in production
            if self.ALLOWED_ORIGINS == "*" or not self.ALLOWED_ORIGINS:
                raise ValueError(
                    "ALLOWED_ORIGINS must be explicitly set (not '*') in production environment"
                )

            if self.DATABASE_URL.startswith("sqlite"):
                raise ValueError("DATABASE_URL must not point to SQLite in production environment")

    def get_allowed_origins_list(self) -> List[str]:
        """
        Get list of allowed CORS origins

        Returns:
            List of allowed origins (or ['*'] for local)
        """
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def get_privileged_roles(self) -> List[str]:
        return _split_upper(self.PRIVILEGED_ROLES)

    def get_manager_roles(self) -> List[str]:
        return _split_upper(self.MANAGER_ROLES)

    def get_streak_milestones(self) -> List[int]:
        """Sorted, de-duplicated streak milestones"""
        return sorted({int(p.strip()) for p in self.STREAK_BADGE_MILESTONES.split(",") if p.strip()})


def _split_upper(value: str) -> List[str]:
    return [part.strip().upper() for part in value.split(",") if part.strip()]


# Create settings instance
settings = Settings()

# Validate production settings if in prod
if settings.APP_ENV == "prod":
    settings.validate_production()
