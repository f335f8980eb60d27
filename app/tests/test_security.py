"""
Tests for bearer token handling
"""
import pytest
from fastapi import status
from jose import jwt

from app.core.config import settings
from app.core.security import create_access_token, read_identity


def test_read_identity_returns_claims():
    token = create_access_token(7, "MANAGER", team_id=3)

    assert read_identity(token) == (7, "MANAGER", 3)


def test_read_identity_without_team():
    assert read_identity(create_access_token(7, "EMPLOYEE")) == (7, "EMPLOYEE", None)


def test_expired_token_rejected():
    token = create_access_token(7, "EMPLOYEE", expires_minutes=-1)

    with pytest.raises(ValueError):
        read_identity(token)


def test_non_numeric_subject_rejected():
    token = jwt.encode({"sub": "abc", "role": "EMPLOYEE"}, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)

    with pytest.raises(ValueError, match="malformed"):
        read_identity(token)


def test_wrong_secret_rejected(client):
    token = jwt.encode({"sub": "7", "role": "EMPLOYEE"}, "not-the-secret", algorithm=settings.JWT_ALGORITHM)

    response = client.get("/api/v1/attendance/today", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_missing_token_rejected(client):
    response = client.get("/api/v1/attendance/today")

    assert response.status_code in (status.HTTP_401_UNAUTHORIZED, status.HTTP_403_FORBIDDEN)
