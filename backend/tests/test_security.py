"""Security module tests."""

import uuid
from datetime import timedelta

import pytest
from httpx import AsyncClient

from portfolio_sync.core.security import create_access_token, decode_token


def test_create_access_token():
    """Test creating an access token."""
    token = create_access_token(subject="user123")
    assert isinstance(token, str)
    payload = decode_token(token)
    assert payload is not None
    assert payload["sub"] == "user123"
    assert payload["type"] == "access"


def test_decode_invalid_token():
    """Test decoding an invalid token."""
    assert decode_token("invalid.token.here") is None


def test_decode_expired_token():
    """Test decoding an expired token."""
    token = create_access_token(subject="user123", expires_delta=timedelta(seconds=-1))
    assert decode_token(token) is None


@pytest.mark.asyncio
async def test_missing_token_is_unauthorized(client: AsyncClient):
    response = await client.get("/api/v1/portfolios/")
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_unknown_user_is_not_found(client: AsyncClient):
    """A valid token for a user this service has never seen."""
    token = create_access_token(subject=str(uuid.uuid4()))
    response = await client.post(
        "/api/v1/portfolios/",
        json={"name": "Ghost"},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "User not found"


@pytest.mark.asyncio
async def test_non_uuid_subject_is_unauthorized(client: AsyncClient):
    token = create_access_token(subject="not-a-uuid")
    response = await client.get(
        "/api/v1/portfolios/sync",
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 401
