"""Tests for per-user HH token handling."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.core.exceptions import UpstreamError
from app.models.token import _utc_now
from app.services.hh_client import HHAPIError
from app.services.hh_tokens import HHTokenProvider


@pytest.fixture
def provider(mock_hh_client, token_storage):
    return HHTokenProvider(mock_hh_client, token_storage)


class TestHHTokenProvider:
    @pytest.mark.asyncio
    async def test_valid_token(self, provider, token_storage, user, mock_hh_client):
        await token_storage.save(
            user.id, {"access_token": "a1", "refresh_token": "r1", "expires_in": 3600}
        )

        assert await provider.get_valid_access_token(user.id) == "a1"
        mock_hh_client.refresh_token.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_expired_token_is_refreshed(
        self, provider, token_storage, user, mock_hh_client
    ):
        await token_storage.save(
            user.id,
            {
                "access_token": "old",
                "refresh_token": "r1",
                "expires_in": 3600,
                "obtained_at": _utc_now() - timedelta(hours=2),
            },
        )
        mock_hh_client.refresh_token = AsyncMock(
            return_value={"access_token": "new", "refresh_token": "r2", "expires_in": 3600}
        )

        assert await provider.get_valid_access_token(user.id) == "new"
        mock_hh_client.refresh_token.assert_awaited_once_with("r1")

        stored = await token_storage.get_for_user(user.id)
        assert stored.access_token == "new"
        assert stored.refresh_token == "r2"

    @pytest.mark.asyncio
    async def test_missing_token(self, provider, user):
        with pytest.raises(UpstreamError, match="re-authentication required"):
            await provider.get_valid_access_token(user.id)

    @pytest.mark.asyncio
    async def test_refresh_failure(self, provider, token_storage, user, mock_hh_client):
        await token_storage.save(
            user.id,
            {
                "access_token": "old",
                "refresh_token": "r1",
                "expires_in": 60,
                "obtained_at": _utc_now() - timedelta(hours=1),
            },
        )
        mock_hh_client.refresh_token = AsyncMock(
            side_effect=HHAPIError(400, "Token refresh failed. Please re-authenticate.")
        )

        with pytest.raises(UpstreamError) as exc_info:
            await provider.get_valid_access_token(user.id)

        assert exc_info.value.status_code == 400
        assert "Token refresh failed" in exc_info.value.detail
