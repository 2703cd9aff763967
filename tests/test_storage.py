"""Tests for token storage."""

from datetime import timedelta

import pytest

from app.models.token import HHToken, _utc_now


class TestTokenStorage:
    """Tests for TokenStorage."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, token_storage, user):
        saved = await token_storage.save(
            user.id, {"access_token": "a1", "refresh_token": "r1", "expires_in": 3600}
        )

        assert saved.id is not None
        assert saved.obtained_at is not None
        token = await token_storage.get_for_user(user.id)
        assert token.access_token == "a1"

    @pytest.mark.asyncio
    async def test_save_replaces_previous_token(self, token_storage, user):
        await token_storage.save(
            user.id, {"access_token": "a1", "refresh_token": "r1", "expires_in": 3600}
        )
        await token_storage.save(
            user.id, {"access_token": "a2", "refresh_token": "r2", "expires_in": 3600}
        )

        token = await token_storage.get_for_user(user.id)
        assert token.access_token == "a2"

    @pytest.mark.asyncio
    async def test_tokens_are_per_user(self, token_storage, user, other_user):
        await token_storage.save(
            user.id, {"access_token": "a1", "refresh_token": "r1", "expires_in": 3600}
        )

        assert await token_storage.get_for_user(other_user.id) is None


class TestHHToken:
    """Tests for token expiry."""

    def test_fresh_token(self):
        token = HHToken(access_token="a", refresh_token="r", expires_in=3600, obtained_at=_utc_now())
        assert token.is_expired() is False

    def test_expired_token(self):
        token = HHToken(
            access_token="a",
            refresh_token="r",
            expires_in=3600,
            obtained_at=_utc_now() - timedelta(hours=2),
        )
        assert token.is_expired() is True

    def test_buffer(self):
        token = HHToken(
            access_token="a",
            refresh_token="r",
            expires_in=3600,
            obtained_at=_utc_now() - timedelta(minutes=56),
        )
        assert token.is_expired() is True
        assert token.is_expired(buffer_seconds=0) is False
