"""Valid HH.ru access tokens per user."""

import logging

from app.core.exceptions import UpstreamError
from app.core.storage import TokenStorage
from app.services.hh_client import HHAPIError, HHClient

logger = logging.getLogger(__name__)


class HHTokenProvider:
    """Returns a usable access token for a user, refreshing it when expired."""

    def __init__(self, hh_client: HHClient, storage: TokenStorage | None = None):
        self.hh_client = hh_client
        self.storage = storage or TokenStorage()

    async def get_valid_access_token(self, user_id: str) -> str:
        token = await self.storage.get_for_user(user_id)
        if token is None:
            raise UpstreamError(
                "HH", f"No HH.ru token for user {user_id}, re-authentication required"
            )

        if not token.is_expired():
            return token.access_token

        logger.info(f"HH token of user {user_id} expired, refreshing")
        try:
            token_data = await self.hh_client.refresh_token(token.refresh_token)
        except HHAPIError as e:
            raise UpstreamError(
                "HH", f"Token refresh failed for user {user_id}: {e.detail}", e.status_code
            ) from e

        saved = await self.storage.save(
            user_id,
            {
                "access_token": token_data["access_token"],
                "refresh_token": token_data.get("refresh_token", token.refresh_token),
                "expires_in": token_data["expires_in"],
                "obtained_at": token_data.get("obtained_at"),
            },
        )
        return saved.access_token
