import asyncio
import logging
import random
from datetime import UTC, datetime
from typing import Any

import httpx

from app.core.config import settings
from app.core.exceptions import UpstreamError

logger = logging.getLogger(__name__)

# Publish failures with these codes mean "already published" or "not yet allowed"
EXPECTED_PUBLISH_STATUSES = {400, 429}


class HHAPIError(UpstreamError):
    """HH API error."""

    def __init__(
        self,
        status_code: int,
        message: str,
        response_data: dict | None = None,
    ):
        self.response_data = response_data or {}
        super().__init__("HH", message, status_code=status_code)


class HHClient:
    """HeadHunter API client."""

    TOKEN_URL = "https://hh.ru/oauth/token"
    API_BASE = "https://api.hh.ru"

    REQUEST_DELAY = 0.1

    def __init__(self, host: str | None = None, user_agent: str | None = None):
        self.host = host or settings.hh_host
        self.user_agent = user_agent or settings.hh_user_agent
        self.client = httpx.AsyncClient(
            base_url=self.API_BASE,
            timeout=httpx.Timeout(30.0),
            limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
        )
        self._last_request_time = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _rate_limit(self):
        """Basic rate limiting."""
        loop = asyncio.get_running_loop()
        if self._last_request_time:
            elapsed = loop.time() - self._last_request_time
            if elapsed < self.REQUEST_DELAY:
                await asyncio.sleep(self.REQUEST_DELAY - elapsed)
        self._last_request_time = loop.time()

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "HH-User-Agent": self.user_agent,
            "User-Agent": self.user_agent,
            "Accept": "application/json",
        }

    @staticmethod
    def _error_data(response: httpx.Response) -> dict:
        try:
            data = response.json()
            return data if isinstance(data, dict) else {"items": data}
        except ValueError:
            return {"message": response.text[:500]}

    @staticmethod
    def _describe(error_data: dict) -> str:
        if error_data.get("description"):
            return str(error_data["description"])
        errors = error_data.get("errors")
        if errors:
            return ", ".join(
                str(e.get("value") or e.get("type")) for e in errors if isinstance(e, dict)
            )
        return str(error_data.get("message") or error_data)

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        token: str,
        max_retries: int = 3,
        base_delay: float = 1.0,
        wait_on_rate_limit: bool = True,
        **kwargs,
    ) -> dict:
        """Make an authorized HTTP request with retry logic."""
        headers = self._headers(token)
        headers.update(kwargs.pop("headers", {}) or {})
        params = {"host": self.host}
        params.update(kwargs.pop("params", {}) or {})

        await self._rate_limit()

        retries = 0
        while True:
            try:
                response = await self.client.request(
                    method, endpoint, headers=headers, params=params, **kwargs
                )

                if response.status_code == 429 and wait_on_rate_limit:
                    retries += 1
                    if retries > max_retries:
                        raise HHAPIError(429, "Rate limited by HH API", self._error_data(response))
                    retry_after = int(response.headers.get("Retry-After", 60))
                    logger.warning(f"Rate limited. Waiting {retry_after} seconds")
                    await asyncio.sleep(retry_after)
                    continue

                if response.status_code in [502, 503, 504]:
                    retries += 1
                    if retries > max_retries:
                        logger.error(
                            f"Gateway error {response.status_code} after {max_retries} retries"
                        )
                        raise HHAPIError(
                            response.status_code,
                            f"Gateway error after {max_retries} retries",
                            {"status_code": response.status_code},
                        )

                    delay = base_delay * (2**retries) + random.uniform(0.5, 1.5)
                    logger.warning(
                        f"Gateway error {response.status_code}. Retry {retries}/{max_retries} after {delay:.2f}s"
                    )
                    await asyncio.sleep(delay)
                    continue

                if response.status_code >= 400:
                    error_data = self._error_data(response)
                    logger.error(
                        f"HH API error: {response.status_code} - {error_data}, "
                        f"Endpoint: {endpoint}, Method: {method}"
                    )
                    raise HHAPIError(
                        response.status_code, self._describe(error_data), error_data
                    )

                if not response.text or response.text.strip() == "":
                    return {"status": "success", "status_code": response.status_code}

                try:
                    return response.json()
                except ValueError as e:
                    logger.error(
                        f"Failed to parse JSON response: {e}, Response text: {response.text[:500]}"
                    )
                    raise HHAPIError(
                        500,
                        f"Invalid JSON response: {e!s}",
                        {"response_text": response.text[:500]},
                    )

            except httpx.TransportError as e:
                retries += 1
                if retries > max_retries:
                    logger.error(f"Network error after {max_retries} retries: {e!s}")
                    raise HHAPIError(503, f"Network error: {e!s}")

                delay = base_delay * (2**retries) + random.uniform(0.5, 1.5)
                logger.warning(
                    f"Network error. Retry {retries}/{max_retries} after {delay:.2f}s for {method} {endpoint}"
                )
                await asyncio.sleep(delay)

    async def create_resume_draft(self, token: str, payload: dict[str, Any]) -> str:
        """Create a resume through the resume profile API and return its ID."""
        response = await self._make_request("POST", "/resume_profile", token, json=payload)
        resume_id = (response.get("resume") or {}).get("id")
        if not resume_id:
            logger.error(f"HH did not return a resume ID: {response}")
            raise HHAPIError(
                502, "Failed to get resume ID from HeadHunter response", response
            )
        logger.info(f"Created HH resume {resume_id}")
        return str(resume_id)

    async def update_resume(
        self, token: str, resume_id: str, payload: dict[str, Any]
    ) -> dict:
        """Fill a resume profile with full data."""
        logger.info(f"Updating resume profile {resume_id}...")
        response = await self._make_request(
            "PUT", f"/resume_profile/{resume_id}", token, json=payload
        )
        logger.info(f"Resume profile {resume_id} updated successfully")
        return response

    async def publish_resume(self, token: str, resume_id: str) -> dict:
        """Publish a resume.

        429 (``next_publish_at`` not reached, i.e. already published) and 400
        (validation) are logged as expected rejections and re-raised.
        """
        try:
            response = await self._make_request(
                "POST",
                f"/resumes/{resume_id}/publish",
                token,
                wait_on_rate_limit=False,
            )
        except HHAPIError as e:
            if e.status_code in EXPECTED_PUBLISH_STATUSES:
                logger.warning(f"Resume {resume_id} was not published: {e.detail}")
            raise
        logger.info(f"Resume {resume_id} published")
        return response

    async def submit_application(
        self,
        token: str,
        vacancy_id: str,
        resume_id: str,
        cover_letter: str | None = None,
    ) -> dict:
        """Apply to a vacancy (creates a negotiation)."""
        form_data = {"vacancy_id": vacancy_id, "resume_id": resume_id}
        if cover_letter:
            form_data["message"] = cover_letter

        try:
            response = await self._make_request(
                "POST", "/negotiations", token, data=form_data
            )
        except HHAPIError as e:
            error_messages = {
                400: "Invalid application data or already applied to this vacancy",
                403: "Access denied - you may not be eligible for this vacancy",
                404: "Vacancy or resume not found",
            }
            detail = error_messages.get(
                e.status_code, f"Application failed with HTTP {e.status_code}"
            )
            logger.error(
                f"Application failed for vacancy {vacancy_id}: "
                f"Status {e.status_code}, Response: {e.response_data}"
            )
            raise HHAPIError(
                e.status_code, f"{detail}: {e.detail}", e.response_data
            ) from e

        logger.info(f"Successfully applied to vacancy {vacancy_id} with resume {resume_id}")
        return response or {"status": "success"}

    async def refresh_token(self, refresh_token: str) -> dict:
        """Refresh access token using refresh token."""
        data = {
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "client_id": settings.hh_client_id,
            "client_secret": settings.hh_client_secret,
        }

        try:
            response = await self.client.post(self.TOKEN_URL, data=data)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(f"Token refresh failed: {e.response.text}")
            raise HHAPIError(
                e.response.status_code,
                "Token refresh failed. Please re-authenticate.",
            ) from e
        except httpx.RequestError as e:
            raise HHAPIError(503, f"Network error during token refresh: {e!s}") from e

        token_data = response.json()
        token_data["obtained_at"] = datetime.now(UTC).replace(tzinfo=None)
        return token_data

    async def close(self):
        """Close the HTTP client."""
        await self.client.aclose()
