"""
HTTP content generator.

Sends ContentRequest payloads to an external tutoring-content service and
returns its opaque text/metadata. Generation itself happens remotely.
"""

from __future__ import annotations

import asyncio

import httpx
from loguru import logger

from learnstate.core.errors import ContentGenerationFailed
from learnstate.integrations.collaborators import ContentRequest, GeneratedContent


class HttpContentGenerator:
    """HTTP client for the tutoring content service."""

    def __init__(
        self,
        api_url: str,
        timeout_ms: int = 15000,
        retry_attempts: int = 2,
        backoff_seconds: float = 1.0,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize content generator client.

        Args:
            api_url: Base URL for the content API
            timeout_ms: Request timeout in milliseconds
            retry_attempts: Number of attempts on timeouts and 5xx errors
            backoff_seconds: Base of the exponential backoff between attempts
            client: Pre-built client (tests inject a MockTransport here)
        """
        self.api_url = api_url.rstrip("/")
        self.timeout_seconds = timeout_ms / 1000.0
        self.retry_attempts = max(1, retry_attempts)
        self.backoff_seconds = backoff_seconds
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout_seconds),
            follow_redirects=True,
        )

    @classmethod
    def from_settings(cls, settings) -> HttpContentGenerator:
        if not settings.content_api_url:
            raise ValueError("content_api_url is not configured")
        return cls(
            settings.content_api_url,
            timeout_ms=settings.content_timeout_ms,
            retry_attempts=settings.content_retry_attempts,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.client.aclose()

    async def generate(self, request: ContentRequest) -> GeneratedContent:
        """
        Request tutoring content with retry logic.

        Raises:
            ContentGenerationFailed: On 4xx responses or once retries are exhausted
        """
        last_error: Exception | None = None

        for attempt in range(self.retry_attempts):
            try:
                response = await self.client.post(
                    f"{self.api_url}/generate",
                    json=request.to_dict(),
                )
                response.raise_for_status()
                return GeneratedContent.from_dict(response.json())

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code < 500:
                    # Don't retry on 4xx client errors
                    logger.error("Content service client error: {}", e.response.status_code)
                    raise ContentGenerationFailed(
                        f"Content service rejected request: {e.response.status_code}"
                    ) from e
                logger.warning(
                    "Content service error {} on attempt {}/{}",
                    e.response.status_code,
                    attempt + 1,
                    self.retry_attempts,
                )

            except (httpx.TimeoutException, httpx.RequestError) as e:
                last_error = e
                logger.warning(
                    "Content service request failed on attempt {}/{}: {}",
                    attempt + 1,
                    self.retry_attempts,
                    e,
                )

            if attempt < self.retry_attempts - 1:
                await asyncio.sleep(self.backoff_seconds * 2**attempt)

        raise ContentGenerationFailed(
            f"Content generation failed after {self.retry_attempts} attempts: {last_error}"
        ) from last_error
