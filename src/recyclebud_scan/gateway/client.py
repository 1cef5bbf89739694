"""AI gateway client for multimodal waste classification.

The gateway speaks the OpenAI chat completions protocol:
1. POST the system instruction plus a user message carrying the image
2. Map rate-limit (429) and quota (402) answers to their own error kinds
3. Return ``choices[0].message.content`` as free text for the parser

Exactly one request per call. No retries: the caller owns retry policy.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Protocol

import aiohttp

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import (
    MisconfiguredServiceError,
    QuotaExceededError,
    ThrottledError,
    UpstreamFailureError,
)
from recyclebud_scan.gateway.models import CompletionRequest, extract_content
from recyclebud_scan.prompts import USER_PROMPT

logger = logging.getLogger("recyclebud_scan.gateway")

GENERIC_UPSTREAM_MESSAGE = "Classification service error. Please try again."
NO_CONTENT_MESSAGE = "No response from classification service"


class CompletionService(Protocol):
    """Anything that answers a system instruction plus an image with text."""

    async def complete_async(self, system_instruction: str, image: str) -> str: ...

    async def close(self) -> None: ...


class GatewayClient:
    """Client for the OpenAI-compatible AI gateway.

    Handles request building, status mapping, and content extraction.
    """

    def __init__(self, config: ScanConfig) -> None:
        self._config = config
        self._url = config.gateway_url
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self._config.gateway_timeout)
            )
        return self._session

    async def complete_async(self, system_instruction: str, image: str) -> str:
        """Send one classification request and return the completion text.

        Args:
            system_instruction: Fixed instruction describing the output schema.
            image: Data URL, base64 string or http(s) URL of the photo.

        Returns:
            The raw completion content (expected, not guaranteed, to be JSON).

        Raises:
            ThrottledError: Gateway answered 429.
            QuotaExceededError: Gateway answered 402.
            UpstreamFailureError: Any other failure, or an empty completion.
            MisconfiguredServiceError: No API key configured.
        """
        if not self._config.gateway_api_key:
            raise MisconfiguredServiceError(
                "Classification service is not configured.",
                details={"missing": ["LOVABLE_API_KEY"]},
            )

        payload = CompletionRequest(
            model=self._config.model,
            system_instruction=system_instruction,
            user_prompt=USER_PROMPT,
            image_url=image,
        ).to_dict()
        headers = {
            "Authorization": f"Bearer {self._config.gateway_api_key}",
            "Content-Type": "application/json",
        }

        session = await self._get_session()
        start_time = time.monotonic()
        logger.info(
            "Requesting classification from %s (model: %s)", self._url, self._config.model
        )

        try:
            async with session.post(self._url, json=payload, headers=headers) as resp:
                if not 200 <= resp.status < 300:
                    body = await resp.text()
                    raise_for_gateway_status(resp.status, body)
                data = await resp.json(content_type=None)
        except (ThrottledError, QuotaExceededError, UpstreamFailureError):
            raise
        except asyncio.TimeoutError as e:
            logger.error(
                "AI gateway timed out after %.1fs", time.monotonic() - start_time
            )
            raise UpstreamFailureError(
                GENERIC_UPSTREAM_MESSAGE,
                details={"reason": "timeout", "timeout": self._config.gateway_timeout},
            ) from e
        except (aiohttp.ClientError, ValueError) as e:
            logger.error("AI gateway request failed: %s: %s", type(e).__name__, e)
            raise UpstreamFailureError(
                GENERIC_UPSTREAM_MESSAGE,
                details={"reason": f"{type(e).__name__}: {e}"},
            ) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        content = extract_content(data)
        if content is None:
            logger.error("AI gateway returned no completion content (%dms)", duration_ms)
            raise UpstreamFailureError(NO_CONTENT_MESSAGE, status_code=200)

        logger.debug("AI gateway answered in %dms: %s", duration_ms, content)
        return content

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None


def raise_for_gateway_status(status: int, body: str) -> None:
    """Map a non-success gateway status to the matching error kind.

    The upstream body is logged and kept in ``details`` but never put in the
    caller-visible message.
    """
    logger.error("AI gateway error: HTTP %d %s", status, body[:500])
    details = {"status": status, "response_body": body[:500]}

    if status == 429:
        raise ThrottledError(details=details)
    if status == 402:
        raise QuotaExceededError(details=details)
    raise UpstreamFailureError(
        GENERIC_UPSTREAM_MESSAGE, status_code=status, details=details
    )
