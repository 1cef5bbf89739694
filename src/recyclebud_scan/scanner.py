"""WasteScanner: the main entry point for classifying one waste photo.

Usage:
    from recyclebud_scan import WasteScanner

    scanner = WasteScanner()  # auto-loads from env vars

    result = scanner.scan(credential=access_token, image=data_url)
    print(result.waste_type, result.base_points)

The pipeline is linear: check the credential is present, check the image,
verify the credential, call the AI gateway once, parse (or fall back), then
attach the verified user id.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import (
    MisconfiguredServiceError,
    RecycleBudError,
    UnauthenticatedError,
)
from recyclebud_scan.gateway.client import CompletionService, GatewayClient
from recyclebud_scan.identity import IdentityVerifier, SupabaseIdentityVerifier
from recyclebud_scan.parsing import parse_or_fallback
from recyclebud_scan.prompts import SYSTEM_INSTRUCTION
from recyclebud_scan.results import ScanResult
from recyclebud_scan.utils.image_payload import inspect_image

logger = logging.getLogger("recyclebud_scan.scanner")


class WasteScanner:
    """Classifies waste photos for authenticated RecycleBud users.

    Holds no per-request state; one instance serves every request. The
    identity verifier and completion service are injected so tests and
    alternative backends can stand in for Supabase and the AI gateway.
    """

    def __init__(
        self,
        config: ScanConfig | None = None,
        *,
        verifier: IdentityVerifier | None = None,
        completion: CompletionService | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            config: Full ScanConfig object. If not provided, auto-loads from env.
            verifier: Identity verifier. Defaults to Supabase Auth.
            completion: Completion service. Defaults to the AI gateway client.
        """
        self._config = config if config is not None else ScanConfig()
        self._verifier: IdentityVerifier = verifier or SupabaseIdentityVerifier(self._config)
        self._completion: CompletionService = completion or GatewayClient(self._config)

        try:
            self._config.validate()
        except MisconfiguredServiceError as e:
            # Not fatal here: requests fail with MisconfiguredServiceError instead
            logger.warning("WasteScanner configuration incomplete: %s", e.details)
        logger.info("WasteScanner initialized (model: %s)", self._config.model)

    @property
    def config(self) -> ScanConfig:
        return self._config

    # ------------------------------------------------------------------
    # Primary API
    # ------------------------------------------------------------------

    async def scan_async(self, *, credential: str | None, image: Any) -> ScanResult:
        """Classify one image on behalf of the credential's owner.

        Args:
            credential: Bearer token supplied by the caller.
            image: Data URL, base64 string or http(s) URL of the photo.

        Returns:
            A fully populated ScanResult carrying the verified user id. When
            the model's output cannot be parsed this is the fallback result.

        Raises:
            UnauthenticatedError: Credential missing or not verifiable.
            InvalidInputError: Image missing, empty, or unusable.
            MisconfiguredServiceError: Gateway API key not configured.
            ThrottledError: Gateway rate limit hit.
            QuotaExceededError: Gateway credits exhausted.
            UpstreamFailureError: Any other gateway failure.
        """
        if not credential:
            logger.error("No authorization credential provided")
            raise UnauthenticatedError(details={"reason": "missing credential"})

        payload = inspect_image(image, self._config.max_image_bytes)

        try:
            user_id = await self._verifier.verify_async(credential)
        except RecycleBudError as e:
            logger.error("Authentication failed: %s %s", e.message, e.details)
            raise
        logger.info("Authenticated user: %s", user_id)

        self._require_gateway()

        start_time = time.monotonic()
        logger.info("Analyzing waste image for user %s (%s)", user_id, payload.describe())
        content = await self._completion.complete_async(SYSTEM_INSTRUCTION, image)

        result = parse_or_fallback(content).with_user(user_id)
        duration_ms = int((time.monotonic() - start_time) * 1000)

        if result.is_identified:
            logger.info(
                "Classified image for user %s as %r (confidence=%s, points=%d, %dms)",
                user_id,
                result.waste_type,
                result.confidence,
                result.base_points,
                duration_ms,
            )
        else:
            logger.warning(
                "Could not classify image for user %s; returning fallback (%dms)",
                user_id,
                duration_ms,
            )
        return result

    def scan(self, *, credential: str | None, image: Any) -> ScanResult:
        """Synchronous wrapper for scan_async.

        Sessions are bound to the event loop that created them, so they are
        closed before the temporary loop goes away.
        """

        async def _scan_once() -> ScanResult:
            try:
                return await self.scan_async(credential=credential, image=image)
            finally:
                await self.close_async()

        return _run_async(_scan_once())

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_gateway(self) -> None:
        """Raise MisconfiguredServiceError if the AI gateway cannot be called."""
        if not self._config.has_gateway:
            logger.error("LOVABLE_API_KEY is not configured")
            raise MisconfiguredServiceError(
                "Classification service is not configured.",
                details={"missing": ["LOVABLE_API_KEY"]},
            )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close_async(self) -> None:
        """Close all collaborator sessions (async)."""
        await self._verifier.close()
        await self._completion.close()

    def close(self) -> None:
        """Close all collaborator sessions."""
        _run_async(self.close_async())

    def __enter__(self) -> WasteScanner:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    async def __aenter__(self) -> WasteScanner:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close_async()

    def __repr__(self) -> str:
        return f"WasteScanner(model={self._config.model!r})"


def _run_async(coro: Any) -> Any:
    """Run an async coroutine from synchronous code."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        import concurrent.futures
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()
    else:
        return asyncio.run(coro)
