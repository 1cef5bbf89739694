"""Request boundary for waste scans.

Turns an inbound ``Authorization`` header and JSON body into a status code
and a JSON-serializable body. Every exit path ends here: typed errors map to
their status, anything unexpected is logged and reported as a generic 500.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from recyclebud_scan.exceptions import ErrorKind, RecycleBudError
from recyclebud_scan.identity import extract_bearer_token
from recyclebud_scan.scanner import WasteScanner

logger = logging.getLogger("recyclebud_scan.handler")

UNEXPECTED_ERROR_MESSAGE = "Unexpected error while scanning waste. Please try again."


@dataclass
class HandlerResponse:
    """What the transport should send back."""

    status_code: int
    body: dict[str, Any]
    error_kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None


class ScanHandler:
    """Adapts WasteScanner to request/response semantics."""

    def __init__(self, scanner: WasteScanner) -> None:
        self._scanner = scanner

    async def handle_async(self, authorization: str | None, body: Any) -> HandlerResponse:
        """Handle one scan request. Never raises."""
        try:
            # A non-object body carries no image; the scanner reports that
            # after the credential check.
            image = body.get("image") if isinstance(body, dict) else None
            result = await self._scanner.scan_async(
                credential=extract_bearer_token(authorization), image=image
            )
        except RecycleBudError as e:
            return self.error_response(e)
        except Exception:
            logger.exception("Unhandled error in scan-waste handler")
            return HandlerResponse(
                status_code=500,
                body={"error": UNEXPECTED_ERROR_MESSAGE},
                error_kind=ErrorKind.UPSTREAM_FAILURE,
            )

        return HandlerResponse(status_code=200, body=result.to_dict())

    @staticmethod
    def error_response(error: RecycleBudError) -> HandlerResponse:
        """Build the caller-visible response for a typed error."""
        if error.details:
            logger.info(
                "Scan failed (%s, HTTP %d): %s", error.kind.value, error.status_code, error.details
            )
        return HandlerResponse(
            status_code=error.status_code,
            body={"error": error.message},
            error_kind=error.kind,
        )
