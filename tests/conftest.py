"""Shared test fixtures for the recyclebud-scan test suite."""

from __future__ import annotations

import base64
import json
import os

import pytest

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import RecycleBudError
from recyclebud_scan.scanner import WasteScanner

# Header of a PNG plus filler; enough for magic-byte sniffing.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00\x00\x00\rIHDR" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00\x10JFIF" + b"\x00" * 32

PNG_DATA_URL = "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode()
JPEG_DATA_URL = "data:image/jpeg;base64," + base64.b64encode(JPEG_BYTES).decode()

VERIFIED_USER_ID = "8d3f0c6e-4b7a-4c55-9a51-2f1d7e0b9c11"

PET_CLASSIFICATION = {
    "waste_type": "Plastik PET",
    "confidence": 92,
    "recyclable": True,
    "description": "Clear PET drinking bottle.",
    "recycling_guide": "Empty it, remove the cap, crush it and put it in the plastics bin.",
    "base_points": 20,
}
PET_CONTENT = json.dumps(PET_CLASSIFICATION)
PET_FENCED_CONTENT = "```json\n" + PET_CONTENT + "\n```"
PROSE_CONTENT = "I think this is probably a plastic bottle, but the photo is blurry."


class FakeVerifier:
    """Identity verifier double that records every credential it sees."""

    def __init__(self, user_id: str = VERIFIED_USER_ID, error: RecycleBudError | None = None):
        self.user_id = user_id
        self.error = error
        self.calls: list[str] = []
        self.closed = False

    async def verify_async(self, credential: str) -> str:
        self.calls.append(credential)
        if self.error is not None:
            raise self.error
        return self.user_id

    async def close(self) -> None:
        self.closed = True


class FakeCompletion:
    """Completion service double returning canned content or raising."""

    def __init__(self, content: str = PET_CONTENT, error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[tuple[str, str]] = []
        self.closed = False

    async def complete_async(self, system_instruction: str, image: str) -> str:
        self.calls.append((system_instruction, image))
        if self.error is not None:
            raise self.error
        return self.content

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def config() -> ScanConfig:
    """Config with every required credential."""
    return ScanConfig(
        gateway_api_key="test-gateway-key-12345",
        supabase_url="https://project.supabase.co",
        supabase_anon_key="test-anon-key",
        _loaded=True,
    )


@pytest.fixture
def empty_config() -> ScanConfig:
    """Config with no credentials at all."""
    return ScanConfig(_loaded=True)


@pytest.fixture
def verifier() -> FakeVerifier:
    return FakeVerifier()


@pytest.fixture
def completion() -> FakeCompletion:
    return FakeCompletion()


@pytest.fixture
def scanner(config: ScanConfig, verifier: FakeVerifier, completion: FakeCompletion) -> WasteScanner:
    return WasteScanner(config, verifier=verifier, completion=completion)


def has_real_credentials() -> bool:
    """Check if real gateway and Supabase credentials are available."""
    return bool(
        os.getenv("LOVABLE_API_KEY")
        and os.getenv("SUPABASE_URL")
        and os.getenv("SUPABASE_ANON_KEY")
        and os.getenv("RECYCLEBUD_TEST_ACCESS_TOKEN")
    )


skip_no_credentials = pytest.mark.skipif(
    not has_real_credentials(),
    reason="LOVABLE_API_KEY, SUPABASE_URL, SUPABASE_ANON_KEY and RECYCLEBUD_TEST_ACCESS_TOKEN not set",
)
