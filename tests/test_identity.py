"""Tests for bearer-token extraction and Supabase identity verification."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import MisconfiguredServiceError, UnauthenticatedError
from recyclebud_scan.identity import SupabaseIdentityVerifier, extract_bearer_token
from tests.conftest import VERIFIED_USER_ID


def _make_session(status: int = 200, json_body: object = None, text: str = "") -> MagicMock:
    resp = MagicMock()
    resp.status = status
    resp.text = AsyncMock(return_value=text)
    resp.json = AsyncMock(return_value=json_body)

    session = MagicMock()
    session.get.return_value.__aenter__.return_value = resp
    session.get.return_value.__aexit__.return_value = False
    return session


class TestExtractBearerToken:
    """Test Authorization header parsing."""

    @pytest.mark.parametrize(
        ("header", "expected"),
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer abc", "abc"),
            ("  Bearer   abc  ", "abc"),
            ("abc", "abc"),
            ("Bearer", ""),
            ("Bearer ", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_extract(self, header: str | None, expected: str) -> None:
        assert extract_bearer_token(header) == expected


class TestSupabaseIdentityVerifier:
    """Test verification against a mocked Supabase Auth endpoint."""

    @pytest.mark.asyncio
    async def test_valid_token(self, config: ScanConfig) -> None:
        session = _make_session(json_body={"id": VERIFIED_USER_ID, "email": "a@b.c"})
        verifier = SupabaseIdentityVerifier(config)

        with patch.object(verifier, "_get_session", AsyncMock(return_value=session)):
            user_id = await verifier.verify_async("access-token")

        assert user_id == VERIFIED_USER_ID
        args, kwargs = session.get.call_args
        assert args[0] == "https://project.supabase.co/auth/v1/user"
        assert kwargs["headers"]["apikey"] == "test-anon-key"
        assert kwargs["headers"]["Authorization"] == "Bearer access-token"

    @pytest.mark.asyncio
    async def test_nested_user_payload(self, config: ScanConfig) -> None:
        session = _make_session(json_body={"user": {"id": VERIFIED_USER_ID}})
        verifier = SupabaseIdentityVerifier(config)

        with patch.object(verifier, "_get_session", AsyncMock(return_value=session)):
            assert await verifier.verify_async("access-token") == VERIFIED_USER_ID

    @pytest.mark.asyncio
    async def test_rejected_token(self, config: ScanConfig) -> None:
        session = _make_session(status=401, text='{"msg": "invalid JWT"}')
        verifier = SupabaseIdentityVerifier(config)

        with patch.object(verifier, "_get_session", AsyncMock(return_value=session)):
            with pytest.raises(UnauthenticatedError) as exc_info:
                await verifier.verify_async("expired")
        assert exc_info.value.message == "Unauthorized"
        assert exc_info.value.details["status"] == 401

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body", [{}, {"id": ""}, {"id": 42}, [], None])
    async def test_payload_without_user(self, config: ScanConfig, body: object) -> None:
        session = _make_session(json_body=body)
        verifier = SupabaseIdentityVerifier(config)

        with patch.object(verifier, "_get_session", AsyncMock(return_value=session)):
            with pytest.raises(UnauthenticatedError):
                await verifier.verify_async("access-token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error", [aiohttp.ClientConnectionError("refused"), asyncio.TimeoutError()]
    )
    async def test_network_failure_is_unauthenticated(
        self, config: ScanConfig, error: Exception
    ) -> None:
        session = MagicMock()
        session.get.side_effect = error
        verifier = SupabaseIdentityVerifier(config)

        with patch.object(verifier, "_get_session", AsyncMock(return_value=session)):
            with pytest.raises(UnauthenticatedError):
                await verifier.verify_async("access-token")
        session.get.assert_called_once()

    @pytest.mark.asyncio
    async def test_empty_credential(self, config: ScanConfig) -> None:
        verifier = SupabaseIdentityVerifier(config)
        with patch.object(verifier, "_get_session", AsyncMock()) as get_session:
            with pytest.raises(UnauthenticatedError):
                await verifier.verify_async("")
        get_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_unconfigured(self, empty_config: ScanConfig) -> None:
        verifier = SupabaseIdentityVerifier(empty_config)
        with pytest.raises(MisconfiguredServiceError):
            await verifier.verify_async("access-token")
