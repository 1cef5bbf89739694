"""Configuration and credential management for the waste-scan service."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from recyclebud_scan.exceptions import MisconfiguredServiceError

logger = logging.getLogger("recyclebud_scan")

DEFAULT_GATEWAY_URL = "https://ai.gateway.lovable.dev/v1/chat/completions"
DEFAULT_MODEL = "google/gemini-2.5-flash"
DEFAULT_MAX_IMAGE_BYTES = 10 * 1024 * 1024


@dataclass
class ScanConfig:
    """Configuration for the waste-scan service.

    Values load automatically from environment variables. You can also pass
    them directly or point to a .env file.

    Environment variables:
        LOVABLE_API_KEY              - AI gateway API key
        SUPABASE_URL                 - Supabase project URL (identity checks)
        SUPABASE_ANON_KEY            - Supabase anon key
        RECYCLEBUD_GATEWAY_URL       - chat completions endpoint override
        RECYCLEBUD_MODEL             - model name sent to the gateway
        RECYCLEBUD_GATEWAY_TIMEOUT   - seconds to wait for a completion
        RECYCLEBUD_AUTH_TIMEOUT      - seconds to wait for Supabase Auth
        RECYCLEBUD_MAX_IMAGE_BYTES   - largest accepted decoded image
        RECYCLEBUD_CORS_ORIGINS      - comma separated allowed origins
    """

    # AI gateway
    gateway_api_key: str = ""
    gateway_url: str = ""
    model: str = ""

    # Supabase Auth
    supabase_url: str = ""
    supabase_anon_key: str = ""

    # Timeouts (seconds)
    gateway_timeout: float = 60.0
    auth_timeout: float = 10.0

    # Request limits / transport
    max_image_bytes: int = DEFAULT_MAX_IMAGE_BYTES
    cors_origins: list[str] = field(default_factory=list)

    # Misc
    env_file: str | None = None
    _loaded: bool = field(default=False, repr=False)

    def __post_init__(self) -> None:
        if not self._loaded:
            self._load_from_env()
            self._loaded = True
        if not self.gateway_url:
            self.gateway_url = DEFAULT_GATEWAY_URL
        if not self.model:
            self.model = DEFAULT_MODEL
        if not self.cors_origins:
            self.cors_origins = ["*"]

    def _load_from_env(self) -> None:
        """Load missing values from environment variables / .env file."""
        if self.env_file:
            env_path = Path(self.env_file)
            if env_path.exists():
                load_dotenv(env_path)
            else:
                logger.warning("Specified .env file not found: %s", self.env_file)
        else:
            load_dotenv()  # auto-discover .env in cwd or parents

        if not self.gateway_api_key:
            self.gateway_api_key = os.getenv("LOVABLE_API_KEY", "")
        if not self.gateway_url:
            self.gateway_url = os.getenv("RECYCLEBUD_GATEWAY_URL", "")
        if not self.model:
            self.model = os.getenv("RECYCLEBUD_MODEL", "")
        if not self.supabase_url:
            self.supabase_url = os.getenv("SUPABASE_URL", "")
        if not self.supabase_anon_key:
            self.supabase_anon_key = os.getenv("SUPABASE_ANON_KEY", "")

        self.gateway_timeout = _float_env("RECYCLEBUD_GATEWAY_TIMEOUT", self.gateway_timeout)
        self.auth_timeout = _float_env("RECYCLEBUD_AUTH_TIMEOUT", self.auth_timeout)
        self.max_image_bytes = int(
            _float_env("RECYCLEBUD_MAX_IMAGE_BYTES", float(self.max_image_bytes))
        )

        if not self.cors_origins:
            origins = os.getenv("RECYCLEBUD_CORS_ORIGINS", "")
            self.cors_origins = [o.strip() for o in origins.split(",") if o.strip()]

    def validate(self) -> None:
        """Validate the configuration. Raises MisconfiguredServiceError if unusable."""
        missing = self.missing_settings
        if missing:
            raise MisconfiguredServiceError(
                "Classification service is not configured.",
                details={"missing": missing},
            )

        if self.gateway_timeout <= 0 or self.auth_timeout <= 0:
            raise MisconfiguredServiceError(
                "Classification service is not configured.",
                details={
                    "gateway_timeout": self.gateway_timeout,
                    "auth_timeout": self.auth_timeout,
                },
            )

    @property
    def missing_settings(self) -> list[str]:
        """Environment variable names of required settings that are unset."""
        missing = []
        if not self.gateway_api_key:
            missing.append("LOVABLE_API_KEY")
        if not self.supabase_url:
            missing.append("SUPABASE_URL")
        if not self.supabase_anon_key:
            missing.append("SUPABASE_ANON_KEY")
        return missing

    @property
    def has_gateway(self) -> bool:
        """True if the AI gateway can be called."""
        return bool(self.gateway_api_key)

    @property
    def has_identity(self) -> bool:
        """True if Supabase Auth lookups can be made."""
        return bool(self.supabase_url and self.supabase_anon_key)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r", name, raw)
        return default
