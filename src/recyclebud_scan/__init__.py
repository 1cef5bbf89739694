"""RecycleBud waste-scan service: classify waste photos through an AI gateway."""

from recyclebud_scan.config import ScanConfig
from recyclebud_scan.exceptions import (
    ErrorKind,
    InvalidInputError,
    MisconfiguredServiceError,
    QuotaExceededError,
    RecycleBudError,
    ThrottledError,
    UnauthenticatedError,
    UpstreamFailureError,
)
from recyclebud_scan.handler import HandlerResponse, ScanHandler
from recyclebud_scan.results import ScanResult, fallback_result
from recyclebud_scan.scanner import WasteScanner

__version__ = "0.1.0"

__all__ = [
    "WasteScanner",
    "ScanHandler",
    "HandlerResponse",
    "ScanConfig",
    "ScanResult",
    "fallback_result",
    "ErrorKind",
    "RecycleBudError",
    "UnauthenticatedError",
    "InvalidInputError",
    "MisconfiguredServiceError",
    "ThrottledError",
    "QuotaExceededError",
    "UpstreamFailureError",
]
