"""Error handling for quotaprobe."""

from quotaprobe.errors.classify import classify_exception
from quotaprobe.errors.classify import classify_http_status_error
from quotaprobe.errors.exceptions import AccessDenied
from quotaprobe.errors.exceptions import BinaryNotFound
from quotaprobe.errors.exceptions import CredentialAccessDenied
from quotaprobe.errors.exceptions import LaunchFailed
from quotaprobe.errors.exceptions import LoginRequired
from quotaprobe.errors.exceptions import NoCredential
from quotaprobe.errors.exceptions import NoStrategyAvailable
from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.errors.exceptions import PTYTimeout
from quotaprobe.errors.exceptions import QuotaprobeFetchError
from quotaprobe.errors.exceptions import StrategyTimeout
from quotaprobe.errors.exceptions import TokenMissing
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.errors.http import extract_error_message
from quotaprobe.errors.http import get_retry_after_delay
from quotaprobe.errors.messages import REMEDIATION_TEMPLATES
from quotaprobe.errors.messages import get_provider_remediation
from quotaprobe.errors.types import ErrorCategory
from quotaprobe.errors.types import ErrorSeverity
from quotaprobe.errors.types import HTTPErrorMapping
from quotaprobe.errors.types import ProbeError
from quotaprobe.errors.types import classify_http_error

__all__ = [
    # Core types
    "ErrorCategory",
    "ErrorSeverity",
    "ProbeError",
    "HTTPErrorMapping",
    # Exceptions
    "QuotaprobeFetchError",
    "BinaryNotFound",
    "LaunchFailed",
    "PTYTimeout",
    "NoCredential",
    "LoginRequired",
    "AccessDenied",
    "CredentialAccessDenied",
    "TokenMissing",
    "TokenRejected",
    "ParseFailed",
    "NoStrategyAvailable",
    "StrategyTimeout",
    # Classification functions
    "classify_http_error",
    "classify_exception",
    "classify_http_status_error",
    # HTTP utilities
    "extract_error_message",
    "get_retry_after_delay",
    # Message templates
    "REMEDIATION_TEMPLATES",
    "get_provider_remediation",
]
