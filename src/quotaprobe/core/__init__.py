"""Core orchestration and utilities for quotaprobe."""

from quotaprobe.core.http import cleanup
from quotaprobe.core.http import get_http_client
from quotaprobe.core.http import get_timeout_config
from quotaprobe.core.orchestrator import categorize_results
from quotaprobe.core.orchestrator import fetch_all_providers
from quotaprobe.core.orchestrator import fetch_enabled_providers
from quotaprobe.core.orchestrator import fetch_single_provider
from quotaprobe.core.pipeline import FetchPipeline
from quotaprobe.core.pipeline import build_fetch_context
from quotaprobe.core.pipeline import execute_fetch_pipeline
from quotaprobe.core.retry import RetryConfig
from quotaprobe.core.retry import calculate_retry_delay
from quotaprobe.core.retry import should_retry_exception
from quotaprobe.core.retry import with_retry

__all__ = [
    # http
    "get_http_client",
    "cleanup",
    "get_timeout_config",
    # retry
    "RetryConfig",
    "calculate_retry_delay",
    "should_retry_exception",
    "with_retry",
    # pipeline
    "FetchPipeline",
    "build_fetch_context",
    "execute_fetch_pipeline",
    # orchestrator
    "fetch_single_provider",
    "fetch_all_providers",
    "fetch_enabled_providers",
    "categorize_results",
]
