"""Parser for the z.ai quota limit response.

Example::

    {
        "code": 200,
        "success": true,
        "data": {
            "limits": [
                {"type": "TOKENS_LIMIT", "unit": 3, "number": 5, "percentage": 12,
                 "nextResetTime": 1768636800000},
                {"type": "TIME_LIMIT", "unit": 5, "number": 1, "usage": 1000,
                 "currentValue": 12, "remaining": 988, "percentage": 1}
            ]
        }
    }
"""

from __future__ import annotations

from datetime import datetime
from datetime import timezone

import msgspec

from quotaprobe.errors.exceptions import ParseFailed
from quotaprobe.errors.exceptions import TokenRejected
from quotaprobe.models import RateWindow
from quotaprobe.models import UsageSnapshot
from quotaprobe.models import utc_now

TOKENS_LIMIT = "TOKENS_LIMIT"  # Prompt tokens per rolling window
TIME_LIMIT = "TIME_LIMIT"  # MCP tool calls per period

# Minutes per value of the "unit" field
UNIT_MINUTES = {1: 24 * 60, 3: 60, 5: 30 * 24 * 60}


class ZaiLimit(msgspec.Struct):
    type: str
    unit: int | None = None
    number: int | None = None
    usage: float | None = None  # Allowance
    currentValue: float | None = None  # Consumed
    remaining: float | None = None
    percentage: float | None = None
    nextResetTime: int | None = None  # Epoch milliseconds


class ZaiQuotaData(msgspec.Struct):
    limits: list[ZaiLimit] = []


class ZaiQuotaResponse(msgspec.Struct):
    code: int | None = None
    msg: str | None = None
    success: bool = True
    data: ZaiQuotaData | None = None


def _used_percent(limit: ZaiLimit) -> float | None:
    if limit.percentage is not None:
        return limit.percentage
    if limit.usage and limit.currentValue is not None:
        return limit.currentValue / limit.usage * 100
    return None


def _window(limit: ZaiLimit | None) -> RateWindow | None:
    if limit is None:
        return None
    used = _used_percent(limit)
    if used is None:
        return None

    minutes = None
    if limit.unit in UNIT_MINUTES and limit.number:
        minutes = UNIT_MINUTES[limit.unit] * limit.number
    resets_at = None
    if limit.nextResetTime:
        resets_at = datetime.fromtimestamp(limit.nextResetTime / 1000, tz=timezone.utc)

    return RateWindow(
        used_percent=max(0.0, min(100.0, used)),
        window_minutes=minutes,
        resets_at=resets_at,
    )


def parse_quota_response(content: bytes, now: datetime | None = None) -> UsageSnapshot:
    """Turn a quota limit response into a snapshot.

    The token window is primary; the MCP allowance is secondary.

    Raises:
        TokenRejected: the body reports an authentication failure
        ParseFailed: the body is not the expected JSON or has no limits
    """
    try:
        response = msgspec.json.decode(content, type=ZaiQuotaResponse)
    except msgspec.DecodeError as e:
        raise ParseFailed(
            f"Invalid z.ai quota response: {e}",
            raw_excerpt=content[:400].decode("utf-8", "replace"),
        ) from e

    if response.code in (401, 403):
        raise TokenRejected(
            response.msg or "z.ai rejected the API key.", status_code=response.code
        )
    if not response.success or response.data is None:
        raise ParseFailed(f"z.ai quota request failed: {response.msg or 'no data'}")

    by_type = {limit.type: limit for limit in response.data.limits}
    primary = _window(by_type.get(TOKENS_LIMIT))
    secondary = _window(by_type.get(TIME_LIMIT))
    if primary is None and secondary is None:
        raise ParseFailed("z.ai quota response has no usable limits.")

    return UsageSnapshot(updated_at=now or utc_now(), primary=primary, secondary=secondary)
