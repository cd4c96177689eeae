"""
Failure normalization for provider adapters.
Every failure of a provider call is classified into one FailureType, which
prefixes the in-band error string and labels metrics.
"""
from enum import Enum
from typing import Any

MAX_ERROR_MESSAGE_LENGTH = 200


class FailureType(str, Enum):
    AUTH = "auth"  # 401 / 403
    RATE_LIMITED = "rate_limited"  # 429
    TIMEOUT = "timeout"  # transport timeout, 408/504, or deadline exceeded
    NETWORK = "network"  # DNS, connect, reset
    UPSTREAM = "upstream"  # 5xx
    MALFORMED_RESPONSE = "malformed_response"  # 200 without a usable image
    CONTENT_BLOCKED = "content_blocked"  # safety filters
    REJECTED = "rejected"  # other 4xx
    NOT_CONFIGURED = "not_configured"  # credentials missing
    INTERNAL = "internal"  # bug in the adapter


# Gemini finishReason / blockReason values and OpenAI error codes meaning "refused by policy"
BLOCKED_REASONS = frozenset({
    "SAFETY",
    "BLOCKLIST",
    "SPII",
    "PROHIBITED_CONTENT",
    "IMAGE_SAFETY",
    "RECITATION",
    "CONTENT_POLICY_VIOLATION",
})


def classify_failure(
    http_status: int | None,
    detail: dict[str, Any],
    message: str = "",
) -> FailureType:
    """Classify failure from HTTP status and provider-specific detail."""
    explicit = detail.get("failure_type")
    if explicit:
        return FailureType(explicit)

    block_reason = str(detail.get("block_reason") or detail.get("code") or "").strip().upper()
    finish_reason = str(detail.get("finish_reason") or "").strip().upper()
    if block_reason in BLOCKED_REASONS or finish_reason in BLOCKED_REASONS:
        return FailureType.CONTENT_BLOCKED

    if http_status is not None:
        if http_status in (401, 403):
            return FailureType.AUTH
        if http_status == 429:
            return FailureType.RATE_LIMITED
        if http_status in (408, 504):
            return FailureType.TIMEOUT
        if 500 <= http_status < 600:
            return FailureType.UPSTREAM
        if 400 <= http_status < 500:
            return FailureType.REJECTED

    # Prompt-level block without a known reason
    if detail.get("block_reason"):
        return FailureType.CONTENT_BLOCKED

    # 200 OK but nothing usable (no candidates, no image, unexpected shape)
    if detail:
        return FailureType.MALFORMED_RESPONSE

    return FailureType.INTERNAL


def format_error(failure_type: FailureType, message: str) -> str:
    """In-band error string shown next to the provider's placeholder image."""
    message = " ".join((message or "").split())
    if len(message) > MAX_ERROR_MESSAGE_LENGTH:
        message = message[: MAX_ERROR_MESSAGE_LENGTH - 3] + "..."
    return f"{failure_type.value}: {message}" if message else failure_type.value
