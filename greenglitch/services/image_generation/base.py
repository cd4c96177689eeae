"""
Base classes and types for image generation providers.
Used by factory, orchestrator and all providers (openai, huggingface, replicate, gemini).
"""
import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx
import openai

from greenglitch.schemas.generation import ProviderResult
from greenglitch.services.image_generation.failure_types import (
    FailureType,
    classify_failure,
    format_error,
)
from greenglitch.utils.metrics import provider_request_duration_seconds, provider_results_total

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_URL = "/placeholder.svg"
DEFAULT_TIMEOUT = 60.0


@dataclass
class ImageGenerationRequest:
    """Request for image generation."""
    prompt: str
    model: str | None = None
    size: str | None = None
    negative_prompt: str | None = None
    extra_params: dict[str, Any] | None = None


@dataclass
class ImageGenerationResponse:
    """Response from image generation: a remote URL or inline base64 data."""
    model: str
    provider: str
    image_url: str | None = None
    image_b64: str | None = None
    mime_type: str = "image/png"

    @property
    def reference(self) -> str | None:
        """Image reference usable by the client (remote URL or data: URI)."""
        if self.image_url:
            return self.image_url
        if self.image_b64:
            return f"data:{self.mime_type};base64,{self.image_b64}"
        return None


class ImageGenerationError(Exception):
    """Raised by providers when generation fails; detail holds fields for classification."""
    def __init__(self, message: str, detail: dict[str, Any] | None = None):
        super().__init__(message)
        self.detail = detail or {}


def build_gemini_error_detail(result: dict[str, Any]) -> dict[str, Any]:
    """
    Extract error-related fields from raw Gemini API response.
    Normalized keys: block_reason, finish_reason, finish_message.
    """
    detail: dict[str, Any] = {}
    if not result:
        return detail
    prompt_feedback = result.get("promptFeedback") or {}
    if prompt_feedback.get("blockReason"):
        detail["block_reason"] = prompt_feedback.get("blockReason")
    candidates = result.get("candidates") or []
    if candidates:
        c0 = candidates[0]
        if "finishReason" in c0:
            detail["finish_reason"] = c0["finishReason"]
        if "finishMessage" in c0:
            detail["finish_message"] = c0["finishMessage"]
    error = result.get("error")
    if isinstance(error, dict) and error.get("status"):
        detail["code"] = error["status"]
    return detail


def classify_exception(exc: BaseException) -> tuple[FailureType, str]:
    """Map an exception raised inside a provider call to (failure_type, message)."""
    if isinstance(exc, ImageGenerationError):
        detail = exc.detail or {}
        return classify_failure(detail.get("http_status"), detail, str(exc)), str(exc)

    # httpx.TimeoutException subclasses TransportError
    if isinstance(exc, httpx.TimeoutException):
        return FailureType.TIMEOUT, "request timed out"
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return classify_failure(status, {}), f"HTTP {status}"
    if isinstance(exc, httpx.TransportError):
        return FailureType.NETWORK, str(exc) or exc.__class__.__name__

    # APITimeoutError subclasses APIConnectionError
    if isinstance(exc, openai.APITimeoutError):
        return FailureType.TIMEOUT, "request timed out"
    if isinstance(exc, openai.APIConnectionError):
        return FailureType.NETWORK, str(exc)
    if isinstance(exc, openai.APIStatusError):
        code = getattr(exc, "code", None)
        return classify_failure(exc.status_code, {"code": code} if code else {}), exc.message

    if isinstance(exc, TimeoutError):
        return FailureType.TIMEOUT, str(exc) or "deadline exceeded"
    if isinstance(exc, (KeyError, IndexError, TypeError, ValueError, json.JSONDecodeError)):
        return FailureType.MALFORMED_RESPONSE, f"{exc.__class__.__name__}: {exc}"

    return FailureType.INTERNAL, f"{exc.__class__.__name__}: {exc}"


class ImageGenerationProvider(ABC):
    """
    Base class for image generation providers.

    Subclasses implement _generate() and may raise anything. generate() is the
    adapter contract used by the orchestrator: exactly one outbound call, no
    retries, and every outcome turned into a ProviderResult. It never raises.
    """

    name: str = ""

    def __init__(self, config: dict) -> None:
        self.config = config
        self.name = config.get("name") or self.name
        self.model = config.get("model")
        self.size = config.get("size") or "1024x1024"
        self.negative_prompt = config.get("negative_prompt")
        self.timeout = float(config.get("timeout") or DEFAULT_TIMEOUT)
        self.placeholder_url = config.get("placeholder_url") or DEFAULT_PLACEHOLDER_URL

    @abstractmethod
    def is_available(self) -> bool:
        """Check if provider is configured and available."""
        pass

    @abstractmethod
    def get_supported_models(self) -> list[str]:
        """Return list of supported model names."""
        pass

    @abstractmethod
    def _generate(self, request: ImageGenerationRequest, timeout: float) -> ImageGenerationResponse:
        """Call the provider once. Raises ImageGenerationError, httpx/openai errors, ValueError."""
        pass

    def build_request(self, prompt: str) -> ImageGenerationRequest:
        return ImageGenerationRequest(
            prompt=prompt,
            model=self.model,
            size=self.size,
            negative_prompt=self.negative_prompt,
        )

    def success(self, url: str) -> ProviderResult:
        return ProviderResult(provider=self.name, url=url)

    def failure(self, failure_type: FailureType, message: str = "") -> ProviderResult:
        return ProviderResult(
            provider=self.name,
            url=self.placeholder_url,
            error=format_error(failure_type, message),
        )

    def generate(self, prompt: str, timeout: float | None = None) -> ProviderResult:
        """Generate one image for prompt within timeout seconds."""
        timeout = timeout or self.timeout
        if not self.is_available():
            self._record(FailureType.NOT_CONFIGURED.value, None)
            return self.failure(FailureType.NOT_CONFIGURED, f"{self.name} credentials are not set")

        started = time.monotonic()
        try:
            response = self._generate(self.build_request(prompt), timeout)
            reference = response.reference
            if not reference or not isinstance(reference, str):
                raise ImageGenerationError("No image in provider response", detail={"failure_type": "malformed_response"})
            result = self.success(reference)
        except Exception as e:
            failure_type, message = classify_exception(e)
            elapsed = time.monotonic() - started
            logger.warning(
                "provider_generation_failed",
                extra={
                    "provider": self.name,
                    "failure_type": failure_type.value,
                    "latency_ms": int(elapsed * 1000),
                    "error": message,
                },
                exc_info=failure_type == FailureType.INTERNAL,
            )
            self._record(failure_type.value, elapsed)
            return self.failure(failure_type, message)

        elapsed = time.monotonic() - started
        logger.info(
            "provider_generation_succeeded",
            extra={"provider": self.name, "latency_ms": int(elapsed * 1000)},
        )
        self._record("success", elapsed)
        return result

    def _record(self, outcome: str, elapsed: float | None) -> None:
        provider_results_total.labels(provider=self.name, outcome=outcome).inc()
        if elapsed is not None:
            provider_request_duration_seconds.labels(provider=self.name).observe(elapsed)
