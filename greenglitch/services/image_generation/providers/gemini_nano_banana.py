"""
Gemini Nano Banana provider (Google AI generateContent image generation).
Uses generativelanguage.googleapis.com with api_key.
200 OK with empty content is never a silent success: blocks and missing images
are raised as ImageGenerationError with normalized detail.
"""
import json
import logging
from typing import Any

import httpx

from greenglitch.services.image_generation.base import (
    ImageGenerationProvider,
    ImageGenerationRequest,
    ImageGenerationResponse,
    ImageGenerationError,
    build_gemini_error_detail,
)

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.4


def _parse_safety_settings(value: Any) -> list[dict[str, Any]]:
    """Parse safety_settings from config (list of {category, threshold} or JSON string)."""
    if not value:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
            return parsed if isinstance(parsed, list) else []
        except json.JSONDecodeError:
            logger.warning("gemini_safety_settings is not valid JSON, ignoring")
            return []
    return []


def _size_to_aspect_ratio(size: str | None) -> str:
    """Convert size like '1024x1024' to aspect ratio like '1:1'."""
    if not size or "x" not in size:
        return "1:1"
    try:
        w, h = size.split("x")
        width, height = int(w), int(h)
    except (ValueError, TypeError):
        return "1:1"
    if width == height:
        return "1:1"
    if width * 9 == height * 16:
        return "16:9"
    if width * 16 == height * 9:
        return "9:16"
    if width * 3 == height * 4:
        return "4:3"
    if width * 4 == height * 3:
        return "3:4"
    from math import gcd
    d = gcd(width, height)
    return f"{width // d}:{height // d}"


class GeminiNanaBananaProvider(ImageGenerationProvider):
    """Gemini image generation via Google AI generateContent API."""

    name = "gemini"

    def __init__(self, config: dict) -> None:
        super().__init__(config)
        self.api_key = (config.get("api_key") or "").strip()
        endpoint = (config.get("api_endpoint") or "https://generativelanguage.googleapis.com").rstrip("/")
        self.base_url = f"{endpoint}/v1beta/models"
        self.model = (self.model or "gemini-2.5-flash-image").strip()
        self.safety_settings = _parse_safety_settings(config.get("safety_settings"))

    def is_available(self) -> bool:
        return bool(self.api_key)

    def get_supported_models(self) -> list[str]:
        return [
            "gemini-2.5-flash-image",
            "gemini-3-pro-image-preview",
        ]

    def _generate(self, request: ImageGenerationRequest, timeout: float) -> ImageGenerationResponse:
        prompt_text = request.prompt
        if request.negative_prompt:
            prompt_text += "\n\nAvoid: " + request.negative_prompt.strip()

        payload: dict[str, Any] = {
            "contents": [{"role": "user", "parts": [{"text": prompt_text}]}],
            "generationConfig": {
                "responseModalities": ["IMAGE"],
                "temperature": DEFAULT_TEMPERATURE,
                "imageConfig": {"aspectRatio": _size_to_aspect_ratio(request.size)},
            },
        }
        if self.safety_settings:
            payload["safetySettings"] = self.safety_settings

        url = f"{self.base_url}/{request.model}:generateContent"
        params = {"key": self.api_key}

        try:
            with httpx.Client(timeout=timeout) as client:
                resp = client.post(url, params=params, json=payload)
                resp.raise_for_status()
                result = resp.json()
        except httpx.HTTPStatusError as e:
            try:
                err_body = e.response.json()
            except ValueError:
                err_body = {}
            if not isinstance(err_body, dict):
                err_body = {}
            detail = build_gemini_error_detail(err_body)
            detail["http_status"] = e.response.status_code
            error = err_body.get("error")
            msg = error.get("message", str(e)) if isinstance(error, dict) else f"HTTP {e.response.status_code}"
            raise ImageGenerationError(msg, detail=detail) from e

        # Block at request level (no candidates)
        prompt_feedback = result.get("promptFeedback") or {}
        if prompt_feedback.get("blockReason"):
            detail = build_gemini_error_detail(result)
            raise ImageGenerationError(f"Prompt blocked: {prompt_feedback['blockReason']}", detail=detail)

        candidates = result.get("candidates") or []
        if not candidates:
            detail = build_gemini_error_detail(result) or {"failure_type": "malformed_response"}
            raise ImageGenerationError("No candidates in Gemini response", detail=detail)

        c0 = candidates[0]
        finish_reason = c0.get("finishReason", "")
        if finish_reason and finish_reason != "STOP":
            detail = build_gemini_error_detail(result)
            finish_message = c0.get("finishMessage") or finish_reason
            raise ImageGenerationError(finish_message, detail=detail)

        content = c0.get("content") or {}
        for part in content.get("parts") or []:
            inline = part.get("inlineData") or part.get("inline_data")
            if inline and isinstance(inline.get("data"), str):
                return ImageGenerationResponse(
                    image_b64=inline["data"],
                    mime_type=inline.get("mimeType") or inline.get("mime_type") or "image/png",
                    model=request.model,
                    provider=self.name,
                )

        raise ImageGenerationError(
            "No image in Gemini response",
            detail=build_gemini_error_detail(result) or {"failure_type": "malformed_response"},
        )
