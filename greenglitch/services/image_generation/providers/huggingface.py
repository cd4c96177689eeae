"""
Hugging Face Inference API provider for image generation.
Supports FLUX, Stable Diffusion, and other models.
"""
import base64

import httpx

from greenglitch.services.image_generation.base import (
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenerationRequest,
    ImageGenerationResponse,
)


class HuggingFaceProvider(ImageGenerationProvider):
    """Hugging Face Inference API provider."""

    name = "huggingface"

    def __init__(self, config: dict):
        super().__init__(config)
        self.api_key = config.get("api_key")
        self.api_url = (config.get("api_url") or "https://api-inference.huggingface.co").rstrip("/")
        self.model = self.model or "black-forest-labs/FLUX.1-schnell"

    def is_available(self) -> bool:
        """Check if Hugging Face is configured."""
        return bool(self.api_key)

    def get_supported_models(self) -> list[str]:
        """Get supported Hugging Face models."""
        return [
            # FLUX models
            "black-forest-labs/FLUX.1-schnell",  # Fastest
            "black-forest-labs/FLUX.1-dev",      # High quality
            # Stable Diffusion
            "stabilityai/stable-diffusion-xl-base-1.0",
            "stabilityai/stable-diffusion-2-1",
        ]

    def _generate(self, request: ImageGenerationRequest, timeout: float) -> ImageGenerationResponse:
        """Generate image using Hugging Face Inference API."""
        url = f"{self.api_url}/models/{request.model}"

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "Accept": "image/png",
        }

        payload: dict = {"inputs": request.prompt, "parameters": {}}
        if request.negative_prompt:
            payload["parameters"]["negative_prompt"] = request.negative_prompt
        if request.size and "x" in request.size:
            width, height = request.size.split("x")
            payload["parameters"]["width"] = int(width)
            payload["parameters"]["height"] = int(height)
        if request.extra_params:
            # num_inference_steps, guidance_scale, seed, etc.
            payload["parameters"].update(request.extra_params)

        with httpx.Client(timeout=timeout) as client:
            response = client.post(url, headers=headers, json=payload)
            response.raise_for_status()

        # HF returns binary image data directly; JSON here means an error payload
        mime_type = response.headers.get("content-type", "").split(";")[0].strip()
        if not mime_type.startswith("image/") or not response.content:
            raise ImageGenerationError(
                f"Unexpected content type from Hugging Face: {mime_type or 'none'}",
                detail={"failure_type": "malformed_response"},
            )

        return ImageGenerationResponse(
            image_b64=base64.b64encode(response.content).decode("ascii"),
            mime_type=mime_type,
            model=request.model,
            provider=self.name,
        )
