"""
OpenAI DALL-E provider for image generation.
"""
from openai import OpenAI

from greenglitch.services.image_generation.base import (
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenerationRequest,
    ImageGenerationResponse,
)


class OpenAIProvider(ImageGenerationProvider):
    """OpenAI DALL-E image generation provider."""

    name = "openai"

    def __init__(self, config: dict):
        super().__init__(config)
        self.api_key = config.get("api_key")
        self.model = self.model or "dall-e-3"

        if self.api_key:
            # One outbound call per generate(): SDK retries off.
            self.client = OpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        else:
            self.client = None

    def is_available(self) -> bool:
        """Check if OpenAI is configured."""
        return bool(self.api_key and self.client)

    def get_supported_models(self) -> list[str]:
        """Get supported OpenAI models."""
        return ["dall-e-2", "dall-e-3", "gpt-image-1"]

    def _generate(self, request: ImageGenerationRequest, timeout: float) -> ImageGenerationResponse:
        """
        Generate image from text prompt.

        dall-e models answer with a temporary URL; gpt-image-1 only returns base64.
        """
        response = self.client.with_options(timeout=timeout).images.generate(
            model=request.model,
            prompt=request.prompt,
            size=request.size,
            n=1,
        )
        if not response.data:
            raise ImageGenerationError("No data in OpenAI response", detail={"failure_type": "malformed_response"})

        image = response.data[0]
        return ImageGenerationResponse(
            image_url=getattr(image, "url", None),
            image_b64=getattr(image, "b64_json", None),
            model=request.model,
            provider=self.name,
        )
