"""
Replicate API provider for image generation.
Supports FLUX and other models.

One generate() call is one prediction: a create request followed by status
polls until it settles or the adapter deadline passes. The polls read the same
prediction, so they are not retries and never create a second one.
"""
import time

import httpx

from greenglitch.services.image_generation.base import (
    ImageGenerationError,
    ImageGenerationProvider,
    ImageGenerationRequest,
    ImageGenerationResponse,
)


class ReplicateProvider(ImageGenerationProvider):
    """Replicate API provider for image generation."""

    name = "replicate"

    def __init__(self, config: dict):
        super().__init__(config)
        self.api_token = config.get("api_token")
        self.api_url = (config.get("api_url") or "https://api.replicate.com/v1").rstrip("/")
        self.poll_interval = float(config.get("poll_interval", 1.0))
        self.model = self.model or "black-forest-labs/flux-schnell"

    def is_available(self) -> bool:
        """Check if Replicate is configured."""
        return bool(self.api_token)

    def get_supported_models(self) -> list[str]:
        """Get supported Replicate models."""
        return [
            "black-forest-labs/flux-1.1-pro",
            "black-forest-labs/flux-dev",
            "black-forest-labs/flux-schnell",
            "stability-ai/sdxl",
        ]

    def _generate(self, request: ImageGenerationRequest, timeout: float) -> ImageGenerationResponse:
        """Create a prediction and poll it until it settles or the deadline passes."""
        deadline = time.monotonic() + timeout

        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

        payload: dict = {"input": {"prompt": request.prompt}}
        if request.size and "x" in request.size:
            width, height = request.size.split("x")
            if width == height:
                payload["input"]["aspect_ratio"] = "1:1"
            else:
                payload["input"]["width"] = int(width)
                payload["input"]["height"] = int(height)
        if request.negative_prompt:
            payload["input"]["negative_prompt"] = request.negative_prompt
        if request.extra_params:
            payload["input"].update(request.extra_params)

        with httpx.Client(timeout=timeout) as client:
            response = client.post(
                f"{self.api_url}/models/{request.model}/predictions",
                headers=headers,
                json=payload,
            )
            response.raise_for_status()
            prediction = response.json()

            image_url = self._wait_for_completion(client, prediction, headers, deadline)

        return ImageGenerationResponse(
            image_url=image_url,
            model=request.model,
            provider=self.name,
        )

    def _wait_for_completion(
        self,
        client: httpx.Client,
        prediction: dict,
        headers: dict,
        deadline: float,
    ) -> str:
        """Poll prediction until complete and return image URL."""
        while True:
            status = prediction.get("status")

            if status == "succeeded":
                output = prediction.get("output")
                if isinstance(output, list) and output and isinstance(output[0], str) and output[0]:
                    return output[0]
                if isinstance(output, str) and output:
                    return output
                raise ImageGenerationError(
                    f"Unexpected output format: {output!r}",
                    detail={"failure_type": "malformed_response"},
                )

            if status in ("failed", "canceled"):
                error = prediction.get("error") or f"prediction {status}"
                raise ImageGenerationError(f"Replicate prediction failed: {error}", detail={"failure_type": "upstream"})

            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise TimeoutError("Replicate prediction did not finish before the deadline")
            time.sleep(min(self.poll_interval, remaining))

            response = client.get(prediction["urls"]["get"], headers=headers)
            response.raise_for_status()
            prediction = response.json()
