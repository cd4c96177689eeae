"""Shared fakes for orchestrator and API tests."""
import threading
import time

import pytest

from greenglitch.services.image_generation.base import (
    ImageGenerationProvider,
    ImageGenerationResponse,
)


class FakeProvider(ImageGenerationProvider):
    """In-memory provider: answers after `delay` seconds, or raises `error`."""

    def __init__(
        self,
        name: str,
        url: str | None = None,
        error: Exception | None = None,
        delay: float = 0.0,
        timeout: float = 5.0,
        available: bool = True,
    ) -> None:
        super().__init__({"name": name, "timeout": timeout})
        self.url = url or f"https://images.example.com/{name}.png"
        self.error = error
        self.delay = delay
        self.available = available
        self.release = threading.Event()
        self.prompts: list[str] = []
        self.finished_at: float | None = None

    def is_available(self) -> bool:
        return self.available

    def get_supported_models(self) -> list[str]:
        return ["fake"]

    def _generate(self, request, timeout):
        self.prompts.append(request.prompt)
        if self.delay:
            # set() on release lets a test end an abandoned call early
            self.release.wait(self.delay)
        self.finished_at = time.monotonic()
        if self.error is not None:
            raise self.error
        return ImageGenerationResponse(model="fake", provider=self.name, image_url=self.url)


@pytest.fixture
def fake_provider():
    return FakeProvider
