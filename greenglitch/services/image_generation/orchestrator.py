"""
Fan-out orchestrator: one prompt, all configured providers, concurrently.

Provider adapters are blocking (httpx / openai SDK), so each call runs on the
orchestrator's own thread pool. Every call carries its own deadline, counted
from the moment a worker picks it up; a provider that misses it becomes a
timeout entry and never delays its siblings. The only call-level
failures are InvalidInputError (before any provider runs) and
AggregationContractError (a broken adapter).
"""
import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Sequence

from greenglitch.core.exceptions import AggregationContractError, InvalidInputError
from greenglitch.schemas.generation import GenerationRequest, GenerationResponse, ProviderResult
from greenglitch.services.climate.catalog import ClimateCatalog
from greenglitch.services.image_generation.aggregator import aggregate
from greenglitch.services.image_generation.base import DEFAULT_PLACEHOLDER_URL, ImageGenerationProvider
from greenglitch.services.image_generation.failure_types import FailureType
from greenglitch.services.prompts import builder
from greenglitch.utils.metrics import generation_duration_seconds, generation_requests_total

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 64


class GenerationOrchestrator:
    def __init__(
        self,
        providers: Sequence[ImageGenerationProvider],
        catalog: ClimateCatalog | None = None,
        placeholder_url: str = DEFAULT_PLACEHOLDER_URL,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ) -> None:
        names = [p.name for p in providers]
        if not names:
            raise ValueError("At least one image provider must be configured")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate provider names in configuration: {names}")
        if max_workers < len(names):
            raise ValueError(f"max_workers={max_workers} is below the number of providers ({len(names)})")
        self.providers = list(providers)
        self.catalog = catalog
        self.placeholder_url = placeholder_url
        self.max_workers = max_workers
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="provider")

    @property
    def provider_names(self) -> list[str]:
        return [p.name for p in self.providers]

    def close(self, wait: bool = False) -> None:
        """Stop the worker pool. Calls still running finish on their own client timeout."""
        self._executor.shutdown(wait=wait, cancel_futures=True)

    async def orchestrate(self, request: GenerationRequest) -> GenerationResponse:
        try:
            prompt = builder.build(request.city, request.issue, self.catalog)
        except InvalidInputError as e:
            generation_requests_total.labels(status="invalid_input").inc()
            logger.info(
                "generation_rejected",
                extra={"city": request.city, "issue": request.issue, "error": str(e)},
            )
            raise

        started = time.monotonic()
        results = await asyncio.gather(
            *(self._invoke(provider, prompt) for provider in self.providers),
            return_exceptions=True,
        )
        elapsed = time.monotonic() - started
        generation_duration_seconds.observe(elapsed)

        try:
            response = aggregate(results, self.provider_names, self.placeholder_url)
        except AggregationContractError:
            generation_requests_total.labels(status="contract_error").inc()
            raise

        succeeded = sum(1 for image in response.images if image.succeeded)
        generation_requests_total.labels(status="ok").inc()
        logger.info(
            "generation_completed",
            extra={
                "city": request.city,
                "issue": request.issue,
                "providers": self.provider_names,
                "succeeded": succeeded,
                "failed": len(response.images) - succeeded,
                "latency_ms": int(elapsed * 1000),
            },
        )
        return response

    async def _invoke(self, provider: ImageGenerationProvider, prompt: str) -> ProviderResult:
        timeout = provider.timeout
        loop = asyncio.get_running_loop()
        started = asyncio.Event()

        def call() -> ProviderResult:
            loop.call_soon_threadsafe(started.set)
            return provider.generate(prompt, timeout)

        future = loop.run_in_executor(self._executor, call)
        # A call cancelled while queued never starts.
        future.add_done_callback(lambda _: started.set())
        try:
            # Time spent queued for a worker does not count against the deadline.
            await started.wait()
        except asyncio.CancelledError:
            future.cancel()
            raise

        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            # The worker is abandoned; the adapter records its own outcome when it ends.
            logger.warning(
                "provider_deadline_exceeded",
                extra={"provider": provider.name, "timeout_seconds": timeout},
            )
            return provider.failure(FailureType.TIMEOUT, f"no response within {timeout:g}s")
