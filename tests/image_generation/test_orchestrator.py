"""Tests for GenerationOrchestrator: fan-out, ordering, timeouts, partial failure."""
import asyncio
import time

import pytest

from greenglitch.core.exceptions import AggregationContractError, InvalidInputError
from greenglitch.schemas.generation import GenerationRequest, ProviderResult
from greenglitch.services.image_generation.base import DEFAULT_PLACEHOLDER_URL, ImageGenerationError
from greenglitch.services.image_generation.orchestrator import GenerationOrchestrator
from greenglitch.utils.metrics import provider_results_total


def _run(orchestrator, city="London", issue="Flooding"):
    return asyncio.run(orchestrator.orchestrate(GenerationRequest(city=city, issue=issue)))


def test_all_providers_succeed(fake_provider):
    providers = [fake_provider("openai"), fake_provider("huggingface"), fake_provider("gemini")]

    response = _run(GenerationOrchestrator(providers))

    assert [image.provider for image in response.images] == ["openai", "huggingface", "gemini"]
    for image, provider in zip(response.images, providers):
        assert image.url == provider.url
        assert image.error is None
    assert all(len(p.prompts) == 1 for p in providers)
    assert "London" in providers[0].prompts[0]


def test_every_valid_pair_yields_one_entry_per_provider(fake_provider):
    providers = [fake_provider("a"), fake_provider("b", error=ValueError("bad json"))]
    orchestrator = GenerationOrchestrator(providers)
    pairs = [
        ("New York", "Sea Level Rise"),
        ("London", "Heat Waves"),
        ("Tokyo", "Typhoons"),
        ("Mumbai", "Air Pollution"),
    ]

    for city, issue in pairs:
        response = _run(orchestrator, city, issue)
        assert len(response.images) == len(providers)
        for image in response.images:
            assert image.url
            assert (image.error is None) == (image.url != DEFAULT_PLACEHOLDER_URL)


def test_order_follows_configuration_not_completion(fake_provider):
    slow_a = fake_provider("a", delay=0.3)
    fast_b = fake_provider("b")

    response = _run(GenerationOrchestrator([slow_a, fast_b]))

    assert fast_b.finished_at < slow_a.finished_at
    assert [image.provider for image in response.images] == ["a", "b"]


def test_slow_provider_times_out_alone(fake_provider):
    slow = fake_provider("slow", delay=10.0, timeout=0.3)
    fast = fake_provider("fast")
    orchestrator = GenerationOrchestrator([slow, fast])

    async def scenario():
        started = time.monotonic()
        try:
            response = await orchestrator.orchestrate(GenerationRequest(city="Tokyo", issue="Typhoons"))
            return response, time.monotonic() - started
        finally:
            slow.release.set()

    response, elapsed = asyncio.run(scenario())

    assert elapsed < 2.0
    slow_entry, fast_entry = response.images
    assert slow_entry.provider == "slow"
    assert slow_entry.url == DEFAULT_PLACEHOLDER_URL
    assert slow_entry.error.startswith("timeout")
    assert fast_entry.error is None
    assert fast_entry.url == fast.url


def test_timeouts_are_per_provider_not_summed(fake_provider):
    first = fake_provider("first", delay=10.0, timeout=0.5)
    second = fake_provider("second", delay=10.0, timeout=0.5)
    orchestrator = GenerationOrchestrator([first, second])

    async def scenario():
        started = time.monotonic()
        try:
            await orchestrator.orchestrate(GenerationRequest(city="Mumbai", issue="Coastal Erosion"))
            return time.monotonic() - started
        finally:
            first.release.set()
            second.release.set()

    elapsed = asyncio.run(scenario())

    assert elapsed < 0.95


def test_unknown_city_invokes_no_provider(fake_provider):
    provider = fake_provider("a")

    with pytest.raises(InvalidInputError):
        _run(GenerationOrchestrator([provider]), city="Atlantis", issue="Flooding")

    assert provider.prompts == []


def test_issue_from_another_city_is_rejected(fake_provider):
    provider = fake_provider("a")

    with pytest.raises(InvalidInputError):
        _run(GenerationOrchestrator([provider]), city="Tokyo", issue="Flooding")

    assert provider.prompts == []


def test_provider_failure_is_reported_in_band(fake_provider):
    limited = fake_provider(
        "limited",
        error=ImageGenerationError("quota exhausted", detail={"http_status": 429}),
    )
    healthy = fake_provider("healthy")

    response = _run(GenerationOrchestrator([limited, healthy]))

    assert response.images[0].error == "rate_limited: quota exhausted"
    assert response.images[0].url == DEFAULT_PLACEHOLDER_URL
    assert response.images[1].error is None


def test_total_failure_still_returns_response(fake_provider):
    providers = [
        fake_provider("a", error=RuntimeError("boom")),
        fake_provider("b", available=False),
    ]

    response = _run(GenerationOrchestrator(providers))

    assert [image.error.split(":")[0] for image in response.images] == ["internal", "not_configured"]


def test_custom_placeholder_is_used_for_failures(fake_provider):
    provider = fake_provider("a", available=False)
    provider.placeholder_url = "/static/missing.svg"

    response = _run(GenerationOrchestrator([provider], placeholder_url="/static/missing.svg"))

    assert response.images[0].url == "/static/missing.svg"


def test_adapter_breaking_contract_is_fatal(fake_provider):
    broken = fake_provider("broken")

    def generate(prompt, timeout=None):
        return [ProviderResult(provider="broken", url="https://x/1.png")] * 2

    broken.generate = generate

    with pytest.raises(AggregationContractError):
        _run(GenerationOrchestrator([broken, fake_provider("ok")]))


def test_adapter_raising_is_fatal(fake_provider):
    broken = fake_provider("broken")

    def generate(prompt, timeout=None):
        raise RuntimeError("adapter bug")

    broken.generate = generate

    with pytest.raises(AggregationContractError):
        _run(GenerationOrchestrator([broken]))


def test_duplicate_provider_names_rejected(fake_provider):
    with pytest.raises(ValueError):
        GenerationOrchestrator([fake_provider("a"), fake_provider("a")])


def test_empty_provider_list_rejected():
    with pytest.raises(ValueError):
        GenerationOrchestrator([])


def test_too_few_workers_rejected(fake_provider):
    with pytest.raises(ValueError):
        GenerationOrchestrator([fake_provider("a"), fake_provider("b")], max_workers=1)


def test_hung_providers_do_not_starve_concurrent_requests(fake_provider):
    hung = [fake_provider("hung-1", delay=10.0, timeout=0.3), fake_provider("hung-2", delay=10.0, timeout=0.3)]
    fast = fake_provider("fast", timeout=1.0)
    orchestrator = GenerationOrchestrator([*hung, fast])
    request = GenerationRequest(city="New York", issue="Urban Heat Island")

    async def scenario():
        responses = []
        try:
            for _ in range(2):
                responses += await asyncio.gather(*(orchestrator.orchestrate(request) for _ in range(10)))
        finally:
            for provider in hung:
                provider.release.set()
        return responses

    responses = asyncio.run(scenario())
    orchestrator.close()

    assert len(responses) == 20
    for response in responses:
        first, second, fast_entry = response.images
        assert first.error.startswith("timeout")
        assert second.error.startswith("timeout")
        assert fast_entry.error is None
        assert fast_entry.url == fast.url


def test_queue_wait_does_not_count_against_deadline(fake_provider):
    slow = fake_provider("slow", delay=0.3, timeout=2.0)
    quick = fake_provider("quick", timeout=0.2)
    orchestrator = GenerationOrchestrator([slow, quick], max_workers=2)
    request = GenerationRequest(city="London", issue="Air Quality")

    async def scenario():
        return await asyncio.gather(*(orchestrator.orchestrate(request) for _ in range(2)))

    responses = asyncio.run(scenario())
    orchestrator.close()

    for response in responses:
        assert [image.error for image in response.images] == [None, None]


def _outcome_count(provider_name):
    return sum(
        sample.value
        for metric in provider_results_total.collect()
        for sample in metric.samples
        if sample.name == "provider_results_total" and sample.labels["provider"] == provider_name
    )


def test_missed_deadline_is_counted_once(fake_provider):
    metered = fake_provider("metered", delay=10.0, timeout=0.1)
    orchestrator = GenerationOrchestrator([metered])
    before = _outcome_count("metered")

    async def scenario():
        try:
            return await orchestrator.orchestrate(GenerationRequest(city="Tokyo", issue="Heat Stress"))
        finally:
            metered.release.set()

    response = asyncio.run(scenario())
    orchestrator.close(wait=True)

    assert response.images[0].error.startswith("timeout")
    assert _outcome_count("metered") - before == 1
