"""
Result aggregation: one entry per configured provider, in configuration order.
"""
import logging
from typing import Any, Sequence

from greenglitch.core.exceptions import AggregationContractError
from greenglitch.schemas.generation import GenerationResponse, ProviderResult
from greenglitch.services.image_generation.base import DEFAULT_PLACEHOLDER_URL

logger = logging.getLogger(__name__)


def aggregate(
    results: Sequence[Any],
    providers: Sequence[str],
    placeholder_url: str = DEFAULT_PLACEHOLDER_URL,
) -> GenerationResponse:
    """
    Merge collected provider outcomes into the response.

    results may arrive in any order; the response follows providers. Raises
    AggregationContractError when an adapter broke its contract: raised
    instead of returning, returned something other than one ProviderResult,
    reported for an unknown provider, or left url/error inconsistent.
    """
    if len(results) != len(providers):
        raise AggregationContractError(
            f"Expected {len(providers)} provider results, got {len(results)}"
        )

    by_provider: dict[str, ProviderResult] = {}
    for result in results:
        if isinstance(result, BaseException):
            raise AggregationContractError(
                f"Provider adapter raised instead of returning a result: {result!r}"
            ) from result
        if not isinstance(result, ProviderResult):
            raise AggregationContractError(
                f"Provider adapter returned {type(result).__name__}, expected ProviderResult"
            )
        if result.provider in by_provider:
            raise AggregationContractError(f"Duplicate result for provider {result.provider!r}")
        by_provider[result.provider] = result

    images: list[ProviderResult] = []
    for name in providers:
        result = by_provider.get(name)
        if result is None:
            raise AggregationContractError(f"Missing result for provider {name!r}")
        _check_entry(result, placeholder_url)
        images.append(result)

    return GenerationResponse(images=images)


def _check_entry(result: ProviderResult, placeholder_url: str) -> None:
    if not result.url:
        raise AggregationContractError(f"Empty url from provider {result.provider!r}")
    if result.error is not None:
        if not result.error.strip():
            raise AggregationContractError(f"Empty error from provider {result.provider!r}")
        if result.url != placeholder_url:
            raise AggregationContractError(
                f"Provider {result.provider!r} reported an error with a non-placeholder url"
            )
    elif result.url == placeholder_url:
        raise AggregationContractError(
            f"Provider {result.provider!r} reported success with the placeholder url"
        )
