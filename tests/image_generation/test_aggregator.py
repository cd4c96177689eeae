"""Tests for aggregate: ordering and contract checks."""
import pytest

from greenglitch.core.exceptions import AggregationContractError
from greenglitch.schemas.generation import ProviderResult
from greenglitch.services.image_generation.aggregator import aggregate

PLACEHOLDER = "/placeholder.svg"


def _ok(name):
    return ProviderResult(provider=name, url=f"https://img.example.com/{name}.png")


def _failed(name, error="timeout: no response within 30s"):
    return ProviderResult(provider=name, url=PLACEHOLDER, error=error)


def test_orders_by_configuration():
    response = aggregate([_ok("b"), _failed("c"), _ok("a")], ["a", "b", "c"], PLACEHOLDER)

    assert [image.provider for image in response.images] == ["a", "b", "c"]
    assert response.images[2].error.startswith("timeout")


def test_missing_result_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([_ok("a")], ["a", "b"], PLACEHOLDER)


def test_duplicate_result_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([_ok("a"), _ok("a")], ["a", "b"], PLACEHOLDER)


def test_unknown_provider_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([_ok("a"), _ok("z")], ["a", "b"], PLACEHOLDER)


def test_exception_in_results_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([_ok("a"), RuntimeError("adapter raised")], ["a", "b"], PLACEHOLDER)


def test_success_with_placeholder_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([ProviderResult(provider="a", url=PLACEHOLDER)], ["a"], PLACEHOLDER)


def test_error_with_real_url_is_contract_error():
    bad = ProviderResult(provider="a", url="https://img.example.com/a.png", error="upstream: 502")
    with pytest.raises(AggregationContractError):
        aggregate([bad], ["a"], PLACEHOLDER)


def test_empty_url_is_contract_error():
    with pytest.raises(AggregationContractError):
        aggregate([ProviderResult(provider="a", url="", error="internal")], ["a"], PLACEHOLDER)


def test_data_uri_is_a_usable_image():
    data_uri = ProviderResult(provider="a", url="data:image/png;base64,iVBORw0KGgo=")

    response = aggregate([data_uri], ["a"], PLACEHOLDER)

    assert response.images[0].error is None
