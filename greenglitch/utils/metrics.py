"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
generation_requests_total = Counter(
    "generation_requests_total",
    "Total generation requests",
    ["status"],  # ok, invalid_input, contract_error
)

provider_results_total = Counter(
    "provider_results_total",
    "Provider call outcomes",
    ["provider", "outcome"],  # success or a FailureType value
)

# Histograms
provider_request_duration_seconds = Histogram(
    "provider_request_duration_seconds",
    "Provider call duration",
    ["provider"],
    buckets=[0.5, 1, 2, 5, 10, 30, 60, 120],
)

generation_duration_seconds = Histogram(
    "generation_duration_seconds",
    "Duration of one fan-out over all configured providers",
    buckets=[0.5, 1, 2, 5, 10, 30, 60, 120],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
