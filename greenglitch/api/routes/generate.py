"""
Generation API: climate catalog and the fan-out generation endpoint.
Paths match the web client (POST /api/generate with {city, issue}).
"""
import functools

from fastapi import APIRouter, Depends

from greenglitch.core.config import settings
from greenglitch.schemas.generation import (
    CitiesOut,
    CityOut,
    GenerationRequest,
    GenerationResponse,
)
from greenglitch.services.climate.catalog import ClimateCatalog, get_catalog
from greenglitch.services.image_generation import GenerationOrchestrator, ImageProviderFactory

router = APIRouter(prefix="/api", tags=["generation"])


@functools.lru_cache(maxsize=1)
def get_orchestrator() -> GenerationOrchestrator:
    """Providers are built once per process from settings, at startup."""
    return GenerationOrchestrator(
        ImageProviderFactory.create_configured(settings),
        catalog=get_catalog(),
        placeholder_url=settings.placeholder_url,
        max_workers=settings.provider_max_workers,
    )


@router.get("/cities", response_model=CitiesOut)
def list_cities(catalog: ClimateCatalog = Depends(get_catalog)) -> CitiesOut:
    return CitiesOut(
        cities=[CityOut(name=city, issues=catalog.issues_for(city)) for city in catalog.cities()]
    )


@router.post("/generate", response_model=GenerationResponse, response_model_exclude_none=True)
async def generate_images(
    payload: GenerationRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> GenerationResponse:
    """
    Generate one image per configured provider.

    Provider failures come back in-band as entries with an error and the
    placeholder url. InvalidInputError -> 400 and AggregationContractError -> 500
    are mapped by the handlers in greenglitch.main.
    """
    return await orchestrator.orchestrate(payload)
