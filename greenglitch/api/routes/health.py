from fastapi import APIRouter, Depends, Response

from greenglitch.api.routes.generate import get_orchestrator
from greenglitch.services.image_generation import GenerationOrchestrator


router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Liveness probe - always returns 200 if app is running."""
    return {"status": "ok"}


@router.get("/ready")
def readiness(
    response: Response,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict:
    """Readiness probe - returns 503 if no configured provider has credentials."""
    providers = {p.name: p.is_available() for p in orchestrator.providers}
    if not any(providers.values()):
        response.status_code = 503
        return {"status": "not_ready", "providers": providers}
    return {"status": "ready", "providers": providers}
