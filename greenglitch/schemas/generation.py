from pydantic import BaseModel, ConfigDict


class GenerationRequest(BaseModel):
    """Body of POST /api/generate. Domain validation happens in the prompt builder."""
    model_config = ConfigDict(frozen=True)

    city: str
    issue: str


class ProviderResult(BaseModel):
    """
    Outcome of one provider call.

    url is always non-empty: the image reference (remote URL or data: URI) on
    success, the placeholder sentinel on failure. error is set iff the call
    did not yield a usable image.
    """
    model_config = ConfigDict(frozen=True)

    provider: str
    url: str
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


class GenerationResponse(BaseModel):
    images: list[ProviderResult]


class CityOut(BaseModel):
    name: str
    issues: list[str]


class CitiesOut(BaseModel):
    cities: list[CityOut]
