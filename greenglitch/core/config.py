"""
Application configuration.
All settings are loaded from environment variables (or .env).
Provider credentials are optional: a provider without credentials stays in the
response layout and reports a "not_configured" error entry.
"""
from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # ===========================================
    # APPLICATION
    # ===========================================
    app_env: str = "local"
    # CORS: comma-separated origins. Empty = default list in main.py.
    cors_origins: str = ""

    # ===========================================
    # IMAGE GENERATION - PROVIDER SELECTION
    # ===========================================
    # Ordered, comma-separated. The order is the order of entries in every response.
    image_providers: str = "openai,huggingface,replicate,gemini"
    image_size: str = "1024x1024"
    # Returned as url for entries without a usable image; the UI disables save/share for it.
    placeholder_url: str = "/placeholder.svg"
    # Worker threads shared by all provider calls; size for providers x concurrent requests.
    provider_max_workers: int = 64

    # ===========================================
    # OPENAI API (Provider: openai)
    # ===========================================
    openai_api_key: str = ""
    openai_image_model: str = "dall-e-3"
    openai_request_timeout: float = 60.0

    # ===========================================
    # HUGGING FACE API (Provider: huggingface)
    # ===========================================
    huggingface_api_key: str = ""
    huggingface_api_url: str = "https://api-inference.huggingface.co"
    huggingface_image_model: str = "black-forest-labs/FLUX.1-schnell"
    huggingface_timeout: float = 60.0

    # ===========================================
    # REPLICATE API (Provider: replicate)
    # ===========================================
    replicate_api_token: str = ""
    replicate_api_url: str = "https://api.replicate.com/v1"
    replicate_image_model: str = "black-forest-labs/flux-schnell"
    replicate_timeout: float = 60.0
    replicate_poll_interval: float = 1.0

    # ===========================================
    # GOOGLE GEMINI (Provider: gemini)
    # ===========================================
    gemini_api_key: str = ""  # https://aistudio.google.com/apikey
    gemini_api_endpoint: str = "https://generativelanguage.googleapis.com"
    gemini_image_model: str = "gemini-2.5-flash-image"
    gemini_timeout: float = 90.0
    # JSON array of {category, threshold}; empty = API defaults.
    gemini_safety_settings: str = ""

    # ===========================================
    # CLIMATE CATALOG
    # ===========================================
    # Path to a YAML mapping city -> [issues]. Empty = bundled greenglitch/data/climate_issues.yaml.
    climate_catalog_path: str = ""

    # ===========================================
    # LOGGING
    # ===========================================
    log_level: str = "INFO"
    request_id_header: str = "X-Request-Id"
    log_file: str | None = None
    log_max_bytes: int = 10_000_000
    log_backup_count: int = 5

    @field_validator("image_providers")
    @classmethod
    def validate_image_providers(cls, v: str) -> str:
        """Require at least one provider name."""
        v = v.lower().strip()
        if not [p for p in v.split(",") if p.strip()]:
            raise ValueError("image_providers must name at least one provider")
        return v

    @field_validator(
        "openai_request_timeout",
        "huggingface_timeout",
        "replicate_timeout",
        "replicate_poll_interval",
        "gemini_timeout",
    )
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeouts must be positive")
        return v

    @field_validator("provider_max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError("provider_max_workers must be at least 1")
        return v

    @property
    def image_providers_list(self) -> list[str]:
        """Configured provider names in response order (duplicates dropped)."""
        names: list[str] = []
        for name in self.image_providers.split(","):
            name = name.strip()
            if name and name not in names:
                names.append(name)
        return names

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


settings = Settings()
