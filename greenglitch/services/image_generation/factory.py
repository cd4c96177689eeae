"""
Factory for creating image generation providers based on configuration.
"""
import logging

from greenglitch.services.image_generation.base import ImageGenerationProvider
from greenglitch.services.image_generation.providers.gemini_nano_banana import GeminiNanaBananaProvider
from greenglitch.services.image_generation.providers.huggingface import HuggingFaceProvider
from greenglitch.services.image_generation.providers.openai import OpenAIProvider
from greenglitch.services.image_generation.providers.replicate import ReplicateProvider
from greenglitch.services.prompts.builder import NEGATIVE_PROMPT

logger = logging.getLogger(__name__)


class ImageProviderFactory:
    """Factory for creating image generation providers."""

    PROVIDERS: dict[str, type[ImageGenerationProvider]] = {
        "openai": OpenAIProvider,
        "huggingface": HuggingFaceProvider,
        "replicate": ReplicateProvider,
        "gemini": GeminiNanaBananaProvider,
    }

    @classmethod
    def create(cls, provider_name: str, config: dict) -> ImageGenerationProvider:
        """
        Create provider instance by name.

        Args:
            provider_name: Name of provider (openai, huggingface, replicate, gemini)
            config: Provider-specific configuration dict

        Returns:
            Initialized provider instance

        Raises:
            ValueError: If provider name is unknown
        """
        provider_class = cls.PROVIDERS.get(provider_name.lower())

        if not provider_class:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Unknown provider: {provider_name}. "
                f"Available providers: {available}"
            )

        logger.info("Creating image provider: %s", provider_name)
        provider = provider_class(config)

        if not provider.is_available():
            logger.warning("Provider %s created but not fully configured", provider_name)

        return provider

    @classmethod
    def create_from_settings(cls, settings, provider_name: str) -> ImageGenerationProvider:
        """
        Create one provider from application settings.

        Args:
            settings: Application settings object
            provider_name: Registry key of the provider

        Returns:
            Initialized provider instance
        """
        provider_name = provider_name.strip().lower()
        common = {
            "size": settings.image_size,
            "placeholder_url": settings.placeholder_url,
            "negative_prompt": NEGATIVE_PROMPT,
        }

        if provider_name == "openai":
            config = {
                "api_key": settings.openai_api_key,
                "model": settings.openai_image_model,
                "timeout": settings.openai_request_timeout,
            }
        elif provider_name == "huggingface":
            config = {
                "api_key": settings.huggingface_api_key,
                "api_url": settings.huggingface_api_url,
                "model": settings.huggingface_image_model,
                "timeout": settings.huggingface_timeout,
            }
        elif provider_name == "replicate":
            config = {
                "api_token": settings.replicate_api_token,
                "api_url": settings.replicate_api_url,
                "model": settings.replicate_image_model,
                "timeout": settings.replicate_timeout,
                "poll_interval": settings.replicate_poll_interval,
            }
        elif provider_name == "gemini":
            config = {
                "api_key": settings.gemini_api_key,
                "api_endpoint": settings.gemini_api_endpoint,
                "model": settings.gemini_image_model,
                "timeout": settings.gemini_timeout,
                "safety_settings": settings.gemini_safety_settings,
            }
        else:
            available = ", ".join(cls.PROVIDERS.keys())
            raise ValueError(
                f"Provider {provider_name} not supported in settings. "
                f"Available providers: {available}"
            )

        return cls.create(provider_name, {**common, **config})

    @classmethod
    def create_configured(cls, settings) -> list[ImageGenerationProvider]:
        """Create every provider listed in settings.image_providers, in that order."""
        return [cls.create_from_settings(settings, name) for name in settings.image_providers_list]

    @classmethod
    def get_available_providers(cls) -> list[str]:
        """Get list of all available provider names."""
        return list(cls.PROVIDERS.keys())
