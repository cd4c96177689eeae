"""
Image generation service with multi-provider fan-out.
"""
from .base import (
    ImageGenerationProvider,
    ImageGenerationRequest,
    ImageGenerationResponse,
    ImageGenerationError,
    build_gemini_error_detail,
    classify_exception,
)
from .factory import ImageProviderFactory
from .failure_types import FailureType, classify_failure, format_error
from .aggregator import aggregate
from .orchestrator import GenerationOrchestrator

__all__ = [
    "ImageGenerationProvider",
    "ImageGenerationRequest",
    "ImageGenerationResponse",
    "ImageGenerationError",
    "build_gemini_error_detail",
    "classify_exception",
    "ImageProviderFactory",
    "FailureType",
    "classify_failure",
    "format_error",
    "aggregate",
    "GenerationOrchestrator",
]
