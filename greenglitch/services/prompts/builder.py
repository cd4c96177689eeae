"""
Prompt builder: (city, issue) -> generation prompt.
Pure and deterministic; validation goes through the climate catalog.
"""
import re

from greenglitch.services.climate.catalog import ClimateCatalog, get_catalog

MAX_SUBSTITUTION_LENGTH = 100

PROMPT_TEMPLATE = (
    "A striking, photorealistic climate change awareness image of {city} "
    "showing the impact of {issue}. Recognizable {city} landmarks and streets, "
    "dramatic but hopeful atmosphere, people adapting to the change, "
    "cinematic lighting, high detail."
)

NEGATIVE_PROMPT = "text, captions, watermark, logo, gore, distorted faces"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_TEMPLATE_CHARS = re.compile(r"[{}\[\]<>`\\]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_substitution(value: str) -> str:
    """Strip characters that could change the template's structure."""
    value = _CONTROL_CHARS.sub(" ", value)
    value = _TEMPLATE_CHARS.sub("", value)
    value = _WHITESPACE.sub(" ", value).strip()
    return value[:MAX_SUBSTITUTION_LENGTH]


def build(city: str, issue: str, catalog: ClimateCatalog | None = None) -> str:
    """Build the prompt for a validated pair. Raises InvalidInputError otherwise."""
    catalog = catalog or get_catalog()
    city, issue = catalog.validate(city, issue)
    return PROMPT_TEMPLATE.format(
        city=sanitize_substitution(city),
        issue=sanitize_substitution(issue).lower(),
    )
