"""
Climate catalog: supported cities and the issues valid for each city.
Loaded once from YAML and shared read-only by all requests.
"""
import functools
import logging
from pathlib import Path
from typing import Any

import yaml

from greenglitch.core.config import settings
from greenglitch.core.exceptions import InvalidInputError

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[2] / "data" / "climate_issues.yaml"


class ClimateCatalog:
    def __init__(self, issues_by_city: dict[str, list[str]]) -> None:
        self._issues_by_city = {city: list(issues) for city, issues in issues_by_city.items()}

    @classmethod
    def load(cls, path: str | Path) -> "ClimateCatalog":
        with open(path, "r", encoding="utf-8") as f:
            payload = yaml.safe_load(f)
        return cls(cls._parse(payload, str(path)))

    @staticmethod
    def _parse(payload: Any, source: str) -> dict[str, list[str]]:
        if not isinstance(payload, dict) or not payload:
            raise ValueError(f"Climate catalog {source} must be a non-empty mapping of city -> issues")
        parsed: dict[str, list[str]] = {}
        for city, issues in payload.items():
            if not isinstance(city, str) or not city.strip():
                raise ValueError(f"Climate catalog {source}: invalid city name {city!r}")
            if not isinstance(issues, list) or not issues:
                raise ValueError(f"Climate catalog {source}: city {city!r} has no issues")
            clean = []
            for issue in issues:
                if not isinstance(issue, str) or not issue.strip():
                    raise ValueError(f"Climate catalog {source}: invalid issue {issue!r} for {city!r}")
                if issue.strip() not in clean:
                    clean.append(issue.strip())
            parsed[city.strip()] = clean
        return parsed

    def cities(self) -> list[str]:
        return list(self._issues_by_city.keys())

    def issues_for(self, city: str) -> list[str]:
        """Issues selectable for city. Raises InvalidInputError for an unknown city."""
        issues = self._issues_by_city.get((city or "").strip())
        if issues is None:
            raise InvalidInputError(f"Unsupported city: {city!r}")
        return list(issues)

    def validate(self, city: str, issue: str) -> tuple[str, str]:
        """
        Re-validate a (city, issue) pair coming from a client.

        Returns the stripped pair. Raises InvalidInputError when either value is
        empty, the city is unknown, or the issue belongs to a different city.
        """
        city = (city or "").strip()
        issue = (issue or "").strip()
        if not city:
            raise InvalidInputError("city is required")
        if not issue:
            raise InvalidInputError("issue is required")
        if issue not in self.issues_for(city):
            raise InvalidInputError(f"Issue {issue!r} is not supported for city {city!r}")
        return city, issue

    def as_dict(self) -> dict[str, list[str]]:
        return {city: list(issues) for city, issues in self._issues_by_city.items()}


@functools.lru_cache(maxsize=1)
def get_catalog() -> ClimateCatalog:
    path = settings.climate_catalog_path or DEFAULT_CATALOG_PATH
    catalog = ClimateCatalog.load(path)
    logger.info("climate_catalog_loaded", extra={"path": str(path)})
    return catalog
