"""
Call-level errors of the generation endpoint.
Provider failures never show up here: adapters report them in-band.
"""


class InvalidInputError(ValueError):
    """Unknown city, or issue not valid for the given city. Maps to HTTP 400."""


class AggregationContractError(RuntimeError):
    """Collected provider results break the one-entry-per-provider contract. Maps to HTTP 500."""
