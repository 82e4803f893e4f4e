"""TibiaData API adapter package."""

from .client import TibiaDataAPIError, TibiaDataClient, TibiaDataNotFoundError

__all__ = ["TibiaDataClient", "TibiaDataAPIError", "TibiaDataNotFoundError"]
