"""Firebot API adapter package."""

from .client import FirebotAPIClient, FirebotAPIError

__all__ = ["FirebotAPIClient", "FirebotAPIError"]
