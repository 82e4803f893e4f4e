"""Theme asset adapter package."""

from .resolver import AssetResolver

__all__ = ["AssetResolver"]
