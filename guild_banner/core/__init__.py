"""Core layer for the guild banner service.

Domain entities, the error taxonomy, theme palettes and locale tables.
"""

from .entities import (
    AggregatedData,
    AuthToken,
    BannerRequest,
    BossInfo,
    Degraded,
    Geometry,
    GuildInfo,
    LayerSpec,
    NpcLocation,
    Present,
    SourceDatum,
    ThemeAssets,
    WorldChange,
    WorldEvents,
    WorldInfo,
)
from .enums import LayerKind, SourceName, TextAlign, ZBand
from .errors import (
    AssetResolutionError,
    AuthFailureError,
    BannerError,
    BannerGenerationError,
    CompositionError,
    DegradedSourceError,
    GuildNotFoundError,
)

__all__ = [
    "AggregatedData",
    "AuthToken",
    "BannerRequest",
    "BossInfo",
    "Degraded",
    "Geometry",
    "GuildInfo",
    "LayerSpec",
    "NpcLocation",
    "Present",
    "SourceDatum",
    "ThemeAssets",
    "WorldChange",
    "WorldEvents",
    "WorldInfo",
    "LayerKind",
    "SourceName",
    "TextAlign",
    "ZBand",
    "AssetResolutionError",
    "AuthFailureError",
    "BannerError",
    "BannerGenerationError",
    "CompositionError",
    "DegradedSourceError",
    "GuildNotFoundError",
]
