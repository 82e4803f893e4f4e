"""Core entities for the guild banner pipeline."""

import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, Optional, TypeVar, Union

from .enums import LayerKind, TextAlign


MIN_WIDTH, MAX_WIDTH = 800, 2000
MIN_HEIGHT, MAX_HEIGHT = 200, 800

UNKNOWN = "Unknown"

Color = tuple[int, int, int, int]

T = TypeVar("T")


@dataclass(frozen=True)
class BannerRequest:
    """Parameters of one banner render."""

    world: str
    guild_name: str
    lang: str = "pt"
    theme: str = "default"
    show_boss: bool = True
    show_logo: bool = True
    width: int = 1200
    height: int = 300

    def __post_init__(self):
        if not self.world or not self.world.strip():
            raise ValueError("World parameter is required")
        if not self.guild_name or not self.guild_name.strip():
            raise ValueError("Guild name parameter is required")
        if not MIN_WIDTH <= self.width <= MAX_WIDTH:
            raise ValueError(f"width must be between {MIN_WIDTH} and {MAX_WIDTH}")
        if not MIN_HEIGHT <= self.height <= MAX_HEIGHT:
            raise ValueError(f"height must be between {MIN_HEIGHT} and {MAX_HEIGHT}")


# Source payloads


@dataclass(frozen=True)
class WorldInfo:
    """World population counters."""

    name: str
    players_online: int
    record_players: int
    location: str
    pvp_type: str

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "WorldInfo":
        world = (payload or {}).get("world")
        if not world or not world.get("name"):
            raise ValueError("World info not found")
        return cls(
            name=world["name"],
            players_online=int(world.get("players_online") or 0),
            record_players=int(world.get("record_players") or 0),
            location=world.get("location") or UNKNOWN,
            pvp_type=world.get("pvp_type") or UNKNOWN,
        )

    @classmethod
    def placeholder(cls, world_name: str) -> "WorldInfo":
        """Echo the requested world back with zeroed stats."""
        return cls(
            name=world_name,
            players_online=0,
            record_players=0,
            location=UNKNOWN,
            pvp_type=UNKNOWN,
        )


@dataclass(frozen=True)
class GuildInfo:
    """Guild membership counters and profile."""

    name: str
    players_online: int
    members_total: int
    founded: str = ""
    description: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "GuildInfo":
        guild = (payload or {}).get("guild")
        if not guild or not guild.get("name"):
            raise ValueError("Guild info not found")
        return cls(
            name=guild["name"],
            players_online=int(guild.get("players_online") or 0),
            members_total=int(guild.get("members_total") or 0),
            founded=guild.get("founded") or "",
            description=guild.get("description") or "",
        )


@dataclass(frozen=True)
class BossInfo:
    """Today's boosted boss. ``image`` holds the downloaded icon, if any."""

    name: str
    image_url: Optional[str] = None
    image: Optional[bytes] = field(default=None, repr=False)

    @classmethod
    def from_api(cls, payload: dict[str, Any]) -> "BossInfo":
        boosted = ((payload or {}).get("boostable_bosses") or {}).get("boosted")
        if not boosted or not boosted.get("name"):
            raise ValueError("Boosted boss not found")
        return cls(name=boosted["name"], image_url=boosted.get("image_url") or None)

    @classmethod
    def placeholder(cls) -> "BossInfo":
        return cls(name=UNKNOWN)


@dataclass(frozen=True)
class NpcLocation:
    """Where a travelling NPC (Rashid) is today."""

    npc: str
    city: str
    date: str = ""

    @classmethod
    def from_api(cls, payload: dict[str, Any], npc: str = "Rashid") -> "NpcLocation":
        if not payload or not payload.get("city"):
            raise ValueError(f"{npc} location not found")
        return cls(npc=npc, city=payload["city"], date=payload.get("date") or "")

    @classmethod
    def placeholder(cls, npc: str = "Rashid") -> "NpcLocation":
        return cls(npc=npc, city=UNKNOWN)


@dataclass(frozen=True)
class WorldChange:
    """One active world change (event)."""

    name: str
    description: str = ""


@dataclass(frozen=True)
class WorldEvents:
    """Active world changes for one world."""

    changes: tuple[WorldChange, ...] = ()

    @classmethod
    def from_api(cls, payload: Any) -> "WorldEvents":
        """Accept a flat list of strings or a list of change records.

        The list may also arrive wrapped in an object under ``changes``,
        ``active_world_changes`` or ``data``.
        """
        if isinstance(payload, dict):
            for key in ("changes", "active_world_changes", "data"):
                if isinstance(payload.get(key), list):
                    payload = payload[key]
                    break
            else:
                raise ValueError("Unrecognised world changes payload")
        if not isinstance(payload, list):
            raise ValueError("Unrecognised world changes payload")

        changes = []
        for entry in payload:
            if isinstance(entry, str):
                changes.append(WorldChange(name=entry))
            elif isinstance(entry, dict):
                changes.append(
                    WorldChange(
                        name=str(entry.get("name") or ""),
                        description=str(entry.get("description") or ""),
                    )
                )
        return cls(changes=tuple(changes))

    @classmethod
    def placeholder(cls) -> "WorldEvents":
        return cls()

    def contains_marker(self, marker: str) -> bool:
        """Case-insensitive search for ``marker`` in names and descriptions."""
        needle = marker.casefold()
        if not needle:
            return False
        return any(
            needle in change.name.casefold() or needle in change.description.casefold()
            for change in self.changes
        )


# Present / Degraded wrapper


@dataclass(frozen=True)
class Present(Generic[T]):
    """A source value that was read successfully."""

    value: T

    @property
    def is_present(self) -> bool:
        return True


@dataclass(frozen=True)
class Degraded(Generic[T]):
    """A placeholder standing in for a source that failed."""

    value: T
    reason: str = ""

    @property
    def is_present(self) -> bool:
        return False


SourceDatum = Union[Present[T], Degraded[T]]


@dataclass(frozen=True)
class AggregatedData:
    """Everything the layout needs, joined from all sources."""

    world: SourceDatum[WorldInfo]
    guild: GuildInfo
    boosted_boss: SourceDatum[BossInfo]
    npc_location: SourceDatum[NpcLocation]
    world_events: SourceDatum[WorldEvents]
    special_event_active: bool
    generated_at: datetime
    generated_at_text: str


@dataclass(frozen=True)
class ThemeAssets:
    """Binary theme assets."""

    logo: bytes = field(repr=False)
    background: bytes = field(repr=False)


@dataclass(frozen=True)
class AuthToken:
    """Bearer credential for the authenticated provider."""

    value: str = field(repr=False)
    expires_at: float

    def is_valid(self, skew_seconds: float, now: Optional[float] = None) -> bool:
        """Usable while ``now < expires_at - skew``."""
        now = time.time() if now is None else now
        return now < self.expires_at - skew_seconds


# Layers


@dataclass(frozen=True)
class Geometry:
    """Box in fractions of the canvas (x, y, width, height)."""

    x: float
    y: float
    w: float
    h: float

    def to_pixels(self, width: int, height: int) -> tuple[int, int, int, int]:
        """Left, top, right, bottom in pixels."""
        left = round(self.x * width)
        top = round(self.y * height)
        right = round((self.x + self.w) * width)
        bottom = round((self.y + self.h) * height)
        return left, top, right, bottom


@dataclass(frozen=True)
class PanelContent:
    fill: Color
    radius: float = 0.0  # fraction of canvas height
    fill_end: Optional[Color] = None  # left to right gradient when set


@dataclass(frozen=True)
class ProgressBarContent:
    fraction: float
    track: Color
    fill: Color
    radius: float = 0.0


@dataclass(frozen=True)
class TextContent:
    text: str
    color: Color
    bold: bool = False
    align: TextAlign = TextAlign.LEFT


ASSET_LOGO = "logo"
ASSET_BACKGROUND = "background"


@dataclass(frozen=True)
class ImageContent:
    """Raster input, either inline bytes or a named theme asset.

    ``cover`` fills the box, cropping as needed; otherwise the image is fitted
    inside it preserving aspect ratio.
    """

    data: Optional[bytes] = field(default=None, repr=False)
    asset: Optional[str] = None
    opacity: float = 1.0
    cover: bool = False


LayerContent = Union[PanelContent, ProgressBarContent, TextContent, ImageContent]


@dataclass(frozen=True)
class LayerSpec:
    """One positioned visual element."""

    kind: LayerKind
    geometry: Geometry
    content: LayerContent
    z_order: int
    name: str = ""
