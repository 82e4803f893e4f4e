"""Core enums for the guild banner pipeline."""

from enum import Enum, IntEnum


class LayerKind(Enum):
    """Kind of visual element a layer paints."""

    PANEL = "Panel"
    PROGRESS_BAR = "ProgressBar"
    TEXT = "Text"
    IMAGE = "Image"


class ZBand(IntEnum):
    """Fixed painting bands, lowest first.

    Layers get ``z_order = band * BAND_SIZE + position`` so the order inside a
    band follows the planner's sequence and the order across bands never
    changes. Text is always last.
    """

    BACKGROUND = 0
    PANELS = 1
    PROGRESS_BAR = 2
    LOGO = 3
    ICONS = 4
    TEXT = 5

    @property
    def base(self) -> int:
        return int(self) * BAND_SIZE


BAND_SIZE = 100


class TextAlign(Enum):
    """Horizontal alignment of a text layer inside its box."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"


class SourceName(Enum):
    """Data sources the aggregator reads."""

    WORLD = "world"
    GUILD = "guild"
    BOOSTED_BOSS = "boosted_boss"
    NPC_LOCATION = "npc_location"
    WORLD_EVENTS = "world_events"
