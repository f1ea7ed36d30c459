#!/usr/bin/env python3
"""
Hardware sprite descriptors and animation frames
"""

from dataclasses import dataclass, field
from enum import Enum

from ..constants import DEFAULT_FRAME_DURATION


class SpriteSize(Enum):
    """OAM size class"""

    SMALL_8X8 = "8x8"
    LARGE_16X16 = "16x16"
    LARGE_32X32 = "32x32"
    LARGE_64X64 = "64x64"

    @property
    def label(self) -> str:
        return self.value

    @property
    def pixel_size(self) -> int:
        return int(self.value.split("x")[0])

    @property
    def tiles_per_side(self) -> int:
        return self.pixel_size // 8


@dataclass(frozen=True)
class OAMEntry:
    """
    One hardware sprite.

    Position is a signed screen coordinate and may lie off-screen.
    palette_index selects one of the 8 sprite palettes, priority is 0-3.
    """

    x: int = 0
    y: int = 0
    tile_index: int = 0
    palette_index: int = 0
    priority: int = 0
    flip_h: bool = False
    flip_v: bool = False
    size: SpriteSize = SpriteSize.SMALL_8X8

    def to_dict(self) -> dict:
        return {
            "x": self.x,
            "y": self.y,
            "tileIndex": self.tile_index,
            "paletteIndex": self.palette_index,
            "priority": self.priority,
            "flipH": self.flip_h,
            "flipV": self.flip_v,
            "size": self.size.name,
        }


@dataclass(frozen=True)
class SpriteFrame:
    """OAM entries drawn in list order, shown for `duration` VBlanks"""

    entries: tuple[OAMEntry, ...] = field(default=())
    duration: int = DEFAULT_FRAME_DURATION

    def __post_init__(self):
        object.__setattr__(self, "entries", tuple(self.entries))

    def to_dict(self) -> dict:
        return {
            "entries": [entry.to_dict() for entry in self.entries],
            "duration": self.duration,
        }


@dataclass(frozen=True)
class SpriteAnimation:
    name: str
    frames: tuple[SpriteFrame, ...] = field(default=())
    loop: bool = True

    def __post_init__(self):
        object.__setattr__(self, "frames", tuple(self.frames))

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "loop": self.loop,
            "frames": [frame.to_dict() for frame in self.frames],
        }
