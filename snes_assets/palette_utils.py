#!/usr/bin/env python3
"""
SNES color and palette utilities
BGR555 colors, 16-entry palettes and CGRAM byte handling
"""

import struct
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .constants import (
    BGR555_BLUE_MASK,
    BGR555_BLUE_SHIFT,
    BGR555_COLOR_MASK,
    BGR555_GREEN_MASK,
    BGR555_GREEN_SHIFT,
    BGR555_MAX_VALUE,
    BGR555_RED_MASK,
    BGR555_RED_SHIFT,
    BYTES_PER_COLOR,
    BYTES_PER_PALETTE,
    COLORS_PER_PALETTE,
    MAX_PALETTES,
    RGB888_MAX_VALUE,
    RGB888_TO_5BIT_SHIFT,
)


def bgr555_to_rgb888(bgr555: int) -> tuple[int, int, int]:
    """
    Convert BGR555 color to RGB888.

    Args:
        bgr555: 16-bit BGR555 color value

    Returns:
        Tuple of (r, g, b) values in 0-255 range
    """
    b = (bgr555 & BGR555_BLUE_MASK) >> BGR555_BLUE_SHIFT
    g = (bgr555 & BGR555_GREEN_MASK) >> BGR555_GREEN_SHIFT
    r = (bgr555 & BGR555_RED_MASK) >> BGR555_RED_SHIFT

    r = (r * RGB888_MAX_VALUE) // BGR555_MAX_VALUE
    g = (g * RGB888_MAX_VALUE) // BGR555_MAX_VALUE
    b = (b * RGB888_MAX_VALUE) // BGR555_MAX_VALUE

    return r, g, b


def rgb888_to_bgr555(r: int, g: int, b: int) -> int:
    """
    Convert RGB888 color to BGR555 by truncating each channel to 5 bits.

    This is the same reduction the sprite sheet importer applies to its
    histogram, so a color survives an import unchanged.
    """
    r5 = (r & 0xFF) >> RGB888_TO_5BIT_SHIFT
    g5 = (g & 0xFF) >> RGB888_TO_5BIT_SHIFT
    b5 = (b & 0xFF) >> RGB888_TO_5BIT_SHIFT

    return (
        (b5 << BGR555_BLUE_SHIFT)
        | (g5 << BGR555_GREEN_SHIFT)
        | (r5 << BGR555_RED_SHIFT)
    )


def _clamp_channel(value: int) -> int:
    return min(max(int(value), 0), BGR555_MAX_VALUE)


@dataclass(frozen=True, order=True)
class SNESColor:
    """A 15-bit BGR555 color: 0BBBBBGGGGGRRRRR"""

    raw: int = 0

    def __post_init__(self):
        # The reserved top bit is always zero
        object.__setattr__(self, "raw", int(self.raw) & BGR555_COLOR_MASK)

    @classmethod
    def from_rgb(cls, r: int, g: int, b: int) -> "SNESColor":
        """Build a color from 5-bit channels, clamping each to 0-31."""
        return cls(
            (_clamp_channel(r) << BGR555_RED_SHIFT)
            | (_clamp_channel(g) << BGR555_GREEN_SHIFT)
            | (_clamp_channel(b) << BGR555_BLUE_SHIFT)
        )

    @classmethod
    def from_rgb888(cls, r: int, g: int, b: int) -> "SNESColor":
        return cls(rgb888_to_bgr555(r, g, b))

    @property
    def red(self) -> int:
        return (self.raw & BGR555_RED_MASK) >> BGR555_RED_SHIFT

    @property
    def green(self) -> int:
        return (self.raw & BGR555_GREEN_MASK) >> BGR555_GREEN_SHIFT

    @property
    def blue(self) -> int:
        return (self.raw & BGR555_BLUE_MASK) >> BGR555_BLUE_SHIFT

    @property
    def hex_string(self) -> str:
        return f"${self.raw:04X}"

    def to_rgb888(self) -> tuple[int, int, int]:
        return bgr555_to_rgb888(self.raw)

    def __repr__(self) -> str:
        return f"SNESColor(r={self.red}, g={self.green}, b={self.blue})"


BLACK = SNESColor.from_rgb(0, 0, 0)
WHITE = SNESColor.from_rgb(31, 31, 31)

SNES_DEFAULT_COLORS = (
    SNESColor.from_rgb(0, 0, 0),     # 0 - Black (transparent)
    SNESColor.from_rgb(31, 31, 31),  # 1 - White
    SNESColor.from_rgb(31, 0, 0),    # 2 - Red
    SNESColor.from_rgb(0, 31, 0),    # 3 - Green
    SNESColor.from_rgb(0, 0, 31),    # 4 - Blue
    SNESColor.from_rgb(31, 31, 0),   # 5 - Yellow
    SNESColor.from_rgb(0, 31, 31),   # 6 - Cyan
    SNESColor.from_rgb(31, 0, 31),   # 7 - Magenta
    SNESColor.from_rgb(16, 16, 16),  # 8 - Gray
    SNESColor.from_rgb(20, 10, 5),   # 9 - Brown
    SNESColor.from_rgb(31, 16, 0),   # 10 - Orange
    SNESColor.from_rgb(16, 31, 16),  # 11 - Light green
    SNESColor.from_rgb(16, 16, 31),  # 12 - Light blue
    SNESColor.from_rgb(24, 16, 24),  # 13 - Light purple
    SNESColor.from_rgb(24, 24, 16),  # 14 - Cream
    SNESColor.from_rgb(8, 8, 8),     # 15 - Dark gray
)


@dataclass(frozen=True)
class Palette:
    """
    Sixteen SNES colors. Index 0 is conventionally transparent for sprites.

    Shorter color lists are padded with black and longer ones truncated,
    so a palette always holds exactly 16 entries.
    """

    name: str = "Palette"
    colors: tuple[SNESColor, ...] = field(default=())

    def __post_init__(self):
        colors = list(self.colors)[:COLORS_PER_PALETTE]
        colors.extend([BLACK] * (COLORS_PER_PALETTE - len(colors)))
        object.__setattr__(self, "colors", tuple(colors))

    def __getitem__(self, index: int) -> SNESColor:
        return self.colors[index]

    def __len__(self) -> int:
        return len(self.colors)

    def __iter__(self):
        return iter(self.colors)

    def with_color(self, index: int, color: SNESColor) -> "Palette":
        """Return a copy with one slot replaced."""
        colors = list(self.colors)
        colors[index] = color
        return Palette(self.name, tuple(colors))

    @property
    def has_content(self) -> bool:
        """True when any slot past the transparent one is not black."""
        return any(color != BLACK for color in self.colors[1:])

    def to_cgram(self) -> bytes:
        """Encode as 32 bytes of little-endian BGR555 CGRAM data."""
        return b"".join(struct.pack("<H", color.raw) for color in self.colors)

    def to_rgb_list(self) -> list[int]:
        """Flat [r, g, b, ...] list suitable for PIL's putpalette."""
        values = []
        for color in self.colors:
            values.extend(color.to_rgb888())
        return values

    @classmethod
    def from_cgram(cls, data: bytes, palette_num: int = 0,
                   name: Optional[str] = None) -> "Palette":
        """
        Decode one palette from a CGRAM image.

        Args:
            data: CGRAM bytes (up to 512)
            palette_num: Palette number (0-15)
            name: Optional palette name

        Returns:
            Palette; colors missing from a short dump read as black

        Raises:
            ValueError: If palette_num is out of range
        """
        if palette_num < 0 or palette_num >= MAX_PALETTES:
            raise ValueError(f"Palette number must be 0-{MAX_PALETTES - 1}, got {palette_num}")

        offset = palette_num * BYTES_PER_PALETTE
        colors = []
        for i in range(COLORS_PER_PALETTE):
            start = offset + i * BYTES_PER_COLOR
            color_bytes = data[start:start + BYTES_PER_COLOR]
            if len(color_bytes) == BYTES_PER_COLOR:
                colors.append(SNESColor(struct.unpack("<H", color_bytes)[0]))
            else:
                colors.append(BLACK)
        return cls(name or f"Palette {palette_num}", tuple(colors))


def default_palettes() -> list[Palette]:
    """The 16 starting palettes of a new project."""
    palettes = [Palette("Palette 0", SNES_DEFAULT_COLORS)]
    for i in range(1, MAX_PALETTES):
        palettes.append(Palette(f"Palette {i}"))
    return palettes


def get_grayscale_palette() -> Palette:
    """Grayscale ramp used to preview tiles without color data."""
    steps = COLORS_PER_PALETTE - 1
    return Palette(
        "Grayscale",
        tuple(SNESColor.from_rgb(i * BGR555_MAX_VALUE // steps,
                                 i * BGR555_MAX_VALUE // steps,
                                 i * BGR555_MAX_VALUE // steps)
              for i in range(COLORS_PER_PALETTE)),
    )


def write_cgram(palettes: Iterable[Palette]) -> bytes:
    """Concatenate palettes into a CGRAM image."""
    return b"".join(palette.to_cgram() for palette in palettes)
