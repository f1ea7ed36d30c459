#!/usr/bin/env python3
"""
Tile and tilemap value types
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable

from ..constants import (
    BYTES_PER_TILE_2BPP,
    BYTES_PER_TILE_4BPP,
    BYTES_PER_TILE_8BPP,
    PIXELS_PER_TILE,
    TILE_HEIGHT,
    TILE_WIDTH,
    TILEMAP_FLIP_H_BIT,
    TILEMAP_FLIP_V_BIT,
    TILEMAP_PALETTE_SHIFT,
    TILEMAP_PRIORITY_BIT,
    TILEMAP_TILE_MASK,
)


class TileDepth(Enum):
    """Bits per pixel of an 8x8 tile"""

    BPP2 = 2
    BPP4 = 4
    BPP8 = 8

    @property
    def label(self) -> str:
        return f"{self.value}bpp"

    @property
    def max_color_index(self) -> int:
        return (1 << self.value) - 1

    @property
    def bytes_per_tile(self) -> int:
        return _BYTES_PER_TILE[self]

    @classmethod
    def from_bits(cls, bits: int) -> "TileDepth":
        """Look up a depth by its bits-per-pixel number."""
        try:
            return cls(int(bits))
        except ValueError:
            raise ValueError(f"Unsupported tile depth: {bits}bpp (expected 2, 4 or 8)") from None


_BYTES_PER_TILE = {
    TileDepth.BPP2: BYTES_PER_TILE_2BPP,
    TileDepth.BPP4: BYTES_PER_TILE_4BPP,
    TileDepth.BPP8: BYTES_PER_TILE_8BPP,
}


def _normalize_pixels(pixels: Iterable[int], depth: TileDepth) -> tuple[int, ...]:
    max_index = depth.max_color_index
    values = [min(max(int(p), 0), max_index) for p in list(pixels)[:PIXELS_PER_TILE]]
    values.extend([0] * (PIXELS_PER_TILE - len(values)))
    return tuple(values)


@dataclass(frozen=True)
class Tile:
    """
    An 8x8 tile of palette indices, stored row-major.

    Pixel values are clamped to the depth's maximum index. Transforms
    return new tiles; a tile is never modified in place.
    """

    pixels: tuple[int, ...]
    depth: TileDepth = TileDepth.BPP4
    category: str = ""

    def __post_init__(self):
        object.__setattr__(self, "pixels", _normalize_pixels(self.pixels, self.depth))

    @classmethod
    def empty(cls, depth: TileDepth = TileDepth.BPP4, category: str = "") -> "Tile":
        return cls((0,) * PIXELS_PER_TILE, depth, category)

    def pixel(self, x: int, y: int) -> int:
        if not (0 <= x < TILE_WIDTH and 0 <= y < TILE_HEIGHT):
            return 0
        return self.pixels[y * TILE_WIDTH + x]

    def with_pixel(self, x: int, y: int, value: int) -> "Tile":
        if not (0 <= x < TILE_WIDTH and 0 <= y < TILE_HEIGHT):
            return self
        pixels = list(self.pixels)
        pixels[y * TILE_WIDTH + x] = value
        return replace(self, pixels=tuple(pixels))

    @property
    def is_transparent(self) -> bool:
        return not any(self.pixels)

    def rows(self) -> list[tuple[int, ...]]:
        return [self.pixels[y * TILE_WIDTH:(y + 1) * TILE_WIDTH] for y in range(TILE_HEIGHT)]

    def flipped_horizontally(self) -> "Tile":
        pixels = []
        for row in self.rows():
            pixels.extend(reversed(row))
        return replace(self, pixels=tuple(pixels))

    def flipped_vertically(self) -> "Tile":
        pixels = []
        for row in reversed(self.rows()):
            pixels.extend(row)
        return replace(self, pixels=tuple(pixels))

    def flipped(self, flip_h: bool, flip_v: bool) -> "Tile":
        tile = self
        if flip_h:
            tile = tile.flipped_horizontally()
        if flip_v:
            tile = tile.flipped_vertically()
        return tile

    def rotated_clockwise(self) -> "Tile":
        pixels = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                pixels[x * TILE_WIDTH + (TILE_WIDTH - 1 - y)] = self.pixels[y * TILE_WIDTH + x]
        return replace(self, pixels=tuple(pixels))

    def shifted(self, dx: int, dy: int) -> "Tile":
        """Shift the pixels by (dx, dy), wrapping around the tile edges."""
        pixels = [0] * PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                src_x = (x - dx) % TILE_WIDTH
                src_y = (y - dy) % TILE_HEIGHT
                pixels[y * TILE_WIDTH + x] = self.pixels[src_y * TILE_WIDTH + src_x]
        return replace(self, pixels=tuple(pixels))


@dataclass(frozen=True)
class TilemapEntry:
    """One cell of a background tilemap"""

    tile_index: int = 0
    palette_index: int = 0
    flip_h: bool = False
    flip_v: bool = False
    priority: bool = False

    def to_word(self) -> int:
        """Pack into the 16-bit hardware word: vhopppcc cccccccc."""
        word = self.tile_index & TILEMAP_TILE_MASK
        word |= (self.palette_index & 0x07) << TILEMAP_PALETTE_SHIFT
        if self.priority:
            word |= TILEMAP_PRIORITY_BIT
        if self.flip_h:
            word |= TILEMAP_FLIP_H_BIT
        if self.flip_v:
            word |= TILEMAP_FLIP_V_BIT
        return word

    @classmethod
    def from_word(cls, word: int) -> "TilemapEntry":
        return cls(
            tile_index=word & TILEMAP_TILE_MASK,
            palette_index=(word >> TILEMAP_PALETTE_SHIFT) & 0x07,
            flip_h=bool(word & TILEMAP_FLIP_H_BIT),
            flip_v=bool(word & TILEMAP_FLIP_V_BIT),
            priority=bool(word & TILEMAP_PRIORITY_BIT),
        )


@dataclass(frozen=True)
class Tilemap:
    """A width x height grid of tilemap entries (dimensions in tiles)"""

    name: str
    width: int
    height: int
    entries: tuple[TilemapEntry, ...] = field(default=())

    def __post_init__(self):
        count = self.width * self.height
        entries = list(self.entries)[:count]
        entries.extend([TilemapEntry()] * (count - len(entries)))
        object.__setattr__(self, "entries", tuple(entries))

    @classmethod
    def empty(cls, width: int = 32, height: int = 32, name: str = "Tilemap") -> "Tilemap":
        return cls(name, width, height)

    def entry(self, x: int, y: int) -> TilemapEntry:
        if not (0 <= x < self.width and 0 <= y < self.height):
            return TilemapEntry()
        return self.entries[y * self.width + x]

    def with_entry(self, x: int, y: int, entry: TilemapEntry) -> "Tilemap":
        if not (0 <= x < self.width and 0 <= y < self.height):
            return self
        entries = list(self.entries)
        entries[y * self.width + x] = entry
        return replace(self, entries=tuple(entries))

    def resized(self, new_width: int, new_height: int) -> "Tilemap":
        """Resize, keeping the region the old and new sizes share."""
        if new_width <= 0 or new_height <= 0 or (new_width, new_height) == (self.width, self.height):
            return self
        entries = [TilemapEntry()] * (new_width * new_height)
        for y in range(min(self.height, new_height)):
            for x in range(min(self.width, new_width)):
                entries[y * new_width + x] = self.entries[y * self.width + x]
        return Tilemap(self.name, new_width, new_height, tuple(entries))

    def tile_indices(self, include_zero: bool = False) -> set[int]:
        """Distinct tile indices referenced by the map (tile 0 excluded by default)."""
        return {
            entry.tile_index for entry in self.entries
            if include_zero or entry.tile_index > 0
        }

    def to_bytes(self) -> bytes:
        """Little-endian hardware tilemap words."""
        data = bytearray()
        for entry in self.entries:
            word = entry.to_word()
            data.append(word & 0xFF)
            data.append((word >> 8) & 0xFF)
        return bytes(data)
