#!/usr/bin/env python3
"""
Slice indexed pixel buffers into 8x8 tiles
"""

from typing import NamedTuple, Optional, Sequence

import numpy as np

from .constants import TILE_HEIGHT, TILE_WIDTH
from .models.tile import Tile, TileDepth


class TileGridEntry(NamedTuple):
    """A decomposed tile and the grid cell it came from"""

    tile: Tile
    grid_x: int
    grid_y: int


def padded_size(size: int) -> int:
    """Round a pixel dimension up to a whole number of tiles."""
    return ((size + TILE_WIDTH - 1) // TILE_WIDTH) * TILE_WIDTH


def decompose_into_tiles(indexed: Sequence[int], width: int, height: int,
                         depth: TileDepth = TileDepth.BPP4, category: str = "",
                         padded_width: Optional[int] = None,
                         padded_height: Optional[int] = None) -> list[TileGridEntry]:
    """
    Walk the 8x8 cells of an indexed buffer in row-major order.

    Args:
        indexed: Palette indices, row-major, width * height values
        width: Buffer width in pixels
        height: Buffer height in pixels
        depth: Depth assigned to every produced tile
        category: Category label for the tiles
        padded_width: Grid width in pixels (defaults to width rounded up to 8)
        padded_height: Grid height in pixels (defaults to height rounded up to 8)

    Returns:
        One TileGridEntry per cell; reads outside the buffer give index 0
    """
    pixels = np.asarray(indexed).reshape(-1)
    padded_width = padded_width if padded_width is not None else padded_size(width)
    padded_height = padded_height if padded_height is not None else padded_size(height)
    tiles_x = padded_width // TILE_WIDTH
    tiles_y = padded_height // TILE_HEIGHT

    entries = []
    for ty in range(tiles_y):
        for tx in range(tiles_x):
            tile_pixels = [0] * (TILE_WIDTH * TILE_HEIGHT)
            for py in range(TILE_HEIGHT):
                src_y = ty * TILE_HEIGHT + py
                if src_y >= height:
                    break
                for px in range(TILE_WIDTH):
                    src_x = tx * TILE_WIDTH + px
                    src = src_y * width + src_x
                    if src_x < width and src < pixels.size:
                        tile_pixels[py * TILE_WIDTH + px] = int(pixels[src])
            entries.append(TileGridEntry(Tile(tuple(tile_pixels), depth, category), tx, ty))

    return entries
