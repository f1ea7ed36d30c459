#!/usr/bin/env python3
"""
Sprite Assembly - turns deduplicated tiles into OAM entries

Two entry points share the same tile matching and hardware checks:
the sprite sheet import path (frames anchored around a screen point) and
the manual drawing path (a freehand canvas converted back into assets).
"""

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .constants import (
    DEFAULT_FRAME_DURATION,
    DEFAULT_OAM_PRIORITY,
    MAX_SPRITES_PER_SCANLINE,
    OAM_ENTRIES,
    SCREEN_CENTER_X,
    SCREEN_CENTER_Y,
    SPRITE_TILES_PER_ROW,
    TILE_HEIGHT,
    TILE_WIDTH,
)
from .logging_config import get_logger
from .models.sprite import OAMEntry, SpriteFrame, SpriteSize
from .models.tile import Tile, TileDepth
from .tile_decomposer import TileGridEntry, decompose_into_tiles
from .tile_dedup import TileMatch, TileTable
from .utils.validation import ValidationError, Validators

logger = get_logger("sprite_assembler")

DEFAULT_ANCHOR = (SCREEN_CENTER_X, SCREEN_CENTER_Y)


def check_hardware_limits(entry_count: int, frame_index: Optional[int] = None) -> list[str]:
    """
    Advisory OAM checks for one frame.

    The scanline check is a coarse whole-frame count, not a per-line
    simulation.
    """
    prefix = f"Frame {frame_index}: " if frame_index is not None else ""
    warnings = []
    if entry_count > OAM_ENTRIES:
        warnings.append(f"{prefix}{entry_count} OAM entries exceed hardware limit (max {OAM_ENTRIES})")
    if entry_count > MAX_SPRITES_PER_SCANLINE:
        warnings.append(
            f"{prefix}{entry_count} sprites may cause scanline overflow "
            f"({MAX_SPRITES_PER_SCANLINE}/line)"
        )
    for warning in warnings:
        logger.warning(warning)
    return warnings


def assemble_frame(cells: Sequence[TileGridEntry], matches: Sequence[TileMatch],
                   table: TileTable, frame_width: Optional[int] = None,
                   frame_height: Optional[int] = None,
                   anchor: tuple[int, int] = DEFAULT_ANCHOR,
                   palette_index: int = 0,
                   priority: int = DEFAULT_OAM_PRIORITY,
                   duration: int = DEFAULT_FRAME_DURATION,
                   frame_index: Optional[int] = None) -> tuple[SpriteFrame, list[str]]:
    """
    Build one frame's OAM entries from decomposed cells and their matches.

    Args:
        cells: Decomposed cells of the frame, in grid order
        matches: Dedup result for each cell
        table: Table the matches index into
        frame_width: Padded frame width in pixels (defaults to the grid extent)
        frame_height: Padded frame height in pixels (defaults to the grid extent)
        anchor: Screen point the centre of the frame is placed on
        palette_index: OAM palette slot for every entry
        priority: OAM priority for every entry
        duration: Frame duration in VBlanks
        frame_index: Used to label warnings

    Returns:
        (frame, warnings); fully transparent cells produce no entry
    """
    if frame_width is None:
        frame_width = (max((c.grid_x for c in cells), default=-1) + 1) * TILE_WIDTH
    if frame_height is None:
        frame_height = (max((c.grid_y for c in cells), default=-1) + 1) * TILE_HEIGHT
    center_x = frame_width // 2
    center_y = frame_height // 2
    anchor_x, anchor_y = anchor

    entries = []
    for cell, match in zip(cells, matches):
        if table[match.index].is_transparent:
            continue
        entries.append(OAMEntry(
            x=anchor_x + (cell.grid_x * TILE_WIDTH - center_x),
            y=anchor_y + (cell.grid_y * TILE_HEIGHT - center_y),
            tile_index=match.index,
            palette_index=palette_index,
            priority=priority,
            flip_h=match.flip_h,
            flip_v=match.flip_v,
            size=SpriteSize.SMALL_8X8,
        ))

    warnings = check_hardware_limits(len(entries), frame_index)
    return SpriteFrame(tuple(entries), duration), warnings


@dataclass
class DrawingResult:
    """Outcome of converting a drawing canvas back into assets"""

    table: TileTable
    new_tiles: tuple[Tile, ...]
    entries: tuple[OAMEntry, ...]
    warnings: list[str]

    def as_frame(self, duration: int = DEFAULT_FRAME_DURATION) -> SpriteFrame:
        return SpriteFrame(self.entries, duration)


def decompose_drawing(pixels: Sequence[int], width: int, height: int,
                      depth: TileDepth, palette_index: int,
                      table: Optional[TileTable] = None,
                      priority: int = DEFAULT_OAM_PRIORITY) -> DrawingResult:
    """
    Convert a freehand indexed canvas into tiles and OAM entries.

    Args:
        pixels: Flat palette indices, row-major
        width: Canvas width (multiple of 8)
        height: Canvas height (multiple of 8)
        depth: Tile depth for new tiles
        palette_index: OAM palette slot (0-7)
        table: Tile table to match against and extend (a new one if None)
        priority: OAM priority for every entry

    Returns:
        DrawingResult; entries are positioned at their canvas coordinates

    Raises:
        ValidationError: If the canvas size, pixel count or palette slot is invalid
    """
    errors = Validators.validate_tile_dimensions(width, height)
    if errors:
        raise ValidationError("; ".join(errors))
    valid, message = Validators.validate_buffer_size(np.size(pixels), width, height)
    if not valid:
        raise ValidationError(message)
    valid, message = Validators.validate_palette_index(palette_index)
    if not valid:
        raise ValidationError(message)

    table = table if table is not None else TileTable()
    start = len(table)

    entries = []
    for cell in decompose_into_tiles(pixels, width, height, depth):
        if cell.tile.is_transparent:
            continue
        match = table.add(cell.tile)
        entries.append(OAMEntry(
            x=cell.grid_x * TILE_WIDTH,
            y=cell.grid_y * TILE_HEIGHT,
            tile_index=match.index,
            palette_index=palette_index,
            priority=priority,
            flip_h=match.flip_h,
            flip_v=match.flip_v,
            size=SpriteSize.SMALL_8X8,
        ))

    warnings = check_hardware_limits(len(entries))
    new_tiles = table.since(start)
    logger.info(f"Drawing {width}x{height}: {len(entries)} OAM entries, {len(new_tiles)} new tiles")
    return DrawingResult(table, new_tiles, tuple(entries), warnings)


def frame_bounds(entries: Sequence[OAMEntry]) -> Optional[tuple[int, int, int, int]]:
    """
    Bounding box of a set of entries as (min_x, min_y, width, height).

    Width and height are rounded up to whole tiles, at least one tile.
    """
    if not entries:
        return None
    min_x = min(e.x for e in entries)
    min_y = min(e.y for e in entries)
    max_x = max(e.x + e.size.pixel_size for e in entries)
    max_y = max(e.y + e.size.pixel_size for e in entries)
    width = max(((max_x - min_x + TILE_WIDTH - 1) // TILE_WIDTH) * TILE_WIDTH, TILE_WIDTH)
    height = max(((max_y - min_y + TILE_HEIGHT - 1) // TILE_HEIGHT) * TILE_HEIGHT, TILE_HEIGHT)
    return min_x, min_y, width, height


def render_frame(frame: SpriteFrame, tiles: Sequence[Tile], width: int, height: int,
                 offset_x: int = 0, offset_y: int = 0) -> np.ndarray:
    """
    Draw a frame's entries into an indexed canvas (height x width).

    Entries are painted in list order, index 0 is transparent, and larger
    sprite sizes pull their extra tiles from the 16-tile-wide sprite table.
    """
    canvas = np.zeros((height, width), dtype=np.uint8)

    for entry in frame.entries:
        if entry.tile_index >= len(tiles):
            continue
        side = entry.size.tiles_per_side
        for tile_row in range(side):
            for tile_col in range(side):
                tile_idx = entry.tile_index + tile_row * SPRITE_TILES_PER_ROW + tile_col
                if tile_idx >= len(tiles):
                    continue
                tile = tiles[tile_idx].flipped(entry.flip_h, entry.flip_v)
                for py in range(TILE_HEIGHT):
                    for px in range(TILE_WIDTH):
                        value = tile.pixels[py * TILE_WIDTH + px]
                        if value == 0:
                            continue
                        cx = entry.x - offset_x + tile_col * TILE_WIDTH + px
                        cy = entry.y - offset_y + tile_row * TILE_HEIGHT + py
                        if 0 <= cx < width and 0 <= cy < height:
                            canvas[cy, cx] = value

    return canvas
