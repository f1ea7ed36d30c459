#!/usr/bin/env python3
"""
Sprite sheet import
Converts an RGBA sprite sheet into a palette, deduplicated tiles and
animation frames ready for the sprite table
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError

from .constants import (
    ALPHA_THRESHOLD,
    DEFAULT_ANIMATION_NAME,
    DEFAULT_FRAME_DURATION,
    DEFAULT_TILE_CATEGORY,
    MAX_QUANTIZED_COLORS,
    SCREEN_CENTER_X,
    SCREEN_CENTER_Y,
)
from .logging_config import get_logger
from .models.sprite import SpriteAnimation, SpriteFrame
from .models.tile import Tile, TileDepth
from .palette_utils import Palette
from .quantizer import quantize_colors
from .sprite_assembler import assemble_frame
from .tile_decomposer import decompose_into_tiles, padded_size
from .tile_dedup import TileTable
from .utils.validation import ValidationError, Validators

logger = get_logger("sprite_sheet_importer")


@dataclass
class SpriteSheetImportConfig:
    """How a sheet is cut and what the imported assets are called"""

    frame_width: Optional[int] = None  # None: detect from the sheet shape
    frame_height: Optional[int] = None
    tile_depth: TileDepth = TileDepth.BPP4
    anim_name: str = DEFAULT_ANIMATION_NAME
    frame_duration: int = DEFAULT_FRAME_DURATION  # VBlanks
    tile_category: str = DEFAULT_TILE_CATEGORY
    anchor: tuple[int, int] = (SCREEN_CENTER_X, SCREEN_CENTER_Y)
    alpha_threshold: int = ALPHA_THRESHOLD

    @property
    def max_colors(self) -> int:
        # Index 0 is reserved for transparency
        return min(self.tile_depth.max_color_index, MAX_QUANTIZED_COLORS)

    @classmethod
    def from_settings(cls, settings, **overrides) -> "SpriteSheetImportConfig":
        """Build a config from a SettingsManager's import defaults."""
        values = settings.import_defaults()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class ImportStats:
    total_frames: int
    raw_tile_count: int
    unique_tile_count: int
    dedup_ratio: float
    colors_found: int
    oam_per_frame: int  # peak across frames
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "totalFrames": self.total_frames,
            "rawTileCount": self.raw_tile_count,
            "uniqueTileCount": self.unique_tile_count,
            "dedupRatio": self.dedup_ratio,
            "colorsFound": self.colors_found,
            "oamPerFrame": self.oam_per_frame,
            "warnings": list(self.warnings),
        }


@dataclass
class SpriteSheetImportResult:
    palette: Palette
    tiles: tuple[Tile, ...]  # tiles this import appended to the table
    frames: list[SpriteFrame]
    animation: SpriteAnimation
    stats: ImportStats
    table: TileTable


def detect_frame_size(image_width: int, image_height: int) -> Optional[tuple[int, int, int]]:
    """
    Guess the frame layout of a sheet from its shape.

    A wide sheet whose width is a multiple of its height is a horizontal
    strip of square frames; a tall one likewise a vertical strip; a square
    sheet is a single frame.

    Returns:
        (frame_width, frame_height, frame_count), or None if the shape
        matches none of these layouts
    """
    if image_width <= 0 or image_height <= 0:
        return None
    if image_width > image_height and image_width % image_height == 0:
        return image_height, image_height, image_width // image_height
    if image_height > image_width and image_height % image_width == 0:
        return image_width, image_width, image_height // image_width
    if image_width == image_height:
        return image_width, image_height, 1
    return None


def resolve_frame_size(image_width: int, image_height: int,
                       config: SpriteSheetImportConfig) -> tuple[int, int]:
    """
    Frame size to cut the sheet with: the configured one, or a detected one.

    Raises:
        ValidationError: If no frame size is given and none can be detected,
            or if the frame size does not tile the sheet
    """
    if config.frame_width and config.frame_height:
        frame_width, frame_height = config.frame_width, config.frame_height
    else:
        detected = detect_frame_size(image_width, image_height)
        if detected is None:
            raise ValidationError(
                f"Cannot detect frame size for a {image_width}x{image_height} sheet; "
                "specify the frame width and height"
            )
        frame_width, frame_height, count = detected
        logger.debug(f"Detected {count} frame(s) of {frame_width}x{frame_height}")

    errors = Validators.validate_frame_size(frame_width, frame_height, image_width, image_height)
    if errors:
        raise ValidationError("; ".join(errors))
    return frame_width, frame_height


def load_rgba_image(path: Union[str, Path]) -> np.ndarray:
    """
    Decode an image file into an (H, W, 4) uint8 RGBA array.

    Raises:
        ValidationError: If the file is missing or cannot be decoded
    """
    try:
        with Image.open(path) as img:
            rgba = np.array(img.convert("RGBA"), dtype=np.uint8)
    except FileNotFoundError as e:
        raise ValidationError(f"Image file not found: {path}") from e
    except (OSError, UnidentifiedImageError) as e:
        raise ValidationError(f"Cannot decode image {path}: {e}") from e

    if rgba.size == 0:
        raise ValidationError(f"Image {path} has no pixel data")
    return rgba


def cut_frames(rgba: np.ndarray, frame_width: int, frame_height: int) -> list[np.ndarray]:
    """Cut a sheet into frames, row by row, left to right."""
    image_height, image_width = rgba.shape[:2]
    cols = image_width // frame_width
    rows = image_height // frame_height

    frames = []
    for row in range(rows):
        for col in range(cols):
            y = row * frame_height
            x = col * frame_width
            frames.append(rgba[y:y + frame_height, x:x + frame_width].copy())
    return frames


def process_image(rgba: np.ndarray, config: Optional[SpriteSheetImportConfig] = None,
                  table: Optional[TileTable] = None) -> SpriteSheetImportResult:
    """
    Run the import pipeline over decoded RGBA pixels.

    Args:
        rgba: (H, W, 4) uint8 pixel grid
        config: Import options (defaults if None)
        table: Tile table to deduplicate against and extend; a fresh one if None

    Returns:
        SpriteSheetImportResult; hardware-limit problems are reported in
        stats.warnings and never abort the import

    Raises:
        ValidationError: If the pixel data is empty or cannot be split into frames
    """
    config = config or SpriteSheetImportConfig()
    rgba = np.asarray(rgba, dtype=np.uint8)
    if rgba.ndim != 3 or rgba.shape[2] != 4 or rgba.size == 0:
        raise ValidationError(f"Expected a non-empty RGBA pixel grid, got shape {rgba.shape}")

    image_height, image_width = rgba.shape[:2]
    frame_width, frame_height = resolve_frame_size(image_width, image_height, config)
    raw_frames = cut_frames(rgba, frame_width, frame_height)

    quantized = quantize_colors(raw_frames, config.max_colors, config.alpha_threshold,
                                name=config.anim_name)

    padded_width = padded_size(frame_width)
    padded_height = padded_size(frame_height)
    table = table if table is not None else TileTable()
    start = len(table)

    frames = []
    warnings = []
    raw_tile_count = 0
    max_oam = 0
    for frame_index, indexed in enumerate(quantized.indexed_frames):
        cells = decompose_into_tiles(
            indexed, frame_width, frame_height, config.tile_depth, config.tile_category,
            padded_width, padded_height,
        )
        raw_tile_count += len(cells)
        # Empty cells never reach the table or the OAM list
        opaque = [cell for cell in cells if not cell.tile.is_transparent]
        matches = [table.add(cell.tile) for cell in opaque]

        frame, frame_warnings = assemble_frame(
            opaque, matches, table,
            frame_width=padded_width,
            frame_height=padded_height,
            anchor=config.anchor,
            duration=config.frame_duration,
            frame_index=frame_index,
        )
        frames.append(frame)
        warnings.extend(frame_warnings)
        max_oam = max(max_oam, len(frame.entries))

    new_tiles = table.since(start)
    unique_count = len(new_tiles)
    dedup_ratio = 1.0 - unique_count / raw_tile_count if raw_tile_count > 0 else 0.0

    stats = ImportStats(
        total_frames=len(raw_frames),
        raw_tile_count=raw_tile_count,
        unique_tile_count=unique_count,
        dedup_ratio=dedup_ratio,
        colors_found=quantized.colors_found,
        oam_per_frame=max_oam,
        warnings=warnings,
    )
    logger.info(
        f"Imported '{config.anim_name}': {stats.total_frames} frame(s), "
        f"{raw_tile_count} tiles -> {unique_count} unique ({dedup_ratio:.0%} saved), "
        f"{stats.colors_found} colors"
    )

    return SpriteSheetImportResult(
        palette=quantized.palette,
        tiles=new_tiles,
        frames=frames,
        animation=SpriteAnimation(config.anim_name, tuple(frames), loop=True),
        stats=stats,
        table=table,
    )


def import_sprite_sheet(path: Union[str, Path],
                        config: Optional[SpriteSheetImportConfig] = None,
                        table: Optional[TileTable] = None) -> SpriteSheetImportResult:
    """Load an image file and run it through process_image."""
    logger.debug(f"Importing sprite sheet {path}")
    return process_image(load_rgba_image(path), config, table)
