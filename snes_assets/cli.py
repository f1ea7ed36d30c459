#!/usr/bin/env python3
"""
SNES asset pipeline command line

Usage:
    snes-assets import SHEET --out DIR [--frame-width W --frame-height H]
    snes-assets draw CANVAS --out DIR [--depth 4] [--palette 0]
    snes-assets extract ROM --offset HEX --count N --out PNG
    snes-assets budget SCREEN_JSON
    snes-assets transition FROM_JSON TO_JSON

Screen JSON layout:
    {"name": "Level 1", "bg_mode": 1, "tile_count": 256,
     "layers": [{"name": "BG1", "bg_layer": 0, "width": 32, "height": 32,
                 "visible": true, "tiles": [0, 1, 2, ...]}]}
"""

import argparse
import json
import sys
from pathlib import Path

import numpy as np
from PIL import Image, UnidentifiedImageError

from .constants import (
    DEFAULT_TILES_PER_ROW,
    MAX_IMAGE_FILE_SIZE,
    MAX_ROM_FILE_SIZE,
    MAX_SCREEN_FILE_SIZE,
)
from .logging_config import get_logger, setup_logging
from .models.screen import BackgroundLayer, Screen
from .models.tile import Tilemap, TilemapEntry, TileDepth
from .oam_utils import encode_oam_table
from .security_utils import SecurityError, validate_file_path, validate_output_dir, validate_output_path
from .settings_manager import SettingsManager, get_settings
from .sprite_assembler import decompose_drawing
from .sprite_sheet_importer import SpriteSheetImportConfig, import_sprite_sheet
from .tile_utils import encode_tiles, extract_tiles_at_offset, tiles_to_image
from .utils.validation import ValidationError, Validators
from .vram_budget import budget_for_screen, transition_cost

logger = get_logger("cli")


def screen_from_dict(data: dict) -> tuple[Screen, int]:
    """
    Build a Screen from its JSON description.

    Returns:
        (screen, tile table length); the length defaults to one past the
        highest tile index the screen references
    """
    if not isinstance(data, dict):
        raise ValidationError("Screen description must be a JSON object")

    try:
        layers = [_layer_from_dict(i, layer_data) for i, layer_data in enumerate(data.get("layers", []))]
        screen = Screen(data.get("name", "Screen"), int(data.get("bg_mode", 1)), tuple(layers))
        tile_count = data.get("tile_count")
        if tile_count is None:
            tile_count = max(screen.tile_indices(), default=-1) + 1
        return screen, int(tile_count)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid screen description: {e}") from e


def _layer_from_dict(i: int, layer_data) -> BackgroundLayer:
    if not isinstance(layer_data, dict):
        raise ValidationError(f"Layer {i} must be a JSON object")

    width = int(layer_data.get("width", 32))
    height = int(layer_data.get("height", 32))
    tiles = layer_data.get("tiles", [])
    if tiles and isinstance(tiles[0], list):
        tiles = [index for row in tiles for index in row]
    name = layer_data.get("name", f"BG{i + 1}")
    entries = [TilemapEntry(tile_index=int(index)) for index in tiles]
    return BackgroundLayer(
        name=name,
        bg_layer=int(layer_data.get("bg_layer", i)),
        tilemap=Tilemap(name, width, height, tuple(entries)),
        visible=bool(layer_data.get("visible", True)),
    )


def load_screen(path) -> tuple[Screen, int]:
    path = validate_file_path(path, max_size=MAX_SCREEN_FILE_SIZE)
    try:
        with open(path) as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid screen JSON in {path}: {e}") from e
    return screen_from_dict(data)


def _parse_depth(value: str) -> TileDepth:
    try:
        return TileDepth.from_bits(int(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


def _write_bytes(path: Path, data: bytes):
    with open(validate_output_path(path), "wb") as f:
        f.write(data)


def cmd_import(args, settings: SettingsManager) -> int:
    sheet = validate_file_path(args.sheet, max_size=MAX_IMAGE_FILE_SIZE)
    out_dir = Path(validate_output_dir(args.out))

    config = SpriteSheetImportConfig.from_settings(
        settings,
        frame_width=args.frame_width,
        frame_height=args.frame_height,
        tile_depth=args.depth,
        anim_name=args.name,
    )
    result = import_sprite_sheet(sheet, config)

    _write_bytes(out_dir / "tiles.bin", encode_tiles(result.tiles))
    _write_bytes(out_dir / "palette.bin", result.palette.to_cgram())
    with open(validate_output_path(out_dir / "frames.json"), "w") as f:
        json.dump({
            "animation": result.animation.to_dict(),
            "stats": result.stats.to_dict(),
        }, f, indent=2)
    tiles_to_image(result.tiles, result.palette).save(out_dir / "preview.png")

    stats = result.stats
    print(f"Frames: {stats.total_frames}")
    print(f"Tiles: {stats.raw_tile_count} raw, {stats.unique_tile_count} unique "
          f"({stats.dedup_ratio:.1%} saved)")
    print(f"Colors found: {stats.colors_found}")
    print(f"Peak OAM entries per frame: {stats.oam_per_frame}")
    for warning in stats.warnings:
        print(f"Warning: {warning}")
    print(f"Output written to {out_dir}")
    return 0


def cmd_draw(args, settings: SettingsManager) -> int:
    canvas_path = validate_file_path(args.canvas, max_size=MAX_IMAGE_FILE_SIZE)
    out_dir = Path(validate_output_dir(args.out))

    try:
        with Image.open(canvas_path) as img:
            if img.mode not in ("P", "L"):
                raise ValidationError(f"Canvas must be an indexed image, got mode {img.mode}")
            width, height = img.size
            pixels = np.array(img, dtype=np.uint8).reshape(-1)
    except (OSError, UnidentifiedImageError) as e:
        raise ValidationError(f"Cannot decode canvas {canvas_path}: {e}") from e

    result = decompose_drawing(pixels, width, height, args.depth, args.palette)
    oam_data, oam_warnings = encode_oam_table(result.entries)

    _write_bytes(out_dir / "tiles.bin", encode_tiles(result.table))
    _write_bytes(out_dir / "oam.bin", oam_data)
    with open(validate_output_path(out_dir / "frame.json"), "w") as f:
        json.dump(result.as_frame(settings.get("import.frame_duration")).to_dict(), f, indent=2)

    print(f"Canvas {width}x{height}: {len(result.entries)} OAM entries, "
          f"{len(result.new_tiles)} unique tiles")
    for warning in result.warnings + oam_warnings:
        print(f"Warning: {warning}")
    return 0


def cmd_extract(args, settings: SettingsManager) -> int:
    rom_path = validate_file_path(args.rom, max_size=MAX_ROM_FILE_SIZE)
    output = validate_output_path(args.out)

    valid, offset, message = Validators.validate_hex_value(args.offset)
    if not valid:
        raise ValidationError(f"Offset {args.offset}: {message}")

    with open(rom_path, "rb") as f:
        data = f.read()

    tiles = extract_tiles_at_offset(data, offset, args.depth, args.count)
    if not tiles:
        raise ValidationError(f"No complete tiles at offset 0x{offset:X} (file is {len(data)} bytes)")

    tiles_to_image(tiles, tiles_per_row=args.width).save(output)
    print(f"Extracted {len(tiles)} {args.depth.label} tiles from 0x{offset:X} "
          f"(VRAM ${offset // 2:04X}) to {output}")
    return 0


def cmd_budget(args, settings: SettingsManager) -> int:
    screen, tile_count = load_screen(args.screen)
    budget = budget_for_screen(screen, range(tile_count), settings.budget_policy())

    print(f"Screen: {screen.name} ({screen.mode_info.label})")
    for block in budget.blocks:
        print(f"  ${block.address:04X}  {block.size_bytes:6d}  {block.label}")
    print(f"Used: {budget.used_bytes} / {budget.total_bytes} bytes ({budget.percentage:.1f}%)")
    for warning in budget.warnings:
        print(f"Warning: {warning}")
    return 0


def cmd_transition(args, settings: SettingsManager) -> int:
    source, _ = load_screen(args.source)
    target, _ = load_screen(args.target)
    cost = transition_cost(source, target, settings.budget_policy())

    print(f"{source.name} -> {target.name}")
    print(f"  Tiles to load: {cost.tiles_to_load}")
    print(f"  Tiles to remove: {cost.tiles_to_remove}")
    print(f"  Bytes to transfer: {cost.bytes_to_transfer}")
    print(f"  Frames needed: {cost.frames_needed}")
    print(f"  Feasible: {'yes' if cost.is_feasible else 'no'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="snes-assets", description="SNES asset pipeline")
    parser.add_argument("--log-level", default="WARNING", help="Log level (default: WARNING)")
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument("--settings", help="Settings file (default: per-user settings)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("import", help="Import an RGBA sprite sheet")
    p.add_argument("sheet", help="Sprite sheet image")
    p.add_argument("--out", required=True, help="Output directory")
    p.add_argument("--frame-width", type=int, help="Frame width (detected if omitted)")
    p.add_argument("--frame-height", type=int, help="Frame height (detected if omitted)")
    p.add_argument("--depth", type=_parse_depth, default=TileDepth.BPP4, help="Tile depth: 2, 4 or 8")
    p.add_argument("--name", help="Animation name")
    p.set_defaults(func=cmd_import)

    p = subparsers.add_parser("draw", help="Convert an indexed canvas into tiles and OAM data")
    p.add_argument("canvas", help="Indexed PNG, dimensions a multiple of 8")
    p.add_argument("--out", required=True, help="Output directory")
    p.add_argument("--depth", type=_parse_depth, default=TileDepth.BPP4, help="Tile depth: 2, 4 or 8")
    p.add_argument("--palette", type=int, default=0, help="Sprite palette slot (0-7)")
    p.set_defaults(func=cmd_draw)

    p = subparsers.add_parser("extract", help="Decode planar tiles from a ROM or VRAM image")
    p.add_argument("rom", help="ROM or VRAM dump")
    p.add_argument("--offset", required=True, help="Byte offset in hex")
    p.add_argument("--count", type=int, default=256, help="Number of tiles")
    p.add_argument("--depth", type=_parse_depth, default=TileDepth.BPP4, help="Tile depth: 2, 4 or 8")
    p.add_argument("--width", type=int, default=DEFAULT_TILES_PER_ROW, help="Tiles per row")
    p.add_argument("--out", required=True, help="Output PNG file")
    p.set_defaults(func=cmd_extract)

    p = subparsers.add_parser("budget", help="Show the VRAM budget of a screen")
    p.add_argument("screen", help="Screen JSON file")
    p.set_defaults(func=cmd_budget)

    p = subparsers.add_parser("transition", help="Estimate the DMA cost of a screen change")
    p.add_argument("source", help="Screen JSON being left")
    p.add_argument("target", help="Screen JSON being entered")
    p.set_defaults(func=cmd_transition)

    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    settings = SettingsManager(settings_file=args.settings) if args.settings else get_settings()

    try:
        return args.func(args, settings)
    except (ValidationError, SecurityError) as e:
        logger.error(str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
