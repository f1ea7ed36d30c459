#!/usr/bin/env python3
"""
Tests for the sprite sheet import path
"""

import numpy as np
import pytest

from snes_assets.models.tile import TileDepth
from snes_assets.palette_utils import BLACK, SNESColor
from snes_assets.sprite_sheet_importer import (
    SpriteSheetImportConfig,
    cut_frames,
    detect_frame_size,
    import_sprite_sheet,
    load_rgba_image,
    process_image,
    resolve_frame_size,
)
from snes_assets.tile_dedup import TileMatch, TileTable
from snes_assets.utils.validation import ValidationError


class TestFrameDetection:

    @pytest.mark.unit
    @pytest.mark.parametrize("size,expected", [
        ((128, 32), (32, 32, 4)),
        ((32, 96), (32, 32, 3)),
        ((16, 16), (16, 16, 1)),
        ((128, 8), (8, 8, 16)),
        ((30, 20), None),
        ((0, 8), None),
    ])
    def test_detect_frame_size(self, size, expected):
        assert detect_frame_size(*size) == expected

    @pytest.mark.unit
    def test_configured_size_wins(self):
        config = SpriteSheetImportConfig(frame_width=32, frame_height=8)

        assert resolve_frame_size(128, 8, config) == (32, 8)

    @pytest.mark.unit
    def test_undetectable_sheet(self):
        with pytest.raises(ValidationError, match="Cannot detect frame size"):
            resolve_frame_size(30, 20, SpriteSheetImportConfig())

    @pytest.mark.unit
    def test_frame_size_must_tile_sheet(self):
        config = SpriteSheetImportConfig(frame_width=24, frame_height=8)

        with pytest.raises(ValidationError, match="not a multiple of frame width"):
            resolve_frame_size(128, 8, config)

    @pytest.mark.unit
    def test_cut_frames_order(self):
        sheet = np.zeros((16, 16, 4), dtype=np.uint8)
        sheet[:, :, 0] = np.arange(4).repeat(4)[None, :].repeat(16, axis=0)
        sheet[8:, :, 1] = 1

        frames = cut_frames(sheet, 8, 8)

        assert len(frames) == 4
        assert [int(f[0, 0, 0]) for f in frames] == [0, 2, 0, 2]
        assert [int(f[0, 0, 1]) for f in frames] == [0, 0, 1, 1]


class TestProcessImage:

    @pytest.mark.integration
    def test_single_solid_frame(self, solid_frame):
        result = process_image(solid_frame())

        assert len(result.tiles) == 1
        assert len(result.frames) == 1
        entries = result.frames[0].entries
        assert len(entries) == 1
        assert (entries[0].x, entries[0].y) == (124, 108)
        assert result.stats.warnings == []
        assert result.palette[1] == SNESColor.from_rgb(31, 0, 0)

    @pytest.mark.integration
    def test_flipped_quadrant_dedup(self, solid_frame):
        sheet = np.zeros((16, 16, 4), dtype=np.uint8)
        corner = solid_frame(rgb=(0, 255, 0))
        sheet[0, 0] = corner[0, 0]  # one opaque pixel in the top-left quadrant
        sheet[15, 15] = corner[0, 0]  # its flipH+flipV image in the bottom-right

        result = process_image(sheet)

        assert len(result.tiles) == 1
        entries = result.frames[0].entries
        assert len(entries) == 2
        assert (entries[0].flip_h, entries[0].flip_v) == (False, False)
        assert (entries[1].flip_h, entries[1].flip_v) == (True, True)
        assert entries[1].tile_index == entries[0].tile_index

    @pytest.mark.integration
    def test_configured_frame_count(self, solid_frame):
        config = SpriteSheetImportConfig(frame_width=32, frame_height=8)

        result = process_image(solid_frame(128, 8), config)

        assert result.stats.total_frames == 4
        assert len(result.frames) == 4
        assert result.stats.raw_tile_count == 16
        assert result.stats.unique_tile_count == 1
        assert result.stats.dedup_ratio == pytest.approx(1 - 1 / 16)

    @pytest.mark.integration
    def test_oam_limit_is_advisory(self, solid_frame):
        config = SpriteSheetImportConfig(frame_width=129 * 8, frame_height=8)

        result = process_image(solid_frame(129 * 8, 8), config)

        assert len(result.frames[0].entries) == 129
        assert result.stats.oam_per_frame == 129
        assert sum(1 for w in result.stats.warnings if "128" in w) == 1

    @pytest.mark.integration
    def test_frames_padded_to_tiles(self, solid_frame):
        result = process_image(solid_frame(12, 12))

        assert result.stats.raw_tile_count == 4
        assert len(result.frames[0].entries) == 4
        assert (result.frames[0].entries[0].x, result.frames[0].entries[0].y) == (120, 104)

    @pytest.mark.integration
    def test_transparent_cells_not_in_table(self, solid_frame):
        sheet = np.zeros((8, 16, 4), dtype=np.uint8)
        sheet[:, :8] = solid_frame()

        result = process_image(sheet, SpriteSheetImportConfig(frame_width=16, frame_height=8))

        assert result.stats.raw_tile_count == 2
        assert result.stats.unique_tile_count == 1
        assert len(result.frames[0].entries) == 1

    @pytest.mark.integration
    def test_color_limit_follows_depth(self, palette_frame):
        result = process_image(palette_frame, SpriteSheetImportConfig(tile_depth=TileDepth.BPP2))

        assert sum(1 for c in result.palette.colors[1:] if c != BLACK) == 3
        assert all(tile.depth is TileDepth.BPP2 for tile in result.tiles)
        assert result.stats.colors_found == 64

    @pytest.mark.integration
    def test_metadata_from_config(self, solid_frame):
        config = SpriteSheetImportConfig(anim_name="Walk", frame_duration=6, tile_category="Hero",
                                         anchor=(40, 40))

        result = process_image(solid_frame(16, 16), config)

        assert result.palette.name == "Walk"
        assert result.animation.name == "Walk"
        assert result.animation.loop
        assert result.animation.frames == tuple(result.frames)
        assert result.frames[0].duration == 6
        assert result.tiles[0].category == "Hero"
        assert (result.frames[0].entries[0].x, result.frames[0].entries[0].y) == (32, 32)
        assert all(e.priority == 2 and e.palette_index == 0 for e in result.frames[0].entries)

    @pytest.mark.integration
    def test_shared_table_between_imports(self, solid_frame):
        table = TileTable()

        first = process_image(solid_frame(), table=table)
        second = process_image(solid_frame(), table=table)

        assert len(first.tiles) == 1
        assert second.tiles == ()
        assert second.stats.unique_tile_count == 0
        assert second.stats.dedup_ratio == 1.0
        assert second.frames[0].entries[0].tile_index == 0
        assert len(table) == 1
        assert table.find(first.tiles[0]) == TileMatch(0)

    @pytest.mark.unit
    def test_rejects_non_rgba(self):
        with pytest.raises(ValidationError, match="RGBA"):
            process_image(np.zeros((8, 8, 3), dtype=np.uint8))

    @pytest.mark.unit
    def test_rejects_empty(self):
        with pytest.raises(ValidationError):
            process_image(np.zeros((0, 0, 4), dtype=np.uint8))


class TestImportFromFile:

    @pytest.mark.integration
    def test_import_png(self, write_png, solid_frame):
        path = write_png(solid_frame(32, 8))

        result = import_sprite_sheet(path)

        assert result.stats.total_frames == 4
        assert len(result.tiles) == 1

    @pytest.mark.integration
    def test_load_rgba_from_palette_png(self, temp_dir):
        from PIL import Image

        img = Image.new("P", (8, 8))
        img.putpalette([0, 0, 0, 255, 0, 0] + [0] * 762)
        img.putpixel((0, 0), 1)
        path = temp_dir / "indexed.png"
        img.save(path)

        rgba = load_rgba_image(path)

        assert rgba.shape == (8, 8, 4)
        assert tuple(rgba[0, 0]) == (255, 0, 0, 255)

    @pytest.mark.unit
    def test_missing_file(self, temp_dir):
        with pytest.raises(ValidationError, match="not found"):
            load_rgba_image(temp_dir / "missing.png")

    @pytest.mark.unit
    def test_undecodable_file(self, temp_dir):
        path = temp_dir / "garbage.png"
        path.write_bytes(b"not an image")

        with pytest.raises(ValidationError, match="Cannot decode"):
            load_rgba_image(path)


class TestConfigFromSettings:

    @pytest.mark.unit
    def test_settings_defaults_and_overrides(self, settings_manager):
        settings_manager.set("import.frame_duration", 9)
        settings_manager.set("import.anchor_x", 64)

        config = SpriteSheetImportConfig.from_settings(settings_manager, frame_width=16,
                                                       frame_height=None, anim_name="Run")

        assert config.frame_duration == 9
        assert config.anchor == (64, 112)
        assert config.frame_width == 16
        assert config.frame_height is None
        assert config.anim_name == "Run"
        assert config.max_colors == 15
