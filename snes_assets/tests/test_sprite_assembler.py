#!/usr/bin/env python3
"""
Tests for sprite_assembler.py
Frame assembly, hardware checks, the drawing path and render-back
"""

import numpy as np
import pytest

from snes_assets.models.sprite import OAMEntry, SpriteFrame, SpriteSize
from snes_assets.models.tile import Tile, TileDepth
from snes_assets.sprite_assembler import (
    assemble_frame,
    check_hardware_limits,
    decompose_drawing,
    frame_bounds,
    render_frame,
)
from snes_assets.tile_decomposer import TileGridEntry
from snes_assets.tile_dedup import TileMatch, TileTable
from snes_assets.utils.validation import ValidationError


def _cells_and_matches(tile, grid):
    table = TileTable()
    cells = [TileGridEntry(tile, gx, gy) for gx, gy in grid]
    matches = [table.add(cell.tile) for cell in cells]
    return cells, matches, table


class TestHardwareLimits:

    @pytest.mark.unit
    def test_within_limits(self):
        assert check_hardware_limits(32) == []

    @pytest.mark.unit
    def test_scanline_heuristic(self):
        warnings = check_hardware_limits(33, frame_index=2)

        assert warnings == ["Frame 2: 33 sprites may cause scanline overflow (32/line)"]

    @pytest.mark.unit
    def test_oam_limit(self):
        warnings = check_hardware_limits(129)

        assert len(warnings) == 2
        assert sum(1 for w in warnings if "max 128" in w) == 1


class TestAssembleFrame:

    @pytest.mark.unit
    def test_single_tile_anchored_at_screen_center(self):
        cells, matches, table = _cells_and_matches(Tile((1,) * 64), [(0, 0)])

        frame, warnings = assemble_frame(cells, matches, table)

        assert warnings == []
        assert len(frame.entries) == 1
        entry = frame.entries[0]
        assert (entry.x, entry.y) == (124, 108)
        assert entry.size is SpriteSize.SMALL_8X8
        assert entry.priority == 2
        assert entry.palette_index == 0

    @pytest.mark.unit
    def test_positions_relative_to_frame_center(self):
        cells, matches, table = _cells_and_matches(Tile((1,) * 64), [(0, 0), (1, 1)])

        frame, _ = assemble_frame(cells, matches, table, frame_width=16, frame_height=16,
                                  anchor=(100, 50))

        assert [(e.x, e.y) for e in frame.entries] == [(92, 42), (100, 50)]

    @pytest.mark.unit
    def test_transparent_cells_dropped(self):
        table = TileTable()
        cells = [TileGridEntry(Tile.empty(), 0, 0), TileGridEntry(Tile((2,) * 64), 1, 0)]
        matches = [table.add(cell.tile) for cell in cells]

        frame, warnings = assemble_frame(cells, matches, table)

        assert len(frame.entries) == 1
        assert frame.entries[0].tile_index == 1
        assert warnings == []

    @pytest.mark.unit
    def test_flip_flags_carried(self, asymmetric_tile):
        table = TileTable([asymmetric_tile])
        cells = [TileGridEntry(asymmetric_tile.flipped(True, False), 0, 0)]
        matches = [table.add(cells[0].tile)]

        frame, _ = assemble_frame(cells, matches, table, duration=7)

        assert frame.entries[0].flip_h
        assert not frame.entries[0].flip_v
        assert frame.duration == 7

    @pytest.mark.unit
    def test_over_oam_limit_keeps_every_entry(self):
        cells, matches, table = _cells_and_matches(Tile((1,) * 64), [(i, 0) for i in range(129)])

        frame, warnings = assemble_frame(cells, matches, table, frame_index=0)

        assert len(frame.entries) == 129
        assert len(table) == 1
        assert sum(1 for w in warnings if "128" in w) == 1


class TestDecomposeDrawing:

    @pytest.mark.unit
    def test_entries_at_canvas_coordinates(self):
        canvas = np.zeros((8, 24), dtype=np.uint8)
        canvas[:, 0:8] = 1
        canvas[:, 16:24] = 1

        result = decompose_drawing(canvas.reshape(-1), 24, 8, TileDepth.BPP4, palette_index=3)

        assert [(e.x, e.y) for e in result.entries] == [(0, 0), (16, 0)]
        assert all(e.palette_index == 3 for e in result.entries)
        assert all(e.tile_index == 0 for e in result.entries)
        assert len(result.new_tiles) == 1
        assert result.warnings == []

    @pytest.mark.unit
    def test_shared_table(self):
        canvas = [4] * 64
        table = TileTable()

        first = decompose_drawing(canvas, 8, 8, TileDepth.BPP4, 0, table)
        second = decompose_drawing(canvas, 8, 8, TileDepth.BPP4, 0, table)

        assert len(first.new_tiles) == 1
        assert second.new_tiles == ()
        assert second.table is table
        assert len(table) == 1

    @pytest.mark.unit
    def test_as_frame(self):
        result = decompose_drawing([1] * 64, 8, 8, TileDepth.BPP2, 0)

        frame = result.as_frame(duration=8)

        assert frame.duration == 8
        assert frame.entries == result.entries

    @pytest.mark.unit
    def test_invalid_dimensions(self):
        with pytest.raises(ValidationError, match="multiple of 8"):
            decompose_drawing([0] * 120, 12, 10, TileDepth.BPP4, 0)

    @pytest.mark.unit
    def test_buffer_must_match_dimensions(self):
        with pytest.raises(ValidationError, match="expected 128"):
            decompose_drawing([1] * 64, 16, 8, TileDepth.BPP4, 0)

    @pytest.mark.unit
    def test_invalid_palette(self):
        with pytest.raises(ValidationError, match="Palette index"):
            decompose_drawing([0] * 64, 8, 8, TileDepth.BPP4, 8)


class TestRenderBack:

    @pytest.mark.unit
    def test_frame_bounds(self):
        entries = [OAMEntry(x=10, y=20), OAMEntry(x=30, y=20)]

        assert frame_bounds(entries) == (10, 20, 32, 8)
        assert frame_bounds([]) is None

    @pytest.mark.unit
    def test_render_applies_flips(self, asymmetric_tile):
        frame = SpriteFrame([OAMEntry(x=2, y=1, tile_index=0, flip_h=True)])

        canvas = render_frame(frame, [asymmetric_tile], 16, 16)

        assert canvas.shape == (16, 16)
        assert canvas[1 + 2, 2 + 6] == 3
        assert np.count_nonzero(canvas) == 1

    @pytest.mark.unit
    def test_index_zero_is_transparent(self):
        solid = Tile((1,) * 64)
        frame = SpriteFrame([OAMEntry(tile_index=0), OAMEntry(tile_index=1)])

        canvas = render_frame(frame, [solid, Tile.empty()], 8, 8)

        assert (canvas == 1).all()

    @pytest.mark.unit
    def test_large_sprite_uses_sprite_table_layout(self):
        tiles = [Tile((i % 15 + 1,) * 64) for i in range(18)]
        frame = SpriteFrame([OAMEntry(tile_index=0, size=SpriteSize.LARGE_16X16)])

        canvas = render_frame(frame, tiles, 16, 16)

        assert canvas[0, 0] == 1
        assert canvas[0, 8] == 2
        assert canvas[8, 0] == tiles[16].pixels[0]
        assert canvas[8, 8] == tiles[17].pixels[0]

    @pytest.mark.unit
    def test_offset_and_clipping(self):
        frame = SpriteFrame([OAMEntry(x=100, y=100, tile_index=0)])

        canvas = render_frame(frame, [Tile((1,) * 64)], 8, 8, offset_x=96, offset_y=96)

        assert canvas[4:, 4:].all()
        assert not canvas[:4, :].any()
