#!/usr/bin/env python3
"""
Tests for tile_utils.py
Planar encode/decode at every depth, bulk helpers and preview rendering
"""

import pytest

from snes_assets.constants import BYTES_PER_TILE_4BPP, PIXELS_PER_TILE, TILE_HEIGHT, TILE_WIDTH
from snes_assets.models.tile import Tile, TileDepth
from snes_assets.palette_utils import Palette, SNESColor
from snes_assets.tile_utils import (
    decode_4bpp_tile,
    decode_tile,
    decode_tile_pixels,
    decode_tiles,
    encode_4bpp_tile,
    encode_tile,
    encode_tiles,
    extract_tiles_at_offset,
    tiles_to_image,
)


def _gradient(depth):
    return [i % (depth.max_color_index + 1) for i in range(PIXELS_PER_TILE)]


class TestTileDecoding:
    """Test planar tile decoding"""

    @pytest.mark.unit
    def test_decode_4bpp_tile_basic(self, sample_4bpp_tile):
        """Diagonal on plane 0 decodes to color 1 on the diagonal"""
        tile_pixels = decode_4bpp_tile(sample_4bpp_tile, 0)

        assert len(tile_pixels) == PIXELS_PER_TILE
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                expected = 1 if x == y else 0
                assert tile_pixels[y * TILE_WIDTH + x] == expected

    @pytest.mark.unit
    def test_plane_bytes_map_to_bits(self):
        """Planes 2-3 live 16 bytes after planes 0-1"""
        data = bytearray(32)
        data[0] = 0x80  # plane 0, row 0, leftmost pixel
        data[17] = 0x01  # plane 3, row 0, rightmost pixel

        pixels = decode_tile_pixels(data, TileDepth.BPP4)

        assert pixels[0] == 1
        assert pixels[7] == 8
        assert sum(pixels) == 9

    @pytest.mark.unit
    def test_8bpp_high_planes(self):
        """Planes 6-7 of an 8bpp tile live at offset 48"""
        data = bytearray(64)
        data[48] = 0x80
        data[49] = 0x80

        pixels = decode_tile_pixels(data, TileDepth.BPP8)

        assert pixels[0] == 0xC0

    @pytest.mark.unit
    def test_missing_bytes_read_as_zero(self):
        """Short input decodes without raising"""
        pixels = decode_tile_pixels(b"\xff", TileDepth.BPP4)

        assert pixels[:8] == [1] * 8
        assert pixels[8:] == [0] * 56

    @pytest.mark.unit
    def test_decode_with_offset(self):
        """Second tile in a buffer is decoded from its own bytes"""
        data = bytes(BYTES_PER_TILE_4BPP) + b"\x80" + bytes(31)

        pixels = decode_4bpp_tile(data, BYTES_PER_TILE_4BPP)

        assert pixels[0] == 1

    @pytest.mark.unit
    def test_decode_tile_returns_tile(self, sample_4bpp_tile):
        tile = decode_tile(sample_4bpp_tile, TileDepth.BPP4, category="Sprite")

        assert isinstance(tile, Tile)
        assert tile.category == "Sprite"
        assert tile.pixel(3, 3) == 1


class TestTileEncoding:
    """Test planar tile encoding"""

    @pytest.mark.unit
    @pytest.mark.parametrize("depth", list(TileDepth))
    def test_encode_inverts_decode(self, depth):
        pixels = _gradient(depth)

        data = encode_tile(pixels, depth)

        assert len(data) == depth.bytes_per_tile
        assert decode_tile_pixels(data, depth) == pixels

    @pytest.mark.unit
    def test_known_4bpp_bytes(self):
        """Color 15 in the top-left pixel sets bit 7 of every plane byte"""
        pixels = [0] * PIXELS_PER_TILE
        pixels[0] = 15

        data = encode_4bpp_tile(pixels)

        assert data[0] == 0x80
        assert data[1] == 0x80
        assert data[16] == 0x80
        assert data[17] == 0x80
        assert sum(data) == 4 * 0x80

    @pytest.mark.unit
    def test_encode_masks_values_to_depth(self):
        assert encode_tile([0x1F] * 64, TileDepth.BPP4) == encode_tile([0x0F] * 64, TileDepth.BPP4)

    @pytest.mark.unit
    def test_encode_uses_tile_depth(self):
        tile = Tile(tuple(_gradient(TileDepth.BPP2)), TileDepth.BPP2)

        assert len(encode_tile(tile)) == 16

    @pytest.mark.unit
    def test_encode_wrong_length(self):
        with pytest.raises(ValueError, match="Expected 64 pixels"):
            encode_tile([0] * 63)

    @pytest.mark.unit
    def test_encode_tiles_concatenates(self):
        tiles = [Tile.empty(TileDepth.BPP2), Tile.empty(TileDepth.BPP8)]

        assert len(encode_tiles(tiles)) == 16 + 64


class TestBulkDecoding:
    """Test multi-tile helpers"""

    @pytest.mark.unit
    def test_decode_tiles_stops_at_partial_tile(self):
        data = bytes(48)  # one and a half 4bpp tiles

        tiles = decode_tiles(data, 3, TileDepth.BPP4)

        assert len(tiles) == 1

    @pytest.mark.unit
    def test_decode_tiles_start_offset(self):
        data = bytes(16) + b"\x80" + bytes(15)

        tiles = decode_tiles(data, 1, TileDepth.BPP2, start_offset=16)

        assert tiles[0].pixel(0, 0) == 1

    @pytest.mark.unit
    def test_extract_tiles_at_offset(self):
        tiles = [Tile(tuple(_gradient(TileDepth.BPP4)))] * 2
        data = bytes(10) + encode_tiles(tiles)

        extracted = extract_tiles_at_offset(data, 10, TileDepth.BPP4, 2)

        assert extracted == tiles

    @pytest.mark.unit
    def test_extract_negative_offset(self):
        with pytest.raises(ValueError, match="negative offset"):
            extract_tiles_at_offset(bytes(64), -1, TileDepth.BPP4, 1)


class TestTilesToImage:
    """Test preview rendering"""

    @pytest.mark.unit
    def test_grid_size(self):
        image = tiles_to_image([Tile.empty()] * 17, tiles_per_row=16)

        assert image.mode == "P"
        assert image.size == (128, 16)

    @pytest.mark.unit
    def test_pixels_and_palette(self):
        tile = Tile.empty().with_pixel(0, 0, 5)
        palette = Palette("Test", (SNESColor(0), SNESColor(0)) + (SNESColor.from_rgb(31, 0, 0),) * 14)

        image = tiles_to_image([Tile.empty(), tile], palette, tiles_per_row=2)

        assert image.getpixel((8, 0)) == 5
        assert image.getpalette()[15:18] == [255, 0, 0]
