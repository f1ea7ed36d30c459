#!/usr/bin/env python3
"""
SNES planar tile encoding/decoding

Each 8x8 tile is stored as interleaved bitplane pairs. For every row, two
bytes hold planes 0 and 1 (bit 7 is the leftmost pixel); 4bpp tiles repeat
that layout 16 bytes later for planes 2-3, and 8bpp tiles add planes 4-5
and 6-7 at offsets 32 and 48.
"""

from typing import Iterable, Optional, Sequence, Union

from PIL import Image

from .constants import (
    DEFAULT_TILES_PER_ROW,
    PIXELS_PER_TILE,
    TILE_BITPLANE_OFFSET,
    TILE_HEIGHT,
    TILE_WIDTH,
)
from .models.tile import Tile, TileDepth
from .palette_utils import Palette, get_grayscale_palette

BYTES_PER_PLANE_PAIR = TILE_BITPLANE_OFFSET


def _plane_pairs(depth: TileDepth) -> int:
    return depth.value // 2


def _read(data: Sequence[int], index: int) -> int:
    # Missing source bytes read as zero
    return data[index] if 0 <= index < len(data) else 0


def decode_tile_pixels(data: Sequence[int], depth: TileDepth, offset: int = 0) -> list[int]:
    """
    Decode one planar tile to 64 palette indices.

    Args:
        data: Raw tile bytes
        depth: Bits per pixel of the tile
        offset: Starting offset in the data

    Returns:
        List of 64 pixel values, row-major
    """
    pixels = []
    for y in range(TILE_HEIGHT):
        planes = []
        for pair in range(_plane_pairs(depth)):
            base = offset + pair * BYTES_PER_PLANE_PAIR + y * 2
            planes.append(_read(data, base))
            planes.append(_read(data, base + 1))

        for x in range(TILE_WIDTH):
            bit = 7 - x
            value = 0
            for plane, plane_byte in enumerate(planes):
                value |= ((plane_byte >> bit) & 1) << plane
            pixels.append(value)

    return pixels


def decode_tile(data: Sequence[int], depth: TileDepth, offset: int = 0,
                category: str = "") -> Tile:
    """Decode one planar tile into a Tile."""
    return Tile(tuple(decode_tile_pixels(data, depth, offset)), depth, category)


def encode_tile(tile: Union[Tile, Sequence[int]], depth: Optional[TileDepth] = None) -> bytes:
    """
    Encode a tile to the SNES planar format.

    Args:
        tile: Tile, or a list of 64 palette indices
        depth: Bits per pixel; defaults to the tile's own depth (4bpp for lists)

    Returns:
        16, 32 or 64 bytes of planar tile data

    Raises:
        ValueError: If a pixel list doesn't contain exactly 64 values
    """
    if isinstance(tile, Tile):
        pixels = tile.pixels
        depth = depth or tile.depth
    else:
        pixels = list(tile)
        if len(pixels) != PIXELS_PER_TILE:
            raise ValueError(f"Expected {PIXELS_PER_TILE} pixels, got {len(pixels)}")
        depth = depth or TileDepth.BPP4

    mask = depth.max_color_index
    output = bytearray(depth.bytes_per_tile)

    for y in range(TILE_HEIGHT):
        planes = [0] * depth.value
        for x in range(TILE_WIDTH):
            pixel = pixels[y * TILE_WIDTH + x] & mask
            for plane in range(depth.value):
                planes[plane] |= ((pixel >> plane) & 1) << (7 - x)

        for pair in range(_plane_pairs(depth)):
            base = pair * BYTES_PER_PLANE_PAIR + y * 2
            output[base] = planes[pair * 2]
            output[base + 1] = planes[pair * 2 + 1]

    return bytes(output)


def decode_4bpp_tile(data: bytes, offset: int) -> list[int]:
    """Decode a single 8x8 4bpp SNES tile."""
    return decode_tile_pixels(data, TileDepth.BPP4, offset)


def encode_4bpp_tile(tile_pixels: list[int]) -> bytes:
    """Encode an 8x8 tile to SNES 4bpp format."""
    return encode_tile(tile_pixels, TileDepth.BPP4)


def decode_tiles(data: bytes, num_tiles: int, depth: TileDepth = TileDepth.BPP4,
                 start_offset: int = 0) -> list[Tile]:
    """
    Decode consecutive tiles, stopping at the first one that doesn't fit.

    Args:
        data: Raw tile data bytes
        num_tiles: Number of tiles to decode
        depth: Bits per pixel
        start_offset: Starting offset in the data

    Returns:
        List of decoded tiles
    """
    tiles = []
    bytes_per_tile = depth.bytes_per_tile
    for i in range(num_tiles):
        offset = start_offset + i * bytes_per_tile
        if offset + bytes_per_tile > len(data):
            break
        tiles.append(decode_tile(data, depth, offset))

    return tiles


def encode_tiles(tiles: Iterable[Tile]) -> bytes:
    """Encode multiple tiles, each at its own depth."""
    output = bytearray()
    for tile in tiles:
        output.extend(encode_tile(tile))

    return bytes(output)


def extract_tiles_at_offset(data: bytes, offset: int, depth: TileDepth, count: int) -> list[Tile]:
    """Pull tiles out of a ROM or VRAM image at a byte offset."""
    if offset < 0:
        raise ValueError(f"Invalid negative offset: {offset}")
    return decode_tiles(data, count, depth, offset)


def tiles_to_image(tiles: Sequence[Tile], palette: Optional[Palette] = None,
                   tiles_per_row: int = DEFAULT_TILES_PER_ROW) -> Image.Image:
    """
    Lay tiles out in a grid as an indexed ('P') PIL image.

    Indices beyond the 16-color palette wrap into it, so 8bpp tiles still
    preview.
    """
    palette = palette or get_grayscale_palette()
    tiles_x = max(1, tiles_per_row)
    tiles_y = max(1, (len(tiles) + tiles_x - 1) // tiles_x)
    width = tiles_x * TILE_WIDTH
    height = tiles_y * TILE_HEIGHT

    img = Image.new('P', (width, height))
    rgb = palette.to_rgb_list()
    img.putpalette(rgb * 16)

    img_pixels = [0] * (width * height)
    for tile_idx, tile in enumerate(tiles):
        tile_x = tile_idx % tiles_x
        tile_y = tile_idx // tiles_x
        for y in range(TILE_HEIGHT):
            for x in range(TILE_WIDTH):
                dst = (tile_y * TILE_HEIGHT + y) * width + tile_x * TILE_WIDTH + x
                img_pixels[dst] = tile.pixels[y * TILE_WIDTH + x] & 0xFF

    img.putdata(img_pixels)
    return img
