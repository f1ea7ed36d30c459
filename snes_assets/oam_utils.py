#!/usr/bin/env python3
"""
OAM (Object Attribute Memory) table codec
Packs sprite descriptors into the 544-byte hardware layout and back
"""

from typing import Sequence

from .constants import (
    BYTES_PER_OAM_ENTRY,
    OAM_ENTRIES,
    OAM_HIDDEN_Y,
    OAM_HIGH_TABLE_OFFSET,
    OAM_SIZE,
    SCREEN_HEIGHT,
)
from .logging_config import get_logger
from .models.sprite import OAMEntry, SpriteSize

logger = get_logger("oam_utils")

# Attribute byte: vhoopppN
ATTR_NAME_TABLE = 0x01
ATTR_PALETTE_SHIFT = 1
ATTR_PRIORITY_SHIFT = 4
ATTR_FLIP_H = 0x40
ATTR_FLIP_V = 0x80

# High table: 2 bits per sprite, X bit 8 then size select
HIGH_X_MSB = 0x01
HIGH_SIZE = 0x02


def _pack_attributes(entry: OAMEntry) -> int:
    attributes = (entry.tile_index >> 8) & ATTR_NAME_TABLE
    attributes |= (entry.palette_index & 0x07) << ATTR_PALETTE_SHIFT
    attributes |= (entry.priority & 0x03) << ATTR_PRIORITY_SHIFT
    if entry.flip_h:
        attributes |= ATTR_FLIP_H
    if entry.flip_v:
        attributes |= ATTR_FLIP_V
    return attributes


def encode_oam_table(entries: Sequence[OAMEntry]) -> tuple[bytes, list[str]]:
    """
    Build a full OAM image from sprite entries.

    Slots without an entry are parked below the visible screen. Entries
    past the 128th cannot be represented and are reported, not encoded.

    Returns:
        (544 bytes of OAM data, warnings)
    """
    warnings = []
    if len(entries) > OAM_ENTRIES:
        warnings.append(f"{len(entries) - OAM_ENTRIES} OAM entries dropped (max {OAM_ENTRIES})")
        logger.warning(warnings[-1])

    data = bytearray(OAM_SIZE)
    for i in range(OAM_ENTRIES):
        offset = i * BYTES_PER_OAM_ENTRY
        if i >= len(entries):
            data[offset + 1] = OAM_HIDDEN_Y
            continue

        entry = entries[i]
        x9 = entry.x & 0x1FF
        data[offset] = x9 & 0xFF
        data[offset + 1] = entry.y & 0xFF
        data[offset + 2] = entry.tile_index & 0xFF
        data[offset + 3] = _pack_attributes(entry)

        high_bits = (x9 >> 8) & HIGH_X_MSB
        if entry.size != SpriteSize.SMALL_8X8:
            high_bits |= HIGH_SIZE
        data[OAM_HIGH_TABLE_OFFSET + i // 4] |= high_bits << ((i % 4) * 2)

    return bytes(data), warnings


def decode_oam_table(oam_data: bytes, small_size: SpriteSize = SpriteSize.SMALL_8X8,
                     large_size: SpriteSize = SpriteSize.LARGE_16X16,
                     include_hidden: bool = False) -> list[OAMEntry]:
    """
    Parse an OAM image into sprite entries.

    Partial dumps are accepted; a missing high table reads as zeros.

    Args:
        oam_data: Raw OAM bytes
        small_size: Size a clear size bit stands for
        large_size: Size a set size bit stands for
        include_hidden: Keep entries parked below the screen

    Returns:
        Entries in OAM order
    """
    if len(oam_data) < OAM_SIZE:
        logger.debug(f"Partial OAM data: {len(oam_data)} bytes (full size is {OAM_SIZE})")

    entries = []
    for i in range(OAM_ENTRIES):
        offset = i * BYTES_PER_OAM_ENTRY
        if offset + BYTES_PER_OAM_ENTRY > len(oam_data):
            break

        x_low = oam_data[offset]
        y_pos = oam_data[offset + 1]
        tile_low = oam_data[offset + 2]
        attributes = oam_data[offset + 3]

        high_offset = OAM_HIGH_TABLE_OFFSET + i // 4
        if high_offset < len(oam_data):
            high_bits = (oam_data[high_offset] >> ((i % 4) * 2)) & 0x03
        else:
            high_bits = 0

        if not include_hidden and y_pos >= SCREEN_HEIGHT:
            continue

        x9 = x_low | ((high_bits & HIGH_X_MSB) << 8)
        entries.append(OAMEntry(
            x=x9 - 0x200 if x9 >= 0x100 else x9,
            y=y_pos,
            tile_index=tile_low | ((attributes & ATTR_NAME_TABLE) << 8),
            palette_index=(attributes >> ATTR_PALETTE_SHIFT) & 0x07,
            priority=(attributes >> ATTR_PRIORITY_SHIFT) & 0x03,
            flip_h=bool(attributes & ATTR_FLIP_H),
            flip_v=bool(attributes & ATTR_FLIP_V),
            size=large_size if high_bits & HIGH_SIZE else small_size,
        ))

    return entries


def palette_usage(entries: Sequence[OAMEntry]) -> dict:
    """Statistics about which sprite palettes a set of entries uses"""
    palette_counts: dict[int, int] = {}
    for entry in entries:
        palette_counts[entry.palette_index] = palette_counts.get(entry.palette_index, 0) + 1

    return {
        "palette_counts": palette_counts,
        "active_palettes": sorted(palette_counts),
        "total_sprites": len(entries),
        "visible_sprites": len([e for e in entries if e.y < SCREEN_HEIGHT]),
    }
