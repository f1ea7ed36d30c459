#!/usr/bin/env python3
"""
Constants for the SNES asset pipeline
All hardware figures and tuning defaults in one place
"""

# SNES tile format
TILE_WIDTH = 8  # pixels
TILE_HEIGHT = 8  # pixels
PIXELS_PER_TILE = 64  # 8x8
BYTES_PER_TILE_2BPP = 16
BYTES_PER_TILE_4BPP = 32
BYTES_PER_TILE_8BPP = 64

# Offsets of each bitplane pair inside a tile
TILE_BITPLANE_OFFSET = 16  # planes 2-3
TILE_BITPLANE_OFFSET_8BPP_LOW = 32  # planes 4-5
TILE_BITPLANE_OFFSET_8BPP_HIGH = 48  # planes 6-7

# SNES Memory limits
VRAM_SIZE_STANDARD = 65536  # 64KB
CGRAM_SIZE = 512  # Color RAM size in bytes
OAM_SIZE = 544  # Object Attribute Memory size (512 + 32 bytes)

# Palette format
COLORS_PER_PALETTE = 16
BYTES_PER_COLOR = 2  # BGR555 format
BYTES_PER_PALETTE = 32  # 16 colors * 2 bytes
MAX_PALETTES = 16
MAX_SPRITE_PALETTES = 8  # OAM palette slots 0-7

# OAM layout
OAM_ENTRIES = 128  # Number of sprite entries
BYTES_PER_OAM_ENTRY = 4
OAM_HIGH_TABLE_OFFSET = 512
OAM_HIGH_TABLE_SIZE = 32
OAM_HIDDEN_Y = 0xE0  # Y position that parks an unused sprite below the screen
MAX_SPRITES_PER_SCANLINE = 32
SPRITE_TILES_PER_ROW = 16  # Layout of the sprite name table

# Screen geometry
SCREEN_WIDTH = 256
SCREEN_HEIGHT = 224
SCREEN_CENTER_X = SCREEN_WIDTH // 2
SCREEN_CENTER_Y = SCREEN_HEIGHT // 2

# Color conversion
BGR555_MAX_VALUE = 31  # 5 bits per color component
RGB888_MAX_VALUE = 255  # 8 bits per color component
RGB888_TO_5BIT_SHIFT = 3

# BGR555 color masks
BGR555_BLUE_MASK = 0x7C00   # Bits 14-10 for blue
BGR555_GREEN_MASK = 0x03E0  # Bits 9-5 for green
BGR555_RED_MASK = 0x001F    # Bits 4-0 for red
BGR555_COLOR_MASK = 0x7FFF  # Bit 15 is always zero

# Bit shifts for BGR555
BGR555_BLUE_SHIFT = 10
BGR555_GREEN_SHIFT = 5
BGR555_RED_SHIFT = 0

# Import pipeline defaults
ALPHA_THRESHOLD = 128  # alpha below this is transparent
MAX_QUANTIZED_COLORS = 15  # index 0 is reserved for transparency
DEFAULT_FRAME_DURATION = 4  # in VBlanks (1/60 s)
DEFAULT_TILE_CATEGORY = "Sprite"
DEFAULT_ANIMATION_NAME = "Imported"
DEFAULT_OAM_PRIORITY = 2

# VRAM budget policy defaults
SPRITE_POOL_TILES = 128  # tiles reserved for sprites (4bpp)
TILEMAP_BUDGET_WIDTH = 32
TILEMAP_BUDGET_HEIGHT = 32
BYTES_PER_TILEMAP_ENTRY = 2
DMA_BYTES_PER_VBLANK = 7168  # ~7KB per VBlank
MAX_TRANSITION_FRAMES = 4

# Hardware tilemap word layout
TILEMAP_TILE_MASK = 0x03FF
TILEMAP_PALETTE_SHIFT = 10
TILEMAP_PRIORITY_BIT = 0x2000
TILEMAP_FLIP_H_BIT = 0x4000
TILEMAP_FLIP_V_BIT = 0x8000

# File size limits for security
MAX_IMAGE_FILE_SIZE = 5 * 1024 * 1024  # 5MB
MAX_ROM_FILE_SIZE = 8 * 1024 * 1024  # 8MB
MAX_SCREEN_FILE_SIZE = 2 * 1024 * 1024  # 2MB

# Default values
DEFAULT_TILES_PER_ROW = 16
