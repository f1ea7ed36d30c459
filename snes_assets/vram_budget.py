#!/usr/bin/env python3
"""
VRAM budget and screen transition cost calculation

A budget lays a screen's tile data, the sprite tile pool and the layer
tilemaps out contiguously in the 64KB of VRAM. The last block is always
the remainder, so the block sizes add up to exactly 64KB: a free block
when the screen fits, or an overflow block of negative size when it
doesn't.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence, Sized

from .constants import (
    BYTES_PER_TILEMAP_ENTRY,
    DMA_BYTES_PER_VBLANK,
    MAX_PALETTES,
    MAX_TRANSITION_FRAMES,
    OAM_ENTRIES,
    SPRITE_POOL_TILES,
    TILEMAP_BUDGET_HEIGHT,
    TILEMAP_BUDGET_WIDTH,
    VRAM_SIZE_STANDARD,
)
from .logging_config import get_logger
from .models.screen import Screen
from .models.sprite import OAMEntry
from .models.tile import Tile, Tilemap, TileDepth
from .palette_utils import Palette

logger = get_logger("vram_budget")


class VRAMCategory(Enum):
    BG1_TILES = "BG1 Tiles"
    BG2_TILES = "BG2 Tiles"
    BG3_TILES = "BG3 Tiles"
    BG4_TILES = "BG4 Tiles"
    SPRITE_TILES = "Sprite Tiles"
    BG1_MAP = "BG1 Map"
    BG2_MAP = "BG2 Map"
    BG3_MAP = "BG3 Map"
    BG4_MAP = "BG4 Map"
    FREE = "Free"
    OVERFLOW = "Overflow"

    @classmethod
    def tiles_for_layer(cls, bg_layer: int) -> "VRAMCategory":
        return (cls.BG1_TILES, cls.BG2_TILES, cls.BG3_TILES, cls.BG4_TILES)[bg_layer]

    @classmethod
    def map_for_layer(cls, bg_layer: int) -> "VRAMCategory":
        return (cls.BG1_MAP, cls.BG2_MAP, cls.BG3_MAP, cls.BG4_MAP)[bg_layer]


REMAINDER_CATEGORIES = (VRAMCategory.FREE, VRAMCategory.OVERFLOW)


@dataclass(frozen=True)
class BudgetPolicy:
    """Tuning figures for budget and transition estimates"""

    dma_bytes_per_vblank: int = DMA_BYTES_PER_VBLANK
    max_transition_frames: int = MAX_TRANSITION_FRAMES
    sprite_pool_tiles: int = SPRITE_POOL_TILES
    # Every layer is charged a map of this size, whatever its real dimensions
    tilemap_width: int = TILEMAP_BUDGET_WIDTH
    tilemap_height: int = TILEMAP_BUDGET_HEIGHT
    transfer_depth: TileDepth = TileDepth.BPP4

    def __post_init__(self):
        if self.dma_bytes_per_vblank <= 0:
            raise ValueError(f"DMA bandwidth must be positive, got {self.dma_bytes_per_vblank}")
        if self.max_transition_frames < 0:
            raise ValueError(f"Frame ceiling cannot be negative, got {self.max_transition_frames}")


DEFAULT_POLICY = BudgetPolicy()


@dataclass(frozen=True)
class VRAMBlock:
    label: str
    address: int  # word address
    size_bytes: int
    category: VRAMCategory


@dataclass(frozen=True)
class VRAMBudget:
    blocks: tuple[VRAMBlock, ...]
    total_bytes: int = VRAM_SIZE_STANDARD
    warnings: tuple[str, ...] = field(default=())

    @property
    def used_bytes(self) -> int:
        return sum(b.size_bytes for b in self.blocks if b.category not in REMAINDER_CATEGORIES)

    @property
    def free_bytes(self) -> int:
        return self.total_bytes - self.used_bytes

    @property
    def percentage(self) -> float:
        return self.used_bytes / self.total_bytes * 100.0

    @property
    def is_over_budget(self) -> bool:
        return self.used_bytes > self.total_bytes

    def blocks_in(self, category: VRAMCategory) -> list[VRAMBlock]:
        return [b for b in self.blocks if b.category == category]

    @classmethod
    def empty(cls) -> "VRAMBudget":
        return cls((VRAMBlock("Free", 0, VRAM_SIZE_STANDARD, VRAMCategory.FREE),))


@dataclass(frozen=True)
class TransitionCost:
    tiles_to_load: int
    tiles_to_remove: int
    bytes_to_transfer: int
    frames_needed: int
    is_feasible: bool


def tile_size_bytes(depth: TileDepth) -> int:
    return depth.bytes_per_tile


def tilemap_size_bytes(width: int, height: int) -> int:
    # Each tilemap entry is 2 bytes
    return width * height * BYTES_PER_TILEMAP_ENTRY


class _BlockLayout:
    """Places blocks one after another, tracking the byte cursor"""

    def __init__(self):
        self.blocks: list[VRAMBlock] = []
        self.cursor = 0

    def add(self, label: str, size_bytes: int, category: VRAMCategory):
        self.blocks.append(VRAMBlock(label, self.cursor // 2, size_bytes, category))
        self.cursor += size_bytes


def budget_for_screen(screen: Screen, tiles: Sized,
                      policy: Optional[BudgetPolicy] = None) -> VRAMBudget:
    """
    Estimate the VRAM layout of a screen.

    Args:
        screen: Screen whose visible layers are charged
        tiles: The global tile table (caps per-layer tile counts)
        policy: Budget tuning; defaults to DEFAULT_POLICY

    Returns:
        VRAMBudget whose block sizes sum to exactly 64KB
    """
    policy = policy or DEFAULT_POLICY
    mode = screen.mode_info
    layout = _BlockLayout()

    charged = []
    for layer in screen.layers:
        if not layer.visible:
            continue
        depth = mode.depth_for_layer(layer.bg_layer)
        if depth is None:
            continue
        charged.append(layer)
        unique_count = min(len(layer.tilemap.tile_indices()), len(tiles))
        layout.add(
            f"BG{layer.bg_layer + 1} Tiles ({depth.label})",
            unique_count * tile_size_bytes(depth),
            VRAMCategory.tiles_for_layer(layer.bg_layer),
        )

    layout.add(
        f"Sprites ({TileDepth.BPP4.label})",
        policy.sprite_pool_tiles * tile_size_bytes(TileDepth.BPP4),
        VRAMCategory.SPRITE_TILES,
    )

    map_bytes = tilemap_size_bytes(policy.tilemap_width, policy.tilemap_height)
    for layer in charged:
        layout.add(f"BG{layer.bg_layer + 1} Map", map_bytes, VRAMCategory.map_for_layer(layer.bg_layer))

    warnings = []
    remainder = VRAM_SIZE_STANDARD - layout.cursor
    if remainder >= 0:
        layout.add("Free", remainder, VRAMCategory.FREE)
    else:
        warnings.append(f"Screen '{screen.name}' exceeds VRAM by {-remainder} bytes")
        logger.warning(warnings[-1])
        layout.add("Overflow", remainder, VRAMCategory.OVERFLOW)

    budget = VRAMBudget(tuple(layout.blocks), warnings=tuple(warnings))
    logger.debug(f"Screen '{screen.name}': {budget.used_bytes} of {budget.total_bytes} bytes used")
    return budget


def transition_cost(source: Screen, target: Screen,
                    policy: Optional[BudgetPolicy] = None) -> TransitionCost:
    """
    Estimate the DMA work needed to switch from one screen to another.

    Tiles referenced only by the target must be uploaded; the transfer is
    charged at the policy's transfer depth and spread over VBlanks.
    """
    policy = policy or DEFAULT_POLICY
    source_set = source.tile_indices()
    target_set = target.tile_indices()

    tiles_to_load = len(target_set - source_set)
    tiles_to_remove = len(source_set - target_set)
    bytes_to_transfer = tiles_to_load * tile_size_bytes(policy.transfer_depth)
    frames_needed = -(-bytes_to_transfer // policy.dma_bytes_per_vblank)

    return TransitionCost(
        tiles_to_load=tiles_to_load,
        tiles_to_remove=tiles_to_remove,
        bytes_to_transfer=bytes_to_transfer,
        frames_needed=frames_needed,
        is_feasible=frames_needed <= policy.max_transition_frames,
    )


@dataclass(frozen=True)
class BudgetMeter:
    label: str
    used: float
    total: float
    unit: str = ""

    @property
    def percentage(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.used / self.total * 100.0

    @property
    def formatted_value(self) -> str:
        if self.unit == "KB":
            return f"{self.used:.1f}{self.unit} / {self.total:.0f}{self.unit}"
        return f"{self.used:.0f} / {self.total:.0f}"


def hardware_meters(tiles: Iterable[Tile], tilemaps: Iterable[Tilemap],
                    palettes: Iterable[Palette],
                    oam_entries: Sequence[OAMEntry]) -> list[BudgetMeter]:
    """Project-wide usage against the VRAM, CGRAM and OAM ceilings."""
    vram_bytes = sum(tile_size_bytes(tile.depth) for tile in tiles)
    vram_bytes += sum(tilemap_size_bytes(tm.width, tm.height) for tm in tilemaps)
    palettes_used = sum(1 for palette in palettes if palette.has_content)

    return [
        BudgetMeter("VRAM", vram_bytes / 1024.0, VRAM_SIZE_STANDARD / 1024, "KB"),
        BudgetMeter("CGRAM", palettes_used, MAX_PALETTES, "palettes"),
        BudgetMeter("Sprites", len(oam_entries), OAM_ENTRIES),
    ]
