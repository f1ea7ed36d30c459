#!/usr/bin/env python3
"""
Background modes, layers and screens consumed by the VRAM budget calculator
"""

from dataclasses import dataclass, field
from typing import Optional

from .tile import Tilemap, TileDepth

MAX_BG_MODE = 7


@dataclass(frozen=True)
class BGLayerInfo:
    layer: int  # 0-3 (BG1-BG4)
    depth: Optional[TileDepth]
    max_colors: int


@dataclass(frozen=True)
class BGModeInfo:
    mode: int
    description: str
    layers: tuple[BGLayerInfo, ...]
    is_mode7: bool = False

    @property
    def label(self) -> str:
        return f"Mode {self.mode}"

    @property
    def active_layers(self) -> tuple[BGLayerInfo, ...]:
        return tuple(info for info in self.layers if info.depth is not None)

    def depth_for_layer(self, bg_layer: int) -> Optional[TileDepth]:
        """Tile depth of a BG layer in this mode, or None if the layer is off."""
        for info in self.active_layers:
            if info.layer == bg_layer:
                return info.depth
        return None


def _layers(*depths: Optional[TileDepth]) -> tuple[BGLayerInfo, ...]:
    padded = list(depths) + [None] * (4 - len(depths))
    return tuple(
        BGLayerInfo(i, depth, (1 << depth.value) if depth else 0)
        for i, depth in enumerate(padded)
    )


_D2, _D4, _D8 = TileDepth.BPP2, TileDepth.BPP4, TileDepth.BPP8

BG_MODES = (
    BGModeInfo(0, "4 layers, 4 colors each (2bpp x4).", _layers(_D2, _D2, _D2, _D2)),
    BGModeInfo(1, "3 layers: BG1/BG2 16 colors, BG3 4 colors.", _layers(_D4, _D4, _D2)),
    BGModeInfo(2, "2 layers, 16 colors each with per-tile offset.", _layers(_D4, _D4)),
    BGModeInfo(3, "2 layers: BG1 256 colors, BG2 16 colors.", _layers(_D8, _D4)),
    BGModeInfo(4, "2 layers: BG1 256 colors, BG2 4 colors with per-tile offset.", _layers(_D8, _D2)),
    BGModeInfo(5, "2 layers, hires: BG1 16 colors, BG2 4 colors.", _layers(_D4, _D2)),
    BGModeInfo(6, "1 layer, hires: BG1 16 colors with per-tile offset.", _layers(_D4)),
    BGModeInfo(7, "1 layer, 256 colors with rotation/scaling.", _layers(_D8), is_mode7=True),
)


def bg_mode_info(mode: int) -> BGModeInfo:
    """Mode table entry; modes above 7 clamp to mode 7."""
    return BG_MODES[min(max(mode, 0), MAX_BG_MODE)]


@dataclass(frozen=True)
class BackgroundLayer:
    """A scrolling background layer of a screen"""

    name: str
    bg_layer: int
    tilemap: Tilemap
    scroll_ratio_x: float = 1.0
    scroll_ratio_y: float = 1.0
    repeat_x: bool = False
    repeat_y: bool = False
    visible: bool = True


@dataclass(frozen=True)
class Screen:
    name: str
    bg_mode: int = 1
    layers: tuple[BackgroundLayer, ...] = field(default=())

    def __post_init__(self):
        object.__setattr__(self, "layers", tuple(self.layers))

    @property
    def mode_info(self) -> BGModeInfo:
        return bg_mode_info(self.bg_mode)

    def tile_indices(self) -> set[int]:
        """Nonzero tile indices referenced by any layer."""
        indices: set[int] = set()
        for layer in self.layers:
            indices |= layer.tilemap.tile_indices()
        return indices


def create_layers(bg_mode: int, width_tiles: int, height_tiles: int) -> tuple[BackgroundLayer, ...]:
    """
    Build the default parallax layer stack for a mode.

    The first active layer is the full-width foreground; further layers
    scroll at half and quarter speed and repeat horizontally.
    """
    layers = []
    for i, info in enumerate(bg_mode_info(bg_mode).active_layers):
        if i == 0:
            ratio, layer_width, repeats, role = 1.0, width_tiles, False, "Foreground"
        elif i == 1:
            ratio, layer_width, repeats, role = 0.5, max(width_tiles // 2, 32), True, "Middle"
        else:
            ratio, layer_width, repeats, role = 0.25, max(width_tiles // 4, 32), True, "Background"
        name = f"BG{info.layer + 1} - {role}"
        layers.append(BackgroundLayer(
            name=name,
            bg_layer=info.layer,
            tilemap=Tilemap(name, layer_width, height_tiles),
            scroll_ratio_x=ratio,
            scroll_ratio_y=ratio,
            repeat_x=repeats,
        ))
    return tuple(layers)
