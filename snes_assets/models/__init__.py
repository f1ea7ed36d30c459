"""
Value types shared by the asset pipeline
"""

from .screen import (
    BG_MODES,
    BackgroundLayer,
    BGLayerInfo,
    BGModeInfo,
    Screen,
    bg_mode_info,
    create_layers,
)
from .sprite import OAMEntry, SpriteAnimation, SpriteFrame, SpriteSize
from .tile import Tile, TileDepth, Tilemap, TilemapEntry

__all__ = [
    "BG_MODES",
    "BGLayerInfo",
    "BGModeInfo",
    "BackgroundLayer",
    "OAMEntry",
    "Screen",
    "SpriteAnimation",
    "SpriteFrame",
    "SpriteSize",
    "Tile",
    "TileDepth",
    "Tilemap",
    "TilemapEntry",
    "bg_mode_info",
    "create_layers",
]
