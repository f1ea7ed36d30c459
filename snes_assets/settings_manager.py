"""
Settings manager for the asset pipeline
Persists DMA/budget tuning and import defaults as JSON
"""

import json
import os
from pathlib import Path
from typing import Any, Optional

from .constants import (
    ALPHA_THRESHOLD,
    DEFAULT_FRAME_DURATION,
    DEFAULT_TILE_CATEGORY,
    DMA_BYTES_PER_VBLANK,
    MAX_TRANSITION_FRAMES,
    SCREEN_CENTER_X,
    SCREEN_CENTER_Y,
    SPRITE_POOL_TILES,
    TILEMAP_BUDGET_HEIGHT,
    TILEMAP_BUDGET_WIDTH,
)
from .logging_config import get_logger
from .vram_budget import BudgetPolicy

logger = get_logger("settings")


class SettingsManager:
    """Manages pipeline settings with persistence"""

    def __init__(self, app_name: str = "snes_assets", settings_file: Optional[Path] = None):
        self.app_name = app_name
        self.settings_file = Path(settings_file) if settings_file else self._get_settings_path()
        self.settings = self._load_settings()

    def _get_settings_path(self) -> Path:
        """Get the appropriate settings directory for the platform"""
        if os.name == "nt":  # Windows
            base = Path(os.environ.get("APPDATA", os.path.expanduser("~")))
            settings_dir = base / self.app_name
        else:  # Linux/Mac
            settings_dir = Path(os.path.expanduser("~")) / f".{self.app_name}"

        return settings_dir / "settings.json"

    def _load_settings(self) -> dict[str, Any]:
        """Load settings from file, filling in any missing defaults"""
        settings = self._get_default_settings()
        if not self.settings_file.exists():
            return settings
        try:
            with open(self.settings_file) as f:
                stored = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable settings file {self.settings_file}: {e}")
            return settings
        if isinstance(stored, dict):
            _merge(settings, stored)
        return settings

    def _get_default_settings(self) -> dict[str, Any]:
        """Get default settings"""
        return {
            "budget": {
                "dma_bytes_per_vblank": DMA_BYTES_PER_VBLANK,
                "max_transition_frames": MAX_TRANSITION_FRAMES,
                "sprite_pool_tiles": SPRITE_POOL_TILES,
                "tilemap_width": TILEMAP_BUDGET_WIDTH,
                "tilemap_height": TILEMAP_BUDGET_HEIGHT,
            },
            "import": {
                "frame_duration": DEFAULT_FRAME_DURATION,
                "tile_category": DEFAULT_TILE_CATEGORY,
                "anchor_x": SCREEN_CENTER_X,
                "anchor_y": SCREEN_CENTER_Y,
                "alpha_threshold": ALPHA_THRESHOLD,
            },
        }

    def save_settings(self):
        """Save current settings to file"""
        try:
            self.settings_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.settings_file, "w") as f:
                json.dump(self.settings, f, indent=2)
        except OSError as e:
            logger.warning(f"Could not save settings to {self.settings_file}: {e}")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting value by dotted key"""
        value = self.settings
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def set(self, key: str, value: Any):
        """Set a setting value by dotted key and persist"""
        keys = key.split(".")
        target = self.settings
        for k in keys[:-1]:
            if k not in target:
                target[k] = {}
            target = target[k]
        target[keys[-1]] = value
        self.save_settings()

    def budget_policy(self) -> BudgetPolicy:
        """Budget tuning as an immutable policy"""
        return BudgetPolicy(
            dma_bytes_per_vblank=int(self.get("budget.dma_bytes_per_vblank", DMA_BYTES_PER_VBLANK)),
            max_transition_frames=int(self.get("budget.max_transition_frames", MAX_TRANSITION_FRAMES)),
            sprite_pool_tiles=int(self.get("budget.sprite_pool_tiles", SPRITE_POOL_TILES)),
            tilemap_width=int(self.get("budget.tilemap_width", TILEMAP_BUDGET_WIDTH)),
            tilemap_height=int(self.get("budget.tilemap_height", TILEMAP_BUDGET_HEIGHT)),
        )

    def import_defaults(self) -> dict[str, Any]:
        """Defaults applied to sprite sheet imports"""
        return {
            "frame_duration": int(self.get("import.frame_duration", DEFAULT_FRAME_DURATION)),
            "tile_category": str(self.get("import.tile_category", DEFAULT_TILE_CATEGORY)),
            "anchor": (
                int(self.get("import.anchor_x", SCREEN_CENTER_X)),
                int(self.get("import.anchor_y", SCREEN_CENTER_Y)),
            ),
            "alpha_threshold": int(self.get("import.alpha_threshold", ALPHA_THRESHOLD)),
        }

    def reset_settings(self):
        """Reset all settings to defaults"""
        self.settings = self._get_default_settings()
        self.save_settings()


def _merge(base: dict, overrides: dict):
    for key, value in overrides.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _merge(base[key], value)
        else:
            base[key] = value


# Singleton instance
_settings_instance = None


def get_settings() -> SettingsManager:
    """Get the singleton settings instance"""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = SettingsManager()
    return _settings_instance
