"""
Shared pytest fixtures for asset pipeline tests
"""

import numpy as np
import pytest
from PIL import Image

from snes_assets.models.tile import Tile, TileDepth
from snes_assets.settings_manager import SettingsManager


@pytest.fixture
def temp_dir(tmp_path):
    """Temporary directory for test files"""
    return tmp_path


@pytest.fixture
def sample_4bpp_tile():
    """Create a sample 4bpp tile (32 bytes) with a diagonal on plane 0"""
    tile_data = bytearray(32)
    for y in range(8):
        tile_data[y * 2] = 1 << (7 - y)
    return bytes(tile_data)


@pytest.fixture
def asymmetric_tile():
    """A tile with no flip symmetry: one pixel off-centre"""
    return Tile.empty(TileDepth.BPP4).with_pixel(1, 2, 3)


@pytest.fixture
def solid_frame():
    """Factory for a solid, fully opaque RGBA frame"""

    def make(width=8, height=8, rgb=(255, 0, 0)):
        frame = np.zeros((height, width, 4), dtype=np.uint8)
        frame[:, :, :3] = rgb
        frame[:, :, 3] = 255
        return frame

    return make


@pytest.fixture
def palette_frame():
    """8x8 RGBA frame holding 64 distinct, non-black 5-bit colors"""
    frame = np.zeros((8, 8, 4), dtype=np.uint8)
    for i in range(64):
        y, x = divmod(i, 8)
        frame[y, x] = (
            (i % 4) * 64 + 32,
            ((i // 4) % 4) * 64 + 32,
            (i // 16) * 64 + 32,
            255,
        )
    return frame


@pytest.fixture
def write_png(temp_dir):
    """Factory that saves an RGBA array as a PNG and returns its path"""

    def write(rgba, name="sheet.png"):
        path = temp_dir / name
        Image.fromarray(np.asarray(rgba, dtype=np.uint8)).save(path)
        return path

    return write


@pytest.fixture
def settings_manager(temp_dir):
    """SettingsManager backed by a file in the temp directory"""
    return SettingsManager(settings_file=temp_dir / "settings.json")
