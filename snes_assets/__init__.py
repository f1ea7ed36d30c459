"""
SNES asset pipeline
Turns RGBA pixel art into palettes, deduplicated planar tiles and OAM
sprite data, and checks the result against VRAM and DMA budgets
"""

from .quantizer import quantize_colors
from .sprite_assembler import assemble_frame, decompose_drawing, render_frame
from .sprite_sheet_importer import SpriteSheetImportConfig, import_sprite_sheet, process_image
from .tile_dedup import TileTable
from .vram_budget import BudgetPolicy, budget_for_screen, transition_cost

__version__ = "1.0.0"
__all__ = [
    "BudgetPolicy",
    "SpriteSheetImportConfig",
    "TileTable",
    "assemble_frame",
    "budget_for_screen",
    "decompose_drawing",
    "import_sprite_sheet",
    "process_image",
    "quantize_colors",
    "render_frame",
    "transition_cost",
]
