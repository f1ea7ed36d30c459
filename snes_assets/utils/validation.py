#!/usr/bin/env python3
"""
Input validation utilities
Structural checks applied before the pipeline runs
"""

from typing import List, Optional, Tuple

from ..constants import MAX_SPRITE_PALETTES, TILE_HEIGHT, TILE_WIDTH


class ValidationError(ValueError):
    """Raised when pipeline input is structurally unusable"""
    pass


class Validators:
    """Common validation functions"""

    @staticmethod
    def validate_hex_value(value_str: str, min_val: int = 0,
                           max_val: Optional[int] = None) -> Tuple[bool, int, str]:
        """
        Validate a hexadecimal string value

        Args:
            value_str: String to validate ("0x1F", "$1F" or "1F")
            min_val: Minimum allowed value
            max_val: Maximum allowed value (optional)

        Returns:
            Tuple of (is_valid, parsed_value, error_message)
        """
        try:
            value_str = value_str.strip()
            if value_str.startswith('$'):
                value_str = value_str[1:]
            value = int(value_str, 16)

            if value < min_val:
                return False, 0, f"Value must be at least 0x{min_val:X}"

            if max_val is not None and value > max_val:
                return False, 0, f"Value must not exceed 0x{max_val:X}"

            return True, value, ""

        except ValueError:
            return False, 0, "Invalid hexadecimal value"

    @staticmethod
    def validate_tile_dimensions(width: int, height: int) -> List[str]:
        """
        Validate that a pixel buffer is a whole number of 8x8 tiles

        Returns:
            List of validation errors (empty if valid)
        """
        errors = []

        if width <= 0 or height <= 0:
            errors.append(f"Invalid dimensions {width}x{height}")
            return errors

        if width % TILE_WIDTH != 0:
            errors.append(f"Width ({width}) must be multiple of {TILE_WIDTH}")

        if height % TILE_HEIGHT != 0:
            errors.append(f"Height ({height}) must be multiple of {TILE_HEIGHT}")

        return errors

    @staticmethod
    def validate_buffer_size(length: int, width: int, height: int) -> Tuple[bool, str]:
        """Check that a flat pixel buffer holds width * height values."""
        expected = width * height
        if length != expected:
            return False, f"Pixel buffer has {length} values, expected {expected} ({width}x{height})"
        return True, ""

    @staticmethod
    def validate_palette_index(index: int) -> Tuple[bool, str]:
        """
        Validate a sprite palette slot

        Returns:
            Tuple of (is_valid, error_message)
        """
        if index < 0:
            return False, "Palette index cannot be negative"

        if index >= MAX_SPRITE_PALETTES:
            return False, f"Palette index must be 0-{MAX_SPRITE_PALETTES - 1}"

        return True, ""

    @staticmethod
    def validate_frame_size(frame_width: int, frame_height: int,
                            image_width: int, image_height: int) -> List[str]:
        """Check that frames of the given size tile the whole sheet."""
        errors = []
        if frame_width <= 0 or frame_height <= 0:
            errors.append(f"Invalid frame size {frame_width}x{frame_height}")
            return errors
        if image_width % frame_width != 0:
            errors.append(f"Sheet width ({image_width}) is not a multiple of frame width ({frame_width})")
        if image_height % frame_height != 0:
            errors.append(f"Sheet height ({image_height}) is not a multiple of frame height ({frame_height})")
        return errors
