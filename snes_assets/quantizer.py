#!/usr/bin/env python3
"""
Median-cut color quantizer

Reduces true-color RGBA frames to at most 15 BGR555 colors plus the
transparent slot 0. The histogram is built in 5-bit color space and
buckets are split at the frequency-weighted median, so large flat areas
of one color pull the cut towards themselves instead of being averaged
away by rare detail colors.
"""

from dataclasses import dataclass
from typing import NamedTuple, Sequence

import numpy as np

from .constants import ALPHA_THRESHOLD, MAX_QUANTIZED_COLORS, RGB888_TO_5BIT_SHIFT
from .logging_config import get_logger
from .palette_utils import BLACK, Palette, SNESColor

logger = get_logger("quantizer")

CHANNEL_RED = 0
CHANNEL_GREEN = 1
CHANNEL_BLUE = 2


class WeightedColor(NamedTuple):
    """A 5-bit color and the number of opaque pixels that had it"""

    r: int
    g: int
    b: int
    count: int

    def channel(self, channel: int) -> int:
        return self[channel]


@dataclass
class Bucket:
    colors: list[WeightedColor]

    @property
    def total_count(self) -> int:
        return sum(c.count for c in self.colors)

    def channel_range(self, channel: int) -> int:
        if not self.colors:
            return 0
        values = [c.channel(channel) for c in self.colors]
        return max(values) - min(values)

    @property
    def max_range(self) -> int:
        return max(self.channel_range(ch) for ch in (CHANNEL_RED, CHANNEL_GREEN, CHANNEL_BLUE))

    @property
    def dominant_channel(self) -> int:
        r = self.channel_range(CHANNEL_RED)
        g = self.channel_range(CHANNEL_GREEN)
        b = self.channel_range(CHANNEL_BLUE)
        if r >= g and r >= b:
            return CHANNEL_RED
        if g >= b:
            return CHANNEL_GREEN
        return CHANNEL_BLUE

    def centroid(self) -> tuple[int, int, int]:
        """Frequency-weighted mean color, truncated to integers."""
        if not self.colors:
            return 0, 0, 0
        total = self.total_count
        if total <= 0:
            first = self.colors[0]
            return first.r, first.g, first.b
        return (
            sum(c.r * c.count for c in self.colors) // total,
            sum(c.g * c.count for c in self.colors) // total,
            sum(c.b * c.count for c in self.colors) // total,
        )

    def split(self) -> tuple["Bucket", "Bucket"]:
        """
        Split along the widest channel where the running pixel count first
        reaches half of the bucket's total pixel count.
        """
        channel = self.dominant_channel
        ordered = sorted(self.colors, key=lambda c: c.channel(channel))

        half_count = self.total_count // 2
        split_idx = len(ordered) // 2
        running = 0
        for i, color in enumerate(ordered):
            running += color.count
            if running >= half_count:
                split_idx = max(1, i + 1)
                break
        split_idx = min(split_idx, len(ordered) - 1)

        return Bucket(ordered[:split_idx]), Bucket(ordered[split_idx:])


@dataclass
class QuantizeResult:
    palette: Palette
    indexed_frames: list[np.ndarray]
    colors_found: int


def _as_rgba(frame) -> np.ndarray:
    if isinstance(frame, (bytes, bytearray, memoryview)):
        rgba = np.frombuffer(frame, dtype=np.uint8)
    else:
        rgba = np.asarray(frame, dtype=np.uint8)
    if rgba.ndim == 1 and rgba.size % 4 != 0:
        raise ValueError(f"Flat RGBA data must hold 4 bytes per pixel, got {rgba.size} bytes")
    if rgba.shape[-1] != 4 and rgba.ndim > 1:
        raise ValueError(f"Expected RGBA pixel data, got array of shape {rgba.shape}")
    return rgba


def _color_keys(rgb: np.ndarray) -> np.ndarray:
    """Pack (N, 3) 8-bit channels into 15-bit keys of their 5-bit color."""
    r = (rgb[:, 0] >> RGB888_TO_5BIT_SHIFT).astype(np.int32)
    g = (rgb[:, 1] >> RGB888_TO_5BIT_SHIFT).astype(np.int32)
    b = (rgb[:, 2] >> RGB888_TO_5BIT_SHIFT).astype(np.int32)
    return (r << 10) | (g << 5) | b


def _split_keys(keys: np.ndarray) -> np.ndarray:
    return np.stack([(keys >> 10) & 0x1F, (keys >> 5) & 0x1F, keys & 0x1F], axis=1)


def _pixel_shape(rgba: np.ndarray) -> tuple[int, ...]:
    if rgba.ndim == 1:
        return (rgba.size // 4,)
    return rgba.shape[:-1]


def build_histogram(frames: Sequence, alpha_threshold: int = ALPHA_THRESHOLD) -> list[WeightedColor]:
    """
    Count opaque pixels per 5-bit color across all frames.

    Colors are listed in the order they were first seen (frame by frame,
    row-major), which keeps the later stable sorts deterministic.
    """
    key_chunks = []
    for frame in frames:
        rgba = _as_rgba(frame).reshape(-1, 4)
        opaque = rgba[rgba[:, 3] >= alpha_threshold]
        key_chunks.append(_color_keys(opaque))

    if not key_chunks:
        return []
    keys = np.concatenate(key_chunks)
    if keys.size == 0:
        return []

    unique_keys, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.argsort(first_seen, kind="stable")
    return [
        WeightedColor(
            int(unique_keys[i] >> 10) & 0x1F,
            int(unique_keys[i] >> 5) & 0x1F,
            int(unique_keys[i]) & 0x1F,
            int(counts[i]),
        )
        for i in order
    ]


def median_cut(histogram: list[WeightedColor], max_colors: int) -> list[Bucket]:
    """Split the histogram into at most max_colors buckets."""
    buckets = [Bucket(list(histogram))]
    while len(buckets) < max_colors:
        candidates = [(i, b) for i, b in enumerate(buckets) if len(b.colors) > 1]
        if not candidates:
            break
        idx, bucket = max(candidates, key=lambda item: item[1].max_range)
        low, high = bucket.split()
        if not low.colors or not high.colors:
            break
        del buckets[idx]
        buckets.append(low)
        buckets.append(high)
    return buckets


def remap_frame(frame, centroids: Sequence[tuple[int, int, int]],
                alpha_threshold: int = ALPHA_THRESHOLD) -> np.ndarray:
    """
    Map every pixel to 1 + the index of its nearest centroid.

    Transparent pixels map to 0. Ties go to the earlier centroid.
    Distances are taken once per distinct 5-bit color (at most 32768).
    """
    rgba = _as_rgba(frame)
    shape = _pixel_shape(rgba)
    flat = rgba.reshape(-1, 4)
    indexed = np.zeros(flat.shape[0], dtype=np.uint8)

    if centroids:
        opaque = flat[:, 3] >= alpha_threshold
        keys = _color_keys(flat[opaque])
        unique_keys, inverse = np.unique(keys, return_inverse=True)
        colors = _split_keys(unique_keys)
        centers = np.asarray(centroids, dtype=np.int32)
        diff = colors[:, None, :] - centers[None, :, :]
        distances = (diff * diff).sum(axis=2)
        nearest = np.argmin(distances, axis=1).astype(np.uint8) + 1
        indexed[opaque] = nearest[inverse.reshape(-1)]

    return indexed.reshape(shape)


def quantize_colors(frames: Sequence, max_colors: int,
                    alpha_threshold: int = ALPHA_THRESHOLD,
                    name: str = "Quantized") -> QuantizeResult:
    """
    Reduce RGBA frames to a shared 16-color palette.

    Args:
        frames: Equal-sized RGBA frames (H x W x 4 arrays, or flat RGBA bytes-like data)
        max_colors: Target color count; clamped to 15 since index 0 is reserved
        alpha_threshold: Alpha below this is transparent
        name: Name for the resulting palette

    Returns:
        QuantizeResult with the palette, one index buffer per frame (same
        pixel shape as the input) and the number of distinct 5-bit colors
    """
    max_colors = min(max_colors, MAX_QUANTIZED_COLORS)
    histogram = build_histogram(frames, alpha_threshold)
    colors_found = len(histogram)

    if max_colors <= 0 or not histogram:
        # Nothing to represent: everything collapses onto the transparent slot
        logger.debug(f"Degenerate quantization (max_colors={max_colors}, colors={colors_found})")
        centroids = []
    else:
        buckets = median_cut(histogram, max_colors)
        centroids = [bucket.centroid() for bucket in buckets]

    palette_colors = [BLACK] + [SNESColor.from_rgb(*c) for c in centroids]
    palette = Palette(name, tuple(palette_colors))

    indexed_frames = [remap_frame(frame, centroids, alpha_threshold) for frame in frames]

    logger.debug(
        f"Quantized {colors_found} colors to {len(centroids)} "
        f"across {len(indexed_frames)} frame(s)"
    )
    return QuantizeResult(palette, indexed_frames, colors_found)
