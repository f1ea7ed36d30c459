#!/usr/bin/env python3
"""
Orientation-aware tile deduplication

A TileTable is an explicit, append-only accumulator of unique tiles. Each
import or drawing save threads its own table through the pipeline; the
table does no locking, so one table must only ever have a single writer.
"""

from typing import Iterable, Iterator, NamedTuple, Optional

from .logging_config import get_logger
from .models.tile import Tile

logger = get_logger("tile_dedup")


class TileMatch(NamedTuple):
    """Table index plus the flips that turn that entry into the candidate"""

    index: int
    flip_h: bool = False
    flip_v: bool = False


def orientations(tile: Tile) -> list[tuple[Tile, bool, bool]]:
    """The candidate's four orientations, in match priority order."""
    flipped_h = tile.flipped_horizontally()
    return [
        (tile, False, False),
        (flipped_h, True, False),
        (tile.flipped_vertically(), False, True),
        (flipped_h.flipped_vertically(), True, True),
    ]


class TileTable:
    """Ordered, append-only table of unique tiles"""

    def __init__(self, tiles: Iterable[Tile] = ()):
        self._tiles: list[Tile] = []
        self._lookup: dict[tuple[int, ...], int] = {}
        for tile in tiles:
            self._append(tile)

    def _append(self, tile: Tile) -> int:
        index = len(self._tiles)
        self._tiles.append(tile)
        # Keep the earliest index if a preloaded table already had duplicates
        self._lookup.setdefault(tile.pixels, index)
        return index

    @property
    def tiles(self) -> tuple[Tile, ...]:
        return tuple(self._tiles)

    def __len__(self) -> int:
        return len(self._tiles)

    def __getitem__(self, index: int) -> Tile:
        return self._tiles[index]

    def __iter__(self) -> Iterator[Tile]:
        return iter(self._tiles)

    def find(self, candidate: Tile) -> Optional[TileMatch]:
        """
        Look the candidate up as-is, then flipped H, V and both.

        Returns:
            The first match, or None. Applying the returned flips to the
            matched tile reproduces the candidate's pixels.
        """
        for variant, flip_h, flip_v in orientations(candidate):
            index = self._lookup.get(variant.pixels)
            if index is not None:
                return TileMatch(index, flip_h, flip_v)
        return None

    def add(self, candidate: Tile) -> TileMatch:
        """Reuse a matching tile or append the candidate as a new entry."""
        match = self.find(candidate)
        if match is not None:
            return match
        return TileMatch(self._append(candidate))

    def merge(self, other: "TileTable") -> list[TileMatch]:
        """
        Fold another table into this one.

        Returns:
            For each tile of `other`, where it now lives in this table
        """
        remap = [self.add(tile) for tile in other]
        logger.debug(f"Merged {len(other)} tiles, table now holds {len(self)}")
        return remap

    def since(self, start: int) -> tuple[Tile, ...]:
        """Tiles appended after the table held `start` entries."""
        return tuple(self._tiles[start:])

    def copy(self) -> "TileTable":
        return TileTable(self._tiles)


def deduplicate_tile(candidate: Tile, table: TileTable) -> TileMatch:
    """Module-level form of TileTable.add."""
    return table.add(candidate)
