"""Grid — the authoritative tile matrix of a settlement session.

The Grid is immutable.  Every mutation returns a new Grid in which only the
touched rows are rebuilt; all other rows (and the Tile objects inside them)
are shared with the previous version.  Readers holding an older Grid keep a
consistent snapshot while the simulation moves on.
"""

from __future__ import annotations

import dataclasses
import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from functools import cached_property
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.typing import NDArray

from frontier.world.tile import BuildingType, ResourceType, Tile

if TYPE_CHECKING:
    from numpy.random import Generator

Patch = Mapping[str, Any]

_FIXED_FIELDS = frozenset({"x", "y"})


@dataclass(frozen=True)
class Grid:
    """An N x N matrix of tiles.

    Attributes:
        rows: Tiles indexed as ``rows[y][x]``.
    """

    rows: tuple[tuple[Tile, ...], ...] = field(repr=False)

    @classmethod
    def blank(cls, size: int, *, explored: bool = True) -> Grid:
        """Build a featureless land grid, mostly useful for scenarios and tests.

        Args:
            size: Number of rows and columns.
            explored: Initial fog-of-war state for every tile.
        """
        return cls(
            rows=tuple(
                tuple(Tile(x=x, y=y, explored=explored) for x in range(size))
                for y in range(size)
            ),
        )

    @classmethod
    def generate(
        cls,
        size: int,
        rng: Generator,
        *,
        reveal_radius: float = 5.0,
        shore_margin: float = 2.0,
        noise_amplitude: float = 2.0,
        noise_lattice: int = 4,
        island_count: int = 2,
        stone_chance: float = 0.10,
        forest_chance: float = 0.15,
    ) -> Grid:
        """Generate the initial island for a new session.

        Land is everything closer to the centre than the shoreline, where the
        shoreline is pushed in and out by coherent value noise.  A few small
        satellite islands are then sprinkled in the surrounding sea.  Land
        tiles are seeded with stone and forest at the given rates, water
        tiles carry the ``WATER`` resource, and only the core around the
        centre starts explored.  Land value is computed for every tile.

        Args:
            size: Number of rows and columns.
            rng: Seeded random generator.
            reveal_radius: Tiles within this distance of the centre start
                explored.
            shore_margin: Distance of the unperturbed shore from the edge.
            noise_amplitude: Peak-to-peak shoreline displacement in tiles.
            noise_lattice: Resolution of the coarse noise lattice.
            island_count: Number of satellite islands to attempt.
            stone_chance: Probability a land tile carries stone.
            forest_chance: Probability a land tile carries forest.

        Returns:
            A fresh Grid.
        """
        from frontier.world.land_value import recompute_all

        center = size / 2
        ys, xs = np.mgrid[0:size, 0:size]
        dist = np.hypot(xs - center, ys - center)

        noise = _value_noise(size, rng, lattice=noise_lattice)
        shoreline = center - shore_margin + (noise - 0.5) * noise_amplitude
        land = dist <= shoreline

        for _ in range(island_count):
            angle = float(rng.uniform(0.0, 2.0 * math.pi))
            reach = float(rng.uniform(center - shore_margin + 1.0, center))
            ix = center + math.cos(angle) * reach
            iy = center + math.sin(angle) * reach
            radius = float(rng.uniform(0.8, 1.6))
            land |= np.hypot(xs - ix, ys - iy) <= radius

        rolls = rng.random((size, size))
        variants = rng.random((size, size))

        rows: list[tuple[Tile, ...]] = []
        for y in range(size):
            row: list[Tile] = []
            for x in range(size):
                if not land[y, x]:
                    resource = ResourceType.WATER
                elif rolls[y, x] < stone_chance:
                    resource = ResourceType.STONE
                elif rolls[y, x] < stone_chance + forest_chance:
                    resource = ResourceType.FOREST
                else:
                    resource = ResourceType.NONE
                row.append(
                    Tile(
                        x=x,
                        y=y,
                        resource=resource,
                        variant=float(variants[y, x]),
                        explored=bool(dist[y, x] <= reveal_radius),
                    ),
                )
            rows.append(tuple(row))
        return recompute_all(cls(rows=tuple(rows)))

    # -- Queries -------------------------------------------------------------

    @property
    def size(self) -> int:
        """Number of rows (and columns)."""
        return len(self.rows)

    def in_bounds(self, x: int, y: int) -> bool:
        """Return True if ``(x, y)`` lies on the grid."""
        return 0 <= x < self.size and 0 <= y < self.size

    def tile_at(self, x: int, y: int) -> Tile:
        """Return the tile at grid coordinates ``(x, y)``.

        Raises:
            IndexError: If coordinates are out of bounds.
        """
        if not self.in_bounds(x, y):
            msg = f"({x}, {y}) out of bounds for {self.size}x{self.size}"
            raise IndexError(msg)
        return self.rows[y][x]

    def neighbours(self, x: int, y: int) -> list[Tile]:
        """Return the up-to-8 tiles surrounding ``(x, y)``."""
        result: list[Tile] = []
        for dy in (-1, 0, 1):
            for dx in (-1, 0, 1):
                if dx == 0 and dy == 0:
                    continue
                nx, ny = x + dx, y + dy
                if self.in_bounds(nx, ny):
                    result.append(self.rows[ny][nx])
        return result

    def tiles(self) -> Iterator[Tile]:
        """Iterate over every tile in row-major order."""
        for row in self.rows:
            yield from row

    def unexplored(self) -> Iterator[Tile]:
        """Iterate over tiles still hidden by the fog of war."""
        return (tile for tile in self.tiles() if not tile.explored)

    def count(self, building: BuildingType) -> int:
        """Return how many tiles hold ``building``."""
        return sum(1 for tile in self.tiles() if tile.building is building)

    @cached_property
    def target_mask(self) -> NDArray[np.bool_]:
        """Boolean ``[y, x]`` mask of tiles hostiles will march on."""
        return np.array(
            [[tile.is_target for tile in row] for row in self.rows],
            dtype=bool,
        ).reshape(self.size, self.size)

    @cached_property
    def fog_mask(self) -> NDArray[np.bool_]:
        """Boolean ``[y, x]`` mask of unexplored tiles."""
        return np.array(
            [[not tile.explored for tile in row] for row in self.rows],
            dtype=bool,
        ).reshape(self.size, self.size)

    # -- Copy-on-write updates ----------------------------------------------

    def replace_tile(self, x: int, y: int, /, **patch: Any) -> Grid:
        """Return a new grid with tile ``(x, y)`` merged with ``patch``.

        Raises:
            IndexError: If coordinates are out of bounds.
            ValueError: If the patch tries to move the tile.
        """
        return self.replace_tiles({(x, y): patch})

    def replace_tiles(self, patches: Mapping[tuple[int, int], Patch]) -> Grid:
        """Apply several tile patches in a single new grid version.

        Only the rows that contain a patched tile are rebuilt.

        Args:
            patches: Mapping from ``(x, y)`` to the fields to overwrite.

        Raises:
            IndexError: If any coordinate is out of bounds.
            ValueError: If any patch tries to change ``x`` or ``y``.
        """
        by_row: dict[int, dict[int, Patch]] = {}
        for (x, y), patch in patches.items():
            if not self.in_bounds(x, y):
                msg = f"({x}, {y}) out of bounds for {self.size}x{self.size}"
                raise IndexError(msg)
            if _FIXED_FIELDS & patch.keys():
                msg = f"tile coordinates are immutable, got patch {dict(patch)}"
                raise ValueError(msg)
            by_row.setdefault(y, {})[x] = patch

        rows = list(self.rows)
        for y, row_patches in by_row.items():
            row = list(rows[y])
            for x, patch in row_patches.items():
                row[x] = dataclasses.replace(row[x], **patch)
            rows[y] = tuple(row)
        return Grid(rows=tuple(rows))

    def reveal_area(self, cx: int, cy: int, radius: int) -> tuple[Grid, list[Tile]]:
        """Lift the fog in the square of ``radius`` around ``(cx, cy)``.

        Tiles that were already explored are left untouched, so revealing the
        same area twice reports nothing the second time.

        Args:
            cx: Centre column.
            cy: Centre row.
            radius: Chebyshev radius of the revealed square.

        Returns:
            The new grid and the newly revealed tiles that carry a
            harvestable (non-water) resource.
        """
        patches: dict[tuple[int, int], Patch] = {}
        for y in range(cy - radius, cy + radius + 1):
            for x in range(cx - radius, cx + radius + 1):
                if self.in_bounds(x, y) and not self.rows[y][x].explored:
                    patches[(x, y)] = {"explored": True}
        if not patches:
            return self, []
        grid = self.replace_tiles(patches)
        found = [grid.rows[y][x] for (x, y) in patches if grid.rows[y][x].harvestable]
        return grid, found


def _value_noise(size: int, rng: Generator, *, lattice: int) -> NDArray[np.float64]:
    """Smooth 2D noise in ``[0, 1]`` from a bilinearly upsampled lattice."""
    coarse = rng.random((lattice + 1, lattice + 1))
    coords = np.linspace(0.0, float(lattice), size)
    idx = np.clip(np.floor(coords).astype(int), 0, lattice - 1)
    t = coords - idx
    t = t * t * (3.0 - 2.0 * t)  # smoothstep

    tx = t[np.newaxis, :]
    ty = t[:, np.newaxis]
    top = coarse[np.ix_(idx, idx)] * (1 - tx) + coarse[np.ix_(idx, idx + 1)] * tx
    bottom = (
        coarse[np.ix_(idx + 1, idx)] * (1 - tx) + coarse[np.ix_(idx + 1, idx + 1)] * tx
    )
    return top * (1 - ty) + bottom * ty
