# environment.py

import logging

import numpy as np
from scipy import ndimage

from config import GRID_SIZE, DEAD_END_FRACTION
from errors import GenerationInvariantViolation
from randomized_set import RandomizedSet
from results import Snapshot

logger = logging.getLogger(__name__)

# 4-connectivity, used both for neighbour counts and for the connectivity check
CROSS = ndimage.generate_binary_structure(2, 1)


class Environment:
    """
    Generates the ship: a square grid of open/closed cells grown as a random
    tree from one interior cell, then loosened by opening a share of the cells
    next to dead ends so that some corridors join into loops.

    Cells are addressed by a linear index idx = y * grid_size + x. `open_map`
    is the (grid_size, grid_size) boolean layout indexed [y, x] and
    `open_cells` is a flat view of the same memory. The outer ring is always
    closed and the open cells always form one 4-connected component; both are
    checked once generation finishes.
    """

    def __init__(self, grid_size=GRID_SIZE, rng=None, dead_end_fraction=DEAD_END_FRACTION):
        if grid_size < 4:
            raise ValueError(f"grid_size must be at least 4, got {grid_size}")
        if not 0.0 <= dead_end_fraction <= 1.0:
            raise ValueError(f"dead_end_fraction must be in [0, 1], got {dead_end_fraction}")
        self.rng = rng if rng is not None else np.random.default_rng()
        self.dead_end_fraction = dead_end_fraction
        self._allocate(grid_size)

        self._generate_tree()
        self._open_dead_ends()
        self._check_invariants()
        logger.debug("Generated %dx%d ship with %d open cells",
                     grid_size, grid_size, self.num_open)

    @classmethod
    def from_layout(cls, layout):
        """
        Build an environment from an explicit boolean layout (True = open).
        The layout must be square and satisfy the same invariants as a
        generated ship.
        """
        layout = np.asarray(layout, dtype=bool)
        if layout.ndim != 2 or layout.shape[0] != layout.shape[1]:
            raise ValueError(f"layout must be a square 2D array, got shape {layout.shape}")
        if layout.shape[0] < 3:
            raise ValueError(f"layout side must be at least 3, got {layout.shape[0]}")

        env = cls.__new__(cls)
        env.rng = None
        env.dead_end_fraction = 0.0
        env._allocate(layout.shape[0])
        env.open_map[:, :] = layout

        counts = ndimage.correlate(layout.astype(np.int64), CROSS.astype(np.int64),
                                   mode="constant", cval=0) - layout
        counts[[0, -1], :] = 0
        counts[:, [0, -1]] = 0
        env.neighbor_count[:] = counts.reshape(-1)

        env._check_invariants()
        return env

    def _allocate(self, grid_size):
        self.grid_size = grid_size
        n = grid_size * grid_size
        self.open_map = np.zeros((grid_size, grid_size), dtype=bool)
        self.open_cells = self.open_map.reshape(-1)
        self.neighbor_count = np.zeros(n, dtype=np.int64)
        # Up, down, left, right in linear-index steps
        self.directions = (-grid_size, grid_size, -1, 1)
        idx = np.arange(n)
        self.xs = idx % grid_size
        self.ys = idx // grid_size
        self._frontier = RandomizedSet()

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def _generate_tree(self):
        """
        Open a random interior cell, then keep opening a random frontier cell
        (closed, exactly one open neighbour) until the frontier is empty.
        """
        self._open_cell(self.random_interior_cell(self.rng))
        while not self._frontier.is_empty():
            cell = self._frontier.random_element(self.rng)
            self._frontier.remove(cell)
            self._open_cell(cell)

    def _open_dead_ends(self):
        """
        Collect the closed interior neighbours of every dead end (open cell with
        one open neighbour) and open a random `dead_end_fraction` of them.
        """
        to_open = RandomizedSet()
        dead_ends = np.flatnonzero(self.open_cells & (self.neighbor_count == 1))
        for cell in dead_ends:
            for nbr in self._interior_neighbors(int(cell)):
                if not self.open_cells[nbr]:
                    to_open.add(nbr)

        remaining = int(len(to_open) * self.dead_end_fraction)
        logger.debug("Loosening %d of %d dead-end neighbours (%d dead ends)",
                     remaining, len(to_open), len(dead_ends))
        while remaining > 0:
            cell = to_open.random_element(self.rng)
            to_open.remove(cell)
            self._open_cell(cell, loosening=True)
            remaining -= 1

    def _open_cell(self, cell, loosening=False):
        """
        Open `cell` and bump the open-neighbour count of its interior
        neighbours. Outside the loosening pass, a closed neighbour reaching one
        open neighbour joins the frontier and one reaching two leaves it, which
        keeps the grown skeleton free of cycles.
        """
        if self.open_cells[cell]:
            raise GenerationInvariantViolation(f"cell {cell} is already open")
        self.open_cells[cell] = True

        for nbr in self._interior_neighbors(cell):
            self.neighbor_count[nbr] += 1
            if loosening or self.open_cells[nbr]:
                continue
            if self.neighbor_count[nbr] == 1:
                self._frontier.add(nbr)
            elif self.neighbor_count[nbr] >= 2:
                self._frontier.remove(nbr)

    def _check_invariants(self):
        ring = self.open_map.copy()
        ring[1:-1, 1:-1] = False
        if ring.any():
            raise GenerationInvariantViolation(
                f"{int(ring.sum())} outer-ring cells are open")

        _, num_components = ndimage.label(self.open_map, structure=CROSS)
        if num_components != 1:
            raise GenerationInvariantViolation(
                f"open cells form {num_components} components, expected 1")

    # ------------------------------------------------------------------
    # Geometry helpers
    # ------------------------------------------------------------------

    @property
    def num_open(self):
        return int(self.open_cells.sum())

    @property
    def count_map(self):
        return self.neighbor_count.reshape(self.grid_size, self.grid_size)

    def is_open(self, idx):
        return bool(self.open_cells[idx])

    def is_interior(self, idx):
        x, y = self.coords(idx)
        return 0 < x < self.grid_size - 1 and 0 < y < self.grid_size - 1

    def coords(self, idx):
        return idx % self.grid_size, idx // self.grid_size

    def index(self, x, y):
        return y * self.grid_size + x

    def manhattan_distance(self, a, b):
        ax, ay = self.coords(a)
        bx, by = self.coords(b)
        return abs(ax - bx) + abs(ay - by)

    def _interior_neighbors(self, idx):
        out = []
        for step in self.directions:
            nbr = idx + step
            if 0 <= nbr < self.open_cells.size and self.is_interior(nbr):
                out.append(nbr)
        return out

    def neighbors(self, idx):
        """Open 4-neighbours of `idx`."""
        return [nbr for nbr in self._interior_neighbors(idx) if self.open_cells[nbr]]

    def random_interior_cell(self, rng):
        x = int(rng.integers(1, self.grid_size - 1))
        y = int(rng.integers(1, self.grid_size - 1))
        return self.index(x, y)

    def random_open_cell(self, rng, exclude=None):
        """Uniformly random open cell, optionally excluding one index."""
        mask = self.open_cells.copy()
        if exclude is not None:
            mask[exclude] = False
        choices = np.flatnonzero(mask)
        if choices.size == 0:
            raise ValueError("no open cell available")
        return int(rng.choice(choices))

    def snapshot(self):
        return Snapshot(open_map=Snapshot.frozen(self.open_map),
                        values=Snapshot.frozen(self.count_map))
