from collections import deque

import numpy as np
import pytest

from environment import Environment


def layout_from_rows(rows):
    """'#' is a wall, anything else is open."""
    return np.array([[ch != '#' for ch in row] for row in rows], dtype=bool)


# 5x5 open room with one internal wall, inside a closed ring
ROOM_ROWS = [
    "#######",
    "#.....#",
    "#.....#",
    "#.#...#",
    "#.....#",
    "#.....#",
    "#######",
]

# L-shaped corridor: (1,1) -> (3,1) -> (3,3)
CORRIDOR_ROWS = [
    "#####",
    "#...#",
    "###.#",
    "###.#",
    "#####",
]


def reachable_from(open_map, start):
    """Plain BFS flood fill over 4-neighbours, independent of scipy."""
    h, w = open_map.shape
    seen = {start}
    queue = deque([start])
    while queue:
        y, x = queue.popleft()
        for dy, dx in ((1, 0), (-1, 0), (0, 1), (0, -1)):
            ny, nx = y + dy, x + dx
            if 0 <= ny < h and 0 <= nx < w and open_map[ny, nx] and (ny, nx) not in seen:
                seen.add((ny, nx))
                queue.append((ny, nx))
    return seen


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def room():
    return Environment.from_layout(layout_from_rows(ROOM_ROWS))


@pytest.fixture
def corridor():
    return Environment.from_layout(layout_from_rows(CORRIDOR_ROWS))


@pytest.fixture
def ship():
    return Environment(grid_size=16, rng=np.random.default_rng(42))
