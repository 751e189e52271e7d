"""Tile grid generation.

Grids are flat row-major sequences of color names. When a grid is
adjacency-aware, a cell avoids the perceptual category of its neighbours
whenever the palette allows it; otherwise the whole palette is fair game.
"""

import random
from typing import Iterable, List, Optional, Sequence

from .palette import PLACEHOLDER_COLOR, color_category


DEFAULT_RESHUFFLE_COUNT = 3


def _pick(palette: Sequence[str], neighbours: Iterable[str], rng) -> str:
    blocked = {color_category(c) for c in neighbours}
    candidates = [c for c in palette if color_category(c) not in blocked]
    return rng.choice(candidates or list(palette))


def neighbour_indices(index: int, cell_count: int, column_count: int,
                      all_sides: bool = True) -> List[int]:
    """Indices of the cells next to ``index``.

    With ``all_sides`` False only the left and top neighbours are returned,
    which is all a row-major fill has seen so far.
    """
    col = index % column_count
    found = []
    if col > 0:
        found.append(index - 1)
    if index - column_count >= 0:
        found.append(index - column_count)
    if all_sides:
        if col < column_count - 1 and index + 1 < cell_count:
            found.append(index + 1)
        if index + column_count < cell_count:
            found.append(index + column_count)
    return found


def build_grid(palette: Sequence[str], cell_count: int, column_count: int,
               adjacency_aware: bool = False,
               rng: Optional[random.Random] = None) -> List[str]:
    rng = rng or random
    if not palette:
        return [PLACEHOLDER_COLOR] * cell_count
    if not adjacency_aware:
        return [rng.choice(palette) for _ in range(cell_count)]

    grid: List[str] = []
    for index in range(cell_count):
        around = [grid[i] for i in neighbour_indices(index, cell_count, column_count, all_sides=False)]
        grid.append(_pick(palette, around, rng))
    return grid


def partial_reshuffle(grid: Sequence[str], palette: Sequence[str], column_count: int,
                      count: int = DEFAULT_RESHUFFLE_COUNT, adjacency_aware: bool = False,
                      rng: Optional[random.Random] = None) -> List[str]:
    """Recolor ``count`` distinct random cells and return the new grid.

    Each recolored cell is checked against its current four neighbours,
    including cells recolored earlier in the same pass.
    """
    rng = rng or random
    cells = list(grid)
    picked = rng.sample(range(len(cells)), max(0, min(count, len(cells))))
    for index in picked:
        if not palette:
            cells[index] = PLACEHOLDER_COLOR
        elif adjacency_aware:
            around = [cells[i] for i in neighbour_indices(index, len(cells), column_count)]
            cells[index] = _pick(palette, around, rng)
        else:
            cells[index] = rng.choice(palette)
    return cells


def pick_target(grid: Sequence[str], rng: Optional[random.Random] = None) -> str:
    rng = rng or random
    if not grid:
        return PLACEHOLDER_COLOR
    return rng.choice(list(grid))
