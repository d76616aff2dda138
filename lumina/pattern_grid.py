"""
Pattern Grid for Lumina Grid
Four 16x16 boolean matrices (one per layer), drag painting and pointer geometry
"""

import logging
from typing import List, Optional, Tuple

import numpy as np

from .constants import COLS, NUM_LAYERS, ROWS, in_grid

logger = logging.getLogger(__name__)


class PatternGrid:
    """
    Authoritative "what should play" for all layers

    Every accessor checks its indices; an out-of-range layer, row or
    column is ignored (reads return False) rather than raising, so stray
    pointer events can never corrupt or crash the store.
    """

    def __init__(self, num_layers: int = NUM_LAYERS, rows: int = ROWS, cols: int = COLS):
        self.num_layers = num_layers
        self.rows = rows
        self.cols = cols
        self._cells = np.zeros((num_layers, rows, cols), dtype=bool)

    def _valid_layer(self, layer: int) -> bool:
        return isinstance(layer, (int, np.integer)) and 0 <= layer < self.num_layers

    def _valid(self, layer: int, row: int, col: int) -> bool:
        if (self._valid_layer(layer) and isinstance(row, (int, np.integer))
                and isinstance(col, (int, np.integer))
                and 0 <= row < self.rows and 0 <= col < self.cols):
            return True
        logger.debug("Ignoring out-of-range cell (%s, %s, %s)", layer, row, col)
        return False

    def is_active(self, layer: int, row: int, col: int) -> bool:
        if not self._valid(layer, row, col):
            return False
        return bool(self._cells[layer, row, col])

    def toggle_cell(self, layer: int, row: int, col: int) -> bool:
        """
        Flip a cell

        Returns:
            The new state (False if the address was invalid)
        """
        if not self._valid(layer, row, col):
            return False
        self._cells[layer, row, col] = not self._cells[layer, row, col]
        return bool(self._cells[layer, row, col])

    def set_cell(self, layer: int, row: int, col: int, value: bool):
        if self._valid(layer, row, col):
            self._cells[layer, row, col] = bool(value)

    def activate_cell_if_inactive(self, layer: int, row: int, col: int) -> bool:
        """
        Turn a cell on without ever turning it off (drag painting)

        Returns:
            True if the cell changed
        """
        if not self._valid(layer, row, col) or self._cells[layer, row, col]:
            return False
        self._cells[layer, row, col] = True
        return True

    def clear_layer(self, layer: int):
        """Deactivate every cell of one layer; other layers are untouched"""
        if self._valid_layer(layer):
            self._cells[layer].fill(False)

    def active_rows(self, layer: int, col: int) -> List[int]:
        """Rows of a layer that are active in a column, top to bottom"""
        if not (self._valid_layer(layer) and isinstance(col, (int, np.integer))
                and 0 <= col < self.cols):
            return []
        return [int(r) for r in np.flatnonzero(self._cells[layer, :, col])]

    def layer_snapshot(self, layer: int) -> np.ndarray:
        """Copy of one layer's matrix (rows x cols)"""
        if not self._valid_layer(layer):
            return np.zeros((self.rows, self.cols), dtype=bool)
        return self._cells[layer].copy()

    def snapshot(self) -> np.ndarray:
        """Copy of all matrices (layers x rows x cols)"""
        return self._cells.copy()

    def is_empty(self, layer: Optional[int] = None) -> bool:
        if layer is None:
            return not self._cells.any()
        if not self._valid_layer(layer):
            return True
        return not self._cells[layer].any()

    def active_count(self, layer: int) -> int:
        if not self._valid_layer(layer):
            return 0
        return int(self._cells[layer].sum())


class PaintGesture:
    """
    Press / drag / release handling for one pointer

    Press toggles the cell under the pointer. Dragging only switches
    cells on, and the last-touched guard keeps a drag that lingers over
    one cell from re-applying to it.
    """

    def __init__(self, grid: PatternGrid):
        self.grid = grid
        self.is_down = False
        self.last_touched: Optional[Tuple[int, int]] = None

    def press(self, layer: int, row: int, col: int) -> bool:
        """Start a gesture on a cell; returns the cell's new state"""
        self.is_down = True
        self.last_touched = None
        if not in_grid(row, col):
            return False
        state = self.grid.toggle_cell(layer, row, col)
        self.last_touched = (row, col)
        return state

    def drag(self, layer: int, row: int, col: int) -> bool:
        """Pointer moved onto a cell; returns True if the grid changed"""
        if not self.is_down or not in_grid(row, col):
            return False
        if self.last_touched == (row, col):
            return False
        changed = self.grid.activate_cell_if_inactive(layer, row, col)
        self.last_touched = (row, col)
        return changed

    def release(self):
        self.is_down = False
        self.last_touched = None


class GridGeometry:
    """
    Pointer coordinates to grid cells

    The grid is laid out as rows x cols square cells of cell_size
    pixels separated by gap pixels, starting at (origin_x, origin_y).
    Points that land in a gap or outside the grid hit no cell.
    """

    def __init__(self, cell_size: float = 28.0, gap: float = 4.0,
                 origin_x: float = 0.0, origin_y: float = 0.0,
                 rows: int = ROWS, cols: int = COLS):
        self.cell_size = cell_size
        self.gap = gap
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.rows = rows
        self.cols = cols

    @property
    def pitch(self) -> float:
        return self.cell_size + self.gap

    @property
    def width(self) -> float:
        return self.cols * self.pitch - self.gap

    @property
    def height(self) -> float:
        return self.rows * self.pitch - self.gap

    def cell_bounds(self, row: int, col: int) -> Tuple[float, float, float, float]:
        """(x0, y0, x1, y1) of a cell"""
        x0 = self.origin_x + col * self.pitch
        y0 = self.origin_y + row * self.pitch
        return x0, y0, x0 + self.cell_size, y0 + self.cell_size

    def cell_at(self, x: float, y: float) -> Optional[Tuple[int, int]]:
        """(row, col) under a point, or None"""
        rel_x = x - self.origin_x
        rel_y = y - self.origin_y
        if rel_x < 0 or rel_y < 0:
            return None
        col = int(rel_x // self.pitch)
        row = int(rel_y // self.pitch)
        if not (0 <= row < self.rows and 0 <= col < self.cols):
            return None
        # Inside the gap to the right of / below a cell
        if rel_x - col * self.pitch >= self.cell_size or rel_y - row * self.pitch >= self.cell_size:
            return None
        return row, col
