"""
Brightness Field for Lumina Grid
Per-cell light intensity from the live effects of the displayed layer

Everything here is a pure function of (effects, layer, cell, time):
nothing is mutated, so the field can be evaluated at any moment from
any thread on a copy of the effect list.
"""

import math
from typing import Callable, Dict, Iterable, Sequence

import numpy as np

from .constants import COLS, ROWS
from .effects import (Effect, RIPPLE_LIFETIME_MS, RIPPLE_SPEED,
                      STAR_LIFETIME_MS)
from .layers import EffectArchetype

# Non-splash effects further than this in both axes cannot light a cell
FAR_CELLS = 8

STAR_ARM_LENGTH = 4
STAR_DIAGONAL_LENGTH = 3
STAR_DIAGONAL_WEIGHT = 0.7
GRAVITY_BALL_RADIUS = 0.8
GRAVITY_TRAIL = 0.1


def ripple_contribution(effect: Effect, row: int, col: int, now_ms: float) -> float:
    """Expanding square ring, fading over its lifetime"""
    age = max(0.0, effect.age_ms(now_ms))
    life = 1.0 - age / RIPPLE_LIFETIME_MS
    if life <= 0:
        return 0.0
    radius = age * RIPPLE_SPEED
    dist = max(abs(row - effect.row), abs(col - effect.col))
    diff = abs(dist - radius)
    if diff < 1.0:
        return (1.0 - diff) * life
    return 0.0


def gravity_contribution(effect: Effect, row: int, col: int, now_ms: float) -> float:
    """Falling ball plus a faint trail back up to the origin"""
    if col != effect.col:
        return 0.0
    value = 0.0
    dist_y = abs(row - effect.y)
    if dist_y < GRAVITY_BALL_RADIUS:
        value += 1.0 - dist_y
    if effect.row <= row < effect.y:
        value += GRAVITY_TRAIL
    return value


def splash_contribution(effect: Effect, row: int, col: int, now_ms: float) -> float:
    """Soft discs around each particle, weighted by remaining life"""
    value = 0.0
    for p in effect.particles:
        dr = row - (effect.row + p.r)
        dc = col - (effect.col + p.c)
        if abs(dr) > 1 or abs(dc) > 1:
            continue
        dist = math.hypot(dr, dc)
        size = 0.5 * p.scale
        if dist < size:
            value += (1.0 - dist / size) * p.life
    return value


def star_contribution(effect: Effect, row: int, col: int, now_ms: float) -> float:
    """Cross arms plus dimmer diagonals, fading over its lifetime"""
    life = 1.0 - max(0.0, effect.age_ms(now_ms)) / STAR_LIFETIME_MS
    if life <= 0:
        return 0.0
    dist_r = abs(row - effect.row)
    dist_c = abs(col - effect.col)
    value = 0.0
    if (dist_r == 0 and dist_c < STAR_ARM_LENGTH) or (dist_c == 0 and dist_r < STAR_ARM_LENGTH):
        value += (1.0 - max(dist_r, dist_c) / STAR_ARM_LENGTH) * life
    if dist_r == dist_c and dist_r < STAR_DIAGONAL_LENGTH:
        value += (1.0 - dist_r / STAR_DIAGONAL_LENGTH) * life * STAR_DIAGONAL_WEIGHT
    return value


CONTRIBUTIONS: Dict[EffectArchetype, Callable[[Effect, int, int, float], float]] = {
    EffectArchetype.RIPPLE: ripple_contribution,
    EffectArchetype.GRAVITY: gravity_contribution,
    EffectArchetype.SPLASH: splash_contribution,
    EffectArchetype.STAR: star_contribution,
}


def cell_brightness(effects: Sequence[Effect], layer: int, row: int, col: int,
                    now_ms: float) -> float:
    """
    Accumulated intensity of one cell

    Newest effects are summed first; accumulation stops as soon as the
    total reaches 1.0.

    Args:
        effects: Live effects, oldest first
        layer: Only effects owned by this layer contribute
        row, col: Cell to evaluate (any values; no indexing happens)
        now_ms: Current time on the simulation clock

    Returns:
        Brightness in [0, 1]; exactly 0 when nothing contributes
    """
    total = 0.0
    for effect in reversed(effects):
        if effect.layer != layer:
            continue
        if (effect.archetype != EffectArchetype.SPLASH
                and abs(effect.row - row) > FAR_CELLS and abs(effect.col - col) > FAR_CELLS):
            continue
        total += CONTRIBUTIONS[effect.archetype](effect, row, col, now_ms)
        if total >= 1.0:
            break
    return min(1.0, max(0.0, total))


def brightness_field(effects: Sequence[Effect], layer: int, now_ms: float,
                     rows: int = ROWS, cols: int = COLS) -> np.ndarray:
    """Brightness of every cell as a rows x cols float array"""
    field = np.zeros((rows, cols), dtype=np.float32)
    layer_effects = [e for e in effects if e.layer == layer]
    if not layer_effects:
        return field
    for r in range(rows):
        for c in range(cols):
            field[r, c] = cell_brightness(layer_effects, layer, r, c, now_ms)
    return field


def is_displaced(effects: Iterable[Effect], layer: int, row: int, col: int) -> bool:
    """True while a GRAVITY effect that started at this cell is live"""
    return any(
        e.layer == layer and e.archetype == EffectArchetype.GRAVITY
        and e.row == row and e.col == col
        for e in effects
    )
