"""
Effect Simulation for Lumina Grid
Visual effects spawned by fired cells and their per-frame physics

Effects are immutable values tagged with an archetype. Each archetype
has one update rule, step_<archetype>(effect, now_ms), that returns the
effect's next state or None once it has finished. EffectSimulation owns
the bounded collection of live effects and applies the rules once per
render frame.
"""

import itertools
import math
import threading
import time
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Tuple

import numpy as np

from .constants import FLOOR_Y, MAX_EFFECTS
from .layers import EffectArchetype

# Physics constants
RIPPLE_SPEED = 0.012        # Cells per millisecond
RIPPLE_LIFETIME_MS = 600.0
STAR_LIFETIME_MS = 600.0
GRAVITY = 0.025             # Cells per frame squared
GRAVITY_TIMEOUT_MS = 3000.0
REST_VELOCITY = 0.05        # |dy| below this at the floor counts as resting
REST_DISTANCE = 0.1
SPLASH_PARTICLES = 12
SPLASH_DRIFT = 0.005        # Added to each particle's row velocity per frame
SPLASH_LIFE_DECAY = 0.02
SPLASH_SCALE_DECAY = 0.95


@dataclass(frozen=True)
class Particle:
    r: float        # Row offset from the effect origin
    c: float        # Column offset
    dr: float       # Row velocity (cells per frame)
    dc: float       # Column velocity
    life: float = 1.0
    scale: float = 1.0


@dataclass(frozen=True)
class Effect:
    id: int
    archetype: EffectArchetype
    row: float
    col: float
    layer: int
    color: str
    start_ms: float
    # GRAVITY
    y: float = 0.0
    dy: float = 0.0
    # SPLASH
    particles: Tuple[Particle, ...] = field(default_factory=tuple)

    def age_ms(self, now_ms: float) -> float:
        return now_ms - self.start_ms


def rebound_velocity(origin_row: float) -> float:
    """
    Upward velocity after hitting the floor

    Enough to climb back to the origin row. An origin on or below the
    floor has no height to climb back to and rebounds with 0, never NaN.
    """
    height = FLOOR_Y - origin_row
    if height > 0:
        return -math.sqrt(2.0 * GRAVITY * height)
    return 0.0


def spawn_effect(archetype: EffectArchetype, row: float, col: float, layer: int,
                 color: str, now_ms: float, rng: Optional[np.random.Generator] = None,
                 effect_id: int = 0) -> Effect:
    """Create the initial state of an effect at (row, col)"""
    effect = Effect(effect_id, archetype, row, col, layer, color, now_ms)

    if archetype == EffectArchetype.GRAVITY:
        return replace(effect, y=float(row), dy=0.0)

    if archetype == EffectArchetype.SPLASH:
        rng = rng if rng is not None else np.random.default_rng()
        particles = []
        for i in range(SPLASH_PARTICLES):
            angle = 2.0 * math.pi * i / SPLASH_PARTICLES
            speed = 0.1 + rng.random() * 0.3
            particles.append(Particle(
                r=0.0, c=0.0,
                dr=math.sin(angle) * speed,
                dc=math.cos(angle) * speed,
                life=1.0,
                scale=1.0 + rng.random(),
            ))
        return replace(effect, particles=tuple(particles))

    return effect


# ============ Update rules ============

def step_ripple(effect: Effect, now_ms: float) -> Optional[Effect]:
    """Purely time-driven; gone after 600 ms"""
    if effect.age_ms(now_ms) > RIPPLE_LIFETIME_MS:
        return None
    return effect


def step_gravity(effect: Effect, now_ms: float) -> Optional[Effect]:
    """Fall, bounce off the floor, stop when resting or after 3 s"""
    y = effect.y + effect.dy
    dy = effect.dy + GRAVITY

    if y > FLOOR_Y:
        y = FLOOR_Y
        dy = rebound_velocity(effect.row)

    if -REST_VELOCITY < dy < 0 and abs(y - FLOOR_Y) < REST_DISTANCE:
        return None
    if effect.age_ms(now_ms) > GRAVITY_TIMEOUT_MS:
        return None
    return replace(effect, y=y, dy=dy)


def step_splash(effect: Effect, now_ms: float) -> Optional[Effect]:
    """Move particles, fade them, drop the dead; gone when none remain"""
    particles = tuple(
        Particle(
            r=p.r + p.dr,
            c=p.c + p.dc,
            dr=p.dr + SPLASH_DRIFT,
            dc=p.dc,
            life=p.life - SPLASH_LIFE_DECAY,
            scale=p.scale * SPLASH_SCALE_DECAY,
        )
        for p in effect.particles
    )
    particles = tuple(p for p in particles if p.life > 0)
    if not particles:
        return None
    return replace(effect, particles=particles)


def step_star(effect: Effect, now_ms: float) -> Optional[Effect]:
    """Purely time-driven; gone at 600 ms"""
    if effect.age_ms(now_ms) >= STAR_LIFETIME_MS:
        return None
    return effect


STEP_RULES: Dict[EffectArchetype, Callable[[Effect, float], Optional[Effect]]] = {
    EffectArchetype.RIPPLE: step_ripple,
    EffectArchetype.GRAVITY: step_gravity,
    EffectArchetype.SPLASH: step_splash,
    EffectArchetype.STAR: step_star,
}


def step_effect(effect: Effect, now_ms: float) -> Optional[Effect]:
    """Advance any effect by one frame"""
    return STEP_RULES[effect.archetype](effect, now_ms)


def _monotonic_ms() -> float:
    return time.monotonic() * 1000.0


class EffectSimulation:
    """
    Bounded, time-ordered collection of live effects (oldest first)

    spawn() is called from the sequencer clock, step() from the render
    frame driver; both may run on different threads, so the list is
    guarded by a lock. Readers get a copy of the list and, because
    effects are immutable, can evaluate it without holding the lock.
    """

    def __init__(self, capacity: int = MAX_EFFECTS,
                 clock_ms: Callable[[], float] = _monotonic_ms,
                 rng: Optional[np.random.Generator] = None):
        self.capacity = capacity
        self._clock_ms = clock_ms
        self._rng = rng if rng is not None else np.random.default_rng()
        self._effects: List[Effect] = []
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._insert_listeners: List[Callable[[Effect], None]] = []

        self.rejected_count = 0  # Insertions dropped at capacity

    def now_ms(self) -> float:
        return self._clock_ms()

    def add_insert_listener(self, listener: Callable[[Effect], None]):
        """listener(effect) is called after every successful insertion"""
        self._insert_listeners.append(listener)

    def spawn(self, archetype: EffectArchetype, row: int, col: int, layer: int,
              color: str = "#ffffff") -> Optional[Effect]:
        """
        Create and insert a new effect

        Returns:
            The effect, or None if the collection is full
        """
        with self._lock:
            if len(self._effects) >= self.capacity:
                self.rejected_count += 1
                return None
            effect = spawn_effect(archetype, row, col, layer, color, self._clock_ms(),
                                  self._rng, next(self._ids))
            self._effects.append(effect)
        self._notify(effect)
        return effect

    def add(self, effect: Effect) -> bool:
        """Insert a prebuilt effect; False if the collection is full"""
        with self._lock:
            if len(self._effects) >= self.capacity:
                self.rejected_count += 1
                return False
            self._effects.append(effect)
        self._notify(effect)
        return True

    def step(self, now_ms: Optional[float] = None) -> int:
        """
        Advance every live effect by one frame

        Only the newest `capacity` effects are processed; anything older
        is dropped. Finished effects are removed.

        Returns:
            Number of effects still live
        """
        if now_ms is None:
            now_ms = self._clock_ms()
        with self._lock:
            current = self._effects[-self.capacity:] if self.capacity > 0 else []
            survivors = []
            for effect in current:
                updated = step_effect(effect, now_ms)
                if updated is not None:
                    survivors.append(updated)
            self._effects = survivors
            return len(survivors)

    def effects(self) -> List[Effect]:
        """Copy of the live effects, oldest first"""
        with self._lock:
            return list(self._effects)

    def effects_for_layer(self, layer: int) -> List[Effect]:
        with self._lock:
            return [e for e in self._effects if e.layer == layer]

    def clear(self):
        with self._lock:
            self._effects = []

    def is_empty(self) -> bool:
        with self._lock:
            return not self._effects

    def __len__(self):
        with self._lock:
            return len(self._effects)

    def _notify(self, effect: Effect):
        for listener in self._insert_listeners:
            listener(effect)
