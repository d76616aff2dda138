"""
Lumina Grid Effects Test Suite

Tests for the effect physics, the bounded simulation, the brightness
field and the self-terminating frame driver.

Run with: pytest tests/test_effects.py -v
Or: python tests/test_effects.py
"""

import math
import numpy as np
import sys
import os
from dataclasses import replace

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Try to import pytest, but allow running without it
try:
    import pytest
    PYTEST_AVAILABLE = True
except ImportError:
    PYTEST_AVAILABLE = False

from lumina.brightness import brightness_field, cell_brightness, is_displaced
from lumina.constants import FLOOR_Y, MAX_EFFECTS
from lumina.effects import (EffectSimulation, SPLASH_PARTICLES, rebound_velocity,
                            spawn_effect, step_effect)
from lumina.layers import EffectArchetype
from lumina.render_loop import FrameDriver
from fakes import ManualScheduler, VirtualClock

RIPPLE = EffectArchetype.RIPPLE
GRAVITY = EffectArchetype.GRAVITY
SPLASH = EffectArchetype.SPLASH
STAR = EffectArchetype.STAR


def spawn(archetype, row=5, col=5, layer=0, now_ms=0.0):
    return spawn_effect(archetype, row, col, layer, '#ffffff', now_ms,
                        np.random.default_rng(0))


class TestTimedEffects:
    """Test RIPPLE and STAR lifetimes"""

    def test_ripple_lives_600ms(self):
        effect = spawn(RIPPLE)
        assert step_effect(effect, 600.0) is not None
        assert step_effect(effect, 601.0) is None

    def test_star_ends_at_600ms(self):
        effect = spawn(STAR)
        assert step_effect(effect, 599.0) is not None
        assert step_effect(effect, 600.0) is None


class TestGravity:
    """Test the falling ball"""

    def test_rebound_velocity(self):
        assert rebound_velocity(FLOOR_Y) == 0.0
        assert rebound_velocity(16.0) == 0.0
        assert abs(rebound_velocity(15.0) - (-math.sqrt(0.025))) < 1e-12

    def test_origin_on_floor_never_nan(self):
        effect = spawn(GRAVITY, row=FLOOR_Y)
        for _ in range(5):
            effect = step_effect(effect, 10.0)
            assert effect is not None
            assert not math.isnan(effect.y)
            assert not math.isnan(effect.dy)
        assert effect.y <= FLOOR_Y

    def test_falls_and_bounces(self):
        effect = spawn(GRAVITY, row=10)
        assert effect.y == 10.0 and effect.dy == 0.0
        previous = effect
        for _ in range(200):
            effect = step_effect(effect, 100.0)
            if effect.y == FLOOR_Y:
                break
            assert effect.y >= previous.y
            previous = effect
        assert effect.y == FLOOR_Y
        assert abs(effect.dy - rebound_velocity(10)) < 1e-12
        assert effect.dy < 0

    def test_never_below_floor(self):
        effect = spawn(GRAVITY, row=0)
        for frame in range(150):
            effect = step_effect(effect, frame * 16.0)
            assert effect.y <= FLOOR_Y

    def test_comes_to_rest_at_floor(self):
        effect = replace(spawn(GRAVITY, row=10), y=FLOOR_Y, dy=-0.06)
        assert step_effect(effect, 100.0) is None

    def test_times_out(self):
        effect = spawn(GRAVITY, row=0)
        assert step_effect(effect, 3001.0) is None


class TestSplash:
    """Test particle bursts"""

    def test_twelve_particles(self):
        effect = spawn(SPLASH)
        assert len(effect.particles) == SPLASH_PARTICLES == 12
        assert all(p.life == 1.0 for p in effect.particles)
        assert all(1.0 <= p.scale < 2.0 for p in effect.particles)

    def test_particles_move_and_fade(self):
        effect = spawn(SPLASH)
        stepped = step_effect(effect, 16.0)
        assert all(abs(p.life - 0.98) < 1e-9 for p in stepped.particles)
        assert any(p.r != 0.0 or p.c != 0.0 for p in stepped.particles)
        assert all(a.scale > b.scale for a, b in zip(effect.particles, stepped.particles))

    def test_removed_after_about_fifty_frames(self):
        effect = spawn(SPLASH)
        for _ in range(49):
            effect = step_effect(effect, 0.0)
        assert effect is not None
        for _ in range(2):
            if effect is not None:
                effect = step_effect(effect, 0.0)
        assert effect is None


class TestSimulation:
    """Test the bounded effect collection"""

    def test_capacity(self):
        sim = EffectSimulation(clock_ms=lambda: 0.0)
        for i in range(MAX_EFFECTS):
            assert sim.spawn(STAR, i % 16, i % 16, 0) is not None
        assert sim.spawn(STAR, 0, 0, 0) is None
        assert len(sim) == 150
        assert sim.rejected_count == 1

    def test_step_keeps_newest(self):
        sim = EffectSimulation(clock_ms=lambda: 0.0)
        for i in range(10):
            sim.spawn(RIPPLE, i, 0, 0)
        sim.capacity = 5
        assert sim.step() == 5
        assert [e.row for e in sim.effects()] == [5, 6, 7, 8, 9]

    def test_step_removes_finished(self):
        now = [0.0]
        sim = EffectSimulation(clock_ms=lambda: now[0])
        sim.spawn(RIPPLE, 0, 0, 0)
        now[0] = 300.0
        sim.spawn(STAR, 1, 1, 0)
        now[0] = 650.0
        assert sim.step() == 1
        assert sim.effects()[0].archetype == STAR

    def test_insert_listener(self):
        sim = EffectSimulation(clock_ms=lambda: 0.0)
        inserted = []
        sim.add_insert_listener(inserted.append)
        effect = sim.spawn(RIPPLE, 2, 2, 1)
        assert inserted == [effect]

    def test_effects_for_layer(self):
        sim = EffectSimulation(clock_ms=lambda: 0.0)
        sim.spawn(RIPPLE, 0, 0, 0)
        sim.spawn(RIPPLE, 0, 0, 1)
        assert len(sim.effects_for_layer(1)) == 1


class TestBrightness:
    """Test the per-cell brightness field"""

    def test_no_effects_is_dark(self):
        assert cell_brightness([], 0, 3, 3, 0.0) == 0.0
        assert not brightness_field([], 0, 0.0).any()

    def test_ripple_ring(self):
        effect = spawn(RIPPLE, row=5, col=5)
        assert cell_brightness([effect], 0, 5, 5, 0.0) == 1.0
        # 300 ms: radius 3.6, half life; distance 4 -> (1 - 0.4) * 0.5
        assert abs(cell_brightness([effect], 0, 5, 9, 300.0) - 0.3) < 1e-9
        assert cell_brightness([effect], 0, 5, 5, 700.0) == 0.0

    def test_star_arms_and_diagonals(self):
        effect = spawn(STAR, row=8, col=8)
        assert cell_brightness([effect], 0, 8, 8, 0.0) == 1.0
        assert abs(cell_brightness([effect], 0, 8, 10, 0.0) - 0.5) < 1e-9
        assert abs(cell_brightness([effect], 0, 9, 9, 0.0) - (2.0 / 3.0) * 0.7) < 1e-9
        assert cell_brightness([effect], 0, 9, 10, 0.0) == 0.0

    def test_gravity_ball_in_its_column(self):
        effect = spawn(GRAVITY, row=5, col=2)
        assert cell_brightness([effect], 0, 5, 2, 0.0) == 1.0
        assert cell_brightness([effect], 0, 5, 3, 0.0) == 0.0

    def test_splash_lights_origin(self):
        effect = spawn(SPLASH, row=4, col=4)
        assert cell_brightness([effect], 0, 4, 4, 0.0) == 1.0

    def test_other_layers_do_not_contribute(self):
        effect = spawn(STAR, row=8, col=8, layer=1)
        assert cell_brightness([effect], 0, 8, 8, 0.0) == 0.0
        assert cell_brightness([effect], 1, 8, 8, 0.0) == 1.0

    def test_field_bounded(self):
        effects = [spawn(arch, row=r, col=r) for r in range(0, 16, 3)
                   for arch in (RIPPLE, STAR, SPLASH, GRAVITY)]
        for now in (0.0, 100.0, 250.0):
            field = brightness_field(effects, 0, now)
            assert field.shape == (16, 16)
            assert field.min() >= 0.0
            assert field.max() <= 1.0

    def test_is_displaced(self):
        effect = spawn(GRAVITY, row=3, col=4, layer=1)
        assert is_displaced([effect], 1, 3, 4)
        assert not is_displaced([effect], 0, 3, 4)
        assert not is_displaced([spawn(RIPPLE, row=3, col=4, layer=1)], 1, 3, 4)


class TestFrameDriver:
    """Test the self-terminating render loop"""

    def make(self):
        clock = VirtualClock()
        scheduler = ManualScheduler(clock)
        sim = EffectSimulation(clock_ms=clock.now_ms, rng=np.random.default_rng(0))
        driver = FrameDriver(sim, scheduler, 16)
        return sim, scheduler, driver

    def test_idle_until_first_insert(self):
        sim, scheduler, driver = self.make()
        assert not driver.is_running
        assert scheduler.pending == 0
        sim.spawn(RIPPLE, 0, 0, 0)
        assert driver.is_running
        assert scheduler.pending == 1

    def test_stops_when_drained_and_restarts(self):
        sim, scheduler, driver = self.make()
        frames = []
        driver.add_frame_listener(lambda: frames.append(driver.frame_count))
        sim.spawn(RIPPLE, 0, 0, 0)
        scheduler.advance(1000)
        assert not driver.is_running
        assert scheduler.pending == 0
        assert len(sim) == 0
        # Last frame at 608 ms removes the ripple
        assert driver.frame_count == 38
        assert len(frames) == 38

        sim.spawn(STAR, 1, 1, 0)
        assert driver.is_running

    def test_multiple_inserts_one_frame_chain(self):
        sim, scheduler, driver = self.make()
        for i in range(5):
            sim.spawn(STAR, i, i, 0)
        assert scheduler.pending == 1

    def test_superseded_frame_callback_is_ignored(self):
        sim, scheduler, driver = self.make()
        sim.spawn(RIPPLE, 0, 0, 0)
        _, _, stale_callback, stale_args = scheduler._queue[0]
        driver.stop()
        sim.spawn(STAR, 1, 1, 0)
        stale_callback(*stale_args)
        assert driver.frame_count == 0
        assert driver.is_running
        assert scheduler.pending == 1

    def test_stop_and_dispose(self):
        sim, scheduler, driver = self.make()
        sim.spawn(RIPPLE, 0, 0, 0)
        driver.stop()
        assert scheduler.pending == 0
        driver.dispose()
        driver.dispose()
        sim.spawn(RIPPLE, 0, 0, 0)
        assert not driver.is_running
        assert scheduler.pending == 0


def run_tests_standalone():
    """Run tests without pytest for environments where pytest is not available"""
    import traceback

    test_classes = [
        TestTimedEffects,
        TestGravity,
        TestSplash,
        TestSimulation,
        TestBrightness,
        TestFrameDriver,
    ]

    total_passed = 0
    total_failed = 0
    failed_tests = []

    for test_class in test_classes:
        print(f"\n{test_class.__name__}:")
        instance = test_class()

        test_methods = [m for m in dir(instance) if m.startswith('test_')]

        for method_name in test_methods:
            try:
                getattr(instance, method_name)()
                print(f"  ✓ {method_name}")
                total_passed += 1
            except AssertionError as e:
                print(f"  ✗ {method_name}: {e}")
                failed_tests.append((test_class.__name__, method_name, str(e)))
                total_failed += 1
            except Exception as e:
                print(f"  ✗ {method_name}: {type(e).__name__}: {e}")
                failed_tests.append((test_class.__name__, method_name, traceback.format_exc()))
                total_failed += 1

    print(f"\n{'='*60}")
    print(f"Results: {total_passed} passed, {total_failed} failed")

    if failed_tests:
        print(f"\nFailed tests:")
        for cls, method, error in failed_tests:
            print(f"  - {cls}.{method}")
        return 1
    print("\nAll tests passed!")
    return 0


if __name__ == '__main__':
    if PYTEST_AVAILABLE:
        exit(pytest.main([__file__, '-v']))
    else:
        exit(run_tests_standalone())
