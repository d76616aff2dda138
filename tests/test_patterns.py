"""
Lumina Grid Pattern Test Suite

Tests for the layer grids, drag painting, pointer geometry and the
layer configuration.

Run with: pytest tests/test_patterns.py -v
Or: python tests/test_patterns.py
"""

import numpy as np
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Try to import pytest, but allow running without it
try:
    import pytest
    PYTEST_AVAILABLE = True
except ImportError:
    PYTEST_AVAILABLE = False

from lumina.layers import EffectArchetype, LayerConfig, SynthKind, default_layers
from lumina.pattern_grid import GridGeometry, PaintGesture, PatternGrid


class TestPatternGrid:
    """Test basic grid storage"""

    def test_new_grid_is_empty(self):
        grid = PatternGrid()
        assert grid.snapshot().shape == (4, 16, 16)
        assert grid.is_empty()

    def test_toggle_returns_new_state(self):
        grid = PatternGrid()
        assert grid.toggle_cell(0, 3, 4) is True
        assert grid.is_active(0, 3, 4)
        assert grid.toggle_cell(0, 3, 4) is False
        assert not grid.is_active(0, 3, 4)

    def test_toggle_twice_restores_grid(self):
        grid = PatternGrid()
        grid.set_cell(1, 0, 0, True)
        before = grid.snapshot()
        grid.toggle_cell(1, 5, 5)
        grid.toggle_cell(1, 5, 5)
        assert np.array_equal(before, grid.snapshot())

    def test_activate_never_deactivates(self):
        grid = PatternGrid()
        assert grid.activate_cell_if_inactive(2, 7, 7) is True
        assert grid.activate_cell_if_inactive(2, 7, 7) is False
        assert grid.is_active(2, 7, 7)

    def test_clear_layer_leaves_others_untouched(self):
        grid = PatternGrid()
        for layer in range(4):
            grid.set_cell(layer, layer, layer, True)
        others = grid.snapshot()
        grid.clear_layer(1)
        assert grid.is_empty(1)
        for layer in (0, 2, 3):
            assert np.array_equal(grid.layer_snapshot(layer), others[layer])

    def test_out_of_range_is_ignored(self):
        grid = PatternGrid()
        assert grid.toggle_cell(4, 0, 0) is False
        assert grid.toggle_cell(0, 16, 0) is False
        assert grid.toggle_cell(0, 0, -1) is False
        assert grid.activate_cell_if_inactive(-1, 0, 0) is False
        grid.clear_layer(9)
        assert grid.is_empty()

    def test_non_integer_indices_are_ignored(self):
        grid = PatternGrid()
        assert grid.toggle_cell(0, 2.0, 3) is False
        assert grid.toggle_cell(None, 2, 3) is False
        assert grid.activate_cell_if_inactive(0, 2, '3') is False
        assert grid.is_active(0.0, 0, 0) is False
        assert grid.toggle_cell(np.int64(1), np.int64(2), 3) is True
        assert grid.active_count(1) == 1

    def test_active_rows_in_column(self):
        grid = PatternGrid()
        grid.set_cell(0, 12, 3, True)
        grid.set_cell(0, 2, 3, True)
        grid.set_cell(0, 5, 4, True)
        assert grid.active_rows(0, 3) == [2, 12]
        assert grid.active_rows(1, 3) == []

    def test_snapshot_is_a_copy(self):
        grid = PatternGrid()
        snap = grid.snapshot()
        snap[0, 0, 0] = True
        assert not grid.is_active(0, 0, 0)

    def test_active_count(self):
        grid = PatternGrid()
        grid.set_cell(3, 1, 1, True)
        grid.set_cell(3, 2, 2, True)
        assert grid.active_count(3) == 2
        assert grid.active_count(0) == 0


class TestPaintGesture:
    """Test press / drag / release painting"""

    def test_press_toggles(self):
        grid = PatternGrid()
        gesture = PaintGesture(grid)
        assert gesture.press(0, 4, 4) is True
        gesture.release()
        assert gesture.press(0, 4, 4) is False

    def test_drag_only_activates(self):
        grid = PatternGrid()
        grid.set_cell(0, 0, 2, True)
        gesture = PaintGesture(grid)
        gesture.press(0, 0, 0)
        gesture.drag(0, 0, 1)
        gesture.drag(0, 0, 2)
        assert grid.is_active(0, 0, 0)
        assert grid.is_active(0, 0, 1)
        assert grid.is_active(0, 0, 2)

    def test_drag_over_same_cell_applies_once(self):
        grid = PatternGrid()
        gesture = PaintGesture(grid)
        gesture.press(0, 1, 1)
        assert gesture.drag(0, 1, 2) is True
        assert gesture.drag(0, 1, 2) is False
        assert gesture.drag(0, 1, 2) is False
        assert grid.active_count(0) == 2

    def test_lingering_on_pressed_cell_does_not_undo(self):
        """Press toggled the cell on; motion inside it must not toggle it back"""
        grid = PatternGrid()
        gesture = PaintGesture(grid)
        gesture.press(0, 6, 6)
        gesture.drag(0, 6, 6)
        assert grid.is_active(0, 6, 6)

    def test_drag_without_press_does_nothing(self):
        grid = PatternGrid()
        gesture = PaintGesture(grid)
        assert gesture.drag(0, 3, 3) is False
        gesture.press(0, 3, 3)
        gesture.release()
        assert gesture.drag(0, 3, 4) is False
        assert grid.active_count(0) == 1

    def test_press_outside_grid(self):
        grid = PatternGrid()
        gesture = PaintGesture(grid)
        assert gesture.press(0, 20, 20) is False
        assert grid.is_empty()


class TestGridGeometry:
    """Test pointer -> cell mapping"""

    def test_cell_origin(self):
        geo = GridGeometry(cell_size=28, gap=4)
        assert geo.cell_at(0, 0) == (0, 0)
        assert geo.cell_at(27.9, 27.9) == (0, 0)

    def test_row_and_column(self):
        geo = GridGeometry(cell_size=28, gap=4)
        # x selects the column, y the row
        assert geo.cell_at(32, 64) == (2, 1)

    def test_gap_hits_nothing(self):
        geo = GridGeometry(cell_size=28, gap=4)
        assert geo.cell_at(30, 5) is None
        assert geo.cell_at(5, 29) is None

    def test_outside_hits_nothing(self):
        geo = GridGeometry(cell_size=28, gap=4)
        assert geo.cell_at(-1, 5) is None
        assert geo.cell_at(16 * 32, 0) is None
        assert geo.cell_at(0, 16 * 32) is None

    def test_bounds_round_trip(self):
        geo = GridGeometry(cell_size=20, gap=2, origin_x=10, origin_y=10)
        x0, y0, x1, y1 = geo.cell_bounds(7, 9)
        assert geo.cell_at((x0 + x1) / 2, (y0 + y1) / 2) == (7, 9)

    def test_size(self):
        geo = GridGeometry(cell_size=28, gap=4)
        assert geo.width == 16 * 32 - 4
        assert geo.height == 16 * 32 - 4


class TestLayers:
    """Test layer configuration"""

    def test_factory_layers(self):
        layers = default_layers()
        assert [l.name for l in layers] == ['LEAD', 'BASS', 'DRUM', 'CHRD']
        assert [l.kind for l in layers] == [SynthKind.SINE, SynthKind.TRIANGLE,
                                            SynthKind.DRUM, SynthKind.SQUARE]
        assert [l.effect for l in layers] == [EffectArchetype.RIPPLE, EffectArchetype.GRAVITY,
                                              EffectArchetype.SPLASH, EffectArchetype.STAR]
        assert [l.base_octave for l in layers] == [0.0, -1.0, 0.0, -0.5]
        assert all(l.volume == 0.8 for l in layers)

    def test_volume_clamped(self):
        layer = LayerConfig(0, 'X', SynthKind.SINE, 0, '#ffffff', EffectArchetype.STAR)
        layer.volume = 1.5
        assert layer.volume == 1.0
        layer.volume = -2
        assert layer.volume == 0.0
        layer.volume = float('nan')
        assert layer.volume == 0.0

    def test_effect_by_name(self):
        layer = default_layers()[0]
        layer.set_effect('gravity')
        assert layer.effect == EffectArchetype.GRAVITY

    def test_unknown_effect_rejected(self):
        layer = default_layers()[0]
        try:
            layer.set_effect('FIREWORK')
        except ValueError:
            pass
        else:
            raise AssertionError("unknown archetype should raise ValueError")
        assert layer.effect == EffectArchetype.RIPPLE

    def test_to_dict(self):
        info = default_layers()[3].to_dict()
        assert info['name'] == 'CHRD'
        assert info['kind'] == 'square'
        assert info['effect'] == 'STAR'
        assert info['color'] == '#fbbf24'


def run_tests_standalone():
    """Run tests without pytest for environments where pytest is not available"""
    import traceback

    test_classes = [
        TestPatternGrid,
        TestPaintGesture,
        TestGridGeometry,
        TestLayers,
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
