"""
GUI __init__.py
"""

from .widgets import (
    GridCanvas,
    LayerButton,
    ModeSelector,
    ToggleButton,
    VerticalSlider
)

__all__ = [
    'GridCanvas',
    'LayerButton',
    'ModeSelector',
    'ToggleButton',
    'VerticalSlider'
]
