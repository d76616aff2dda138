"""
Main GUI Window for Lumina Grid
Layer buttons, transport, tempo and the 16x16 light grid
"""

import logging
import os
import sys
import tkinter as tk
from tkinter import ttk

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lumina.constants import MAX_BPM, MIN_BPM
from lumina.engine import LuminaEngine
from lumina.layers import EffectArchetype
from lumina.master_bus import AUDIO_AVAILABLE, MasterBus
from lumina.preferences_manager import PreferencesManager
from gui.widgets import GridCanvas, LayerButton, ModeSelector, ToggleButton, VerticalSlider

logger = logging.getLogger(__name__)

ARCHETYPES = list(EffectArchetype)


class LuminaGUI:
    """
    Main GUI application for Lumina Grid

    The Tk root is the scheduler for both the sequencer clock and the
    frame driver, so every engine callback lands on the GUI thread.
    """

    COLORS = {
        'bg_dark': '#2a2a3a',
        'bg_medium': '#3a3a4a',
        'bg_light': '#4a4a5a',
        'accent': '#5566aa',
        'text': '#ccccee',
        'text_dim': '#8888aa',
    }

    def __init__(self, preferences_manager=None):
        self.root = tk.Tk()
        self.root.title("Lumina Grid")
        self.root.configure(bg=self.COLORS['bg_dark'])
        self.root.resizable(False, False)

        self.preferences_manager = preferences_manager or PreferencesManager()
        prefs = self.preferences_manager

        bus = MasterBus.get_instance(
            sample_rate=prefs.get('sample_rate', 44100),
            blocksize=prefs.get('blocksize', 1024),
            device=prefs.get('audio_output_device'),
        )
        bus.master_gain = prefs.get_master_gain()

        self.engine = LuminaEngine(bus=bus, scheduler=self.root,
                                   bpm=prefs.get_default_bpm(),
                                   frame_interval_ms=prefs.get_frame_interval_ms())

        self._build_ui()

        self.engine.add_step_listener(self._on_step)
        self.engine.add_frame_listener(self._on_frame)

        self.root.bind('<space>', lambda e: self._on_play_toggle(not self.engine.is_playing))
        self.root.protocol('WM_DELETE_WINDOW', self._on_close)

        if not AUDIO_AVAILABLE:
            self.status_var.set("sounddevice not available - running silent")

        self._refresh_layer_controls()
        self._refresh_grid()

    def _build_ui(self):
        """Build the complete user interface

        Layout (top to bottom):
        1. Toolbar (layer buttons, play/pause, tempo)
        2. Grid with the layer volume fader beside it
        3. Layer section (effect archetype, clear)
        4. Status line
        """
        main_frame = tk.Frame(self.root, bg=self.COLORS['bg_dark'])
        main_frame.pack(fill='both', expand=True, padx=10, pady=10)

        self._build_toolbar(main_frame)

        grid_frame = tk.Frame(main_frame, bg=self.COLORS['bg_dark'])
        grid_frame.pack(fill='x', pady=5)

        self.grid_canvas = GridCanvas(grid_frame,
                                      press_command=self._on_cell_press,
                                      drag_command=self._on_cell_drag,
                                      release_command=self.engine.release)
        self.grid_canvas.pack(side='left')

        self.volume_slider = VerticalSlider(grid_frame, width=34, height=200,
                                            min_val=0.0, max_val=1.0, default=0.8,
                                            label="volume", command=self._on_volume_change)
        self.volume_slider.pack(side='left', padx=(10, 0), anchor='n')

        self._build_layer_section(main_frame)

        self.status_var = tk.StringVar(value="")
        tk.Label(main_frame, textvariable=self.status_var,
                 font=('Segoe UI', 7), fg=self.COLORS['text_dim'],
                 bg=self.COLORS['bg_dark']).pack(fill='x', pady=(5, 0))

    def _build_toolbar(self, parent):
        toolbar = tk.Frame(parent, bg=self.COLORS['bg_medium'])
        toolbar.pack(fill='x', pady=(0, 5))

        layer_frame = tk.Frame(toolbar, bg=self.COLORS['bg_medium'])
        layer_frame.pack(side='left', padx=5, pady=5)

        self.layer_buttons = []
        for layer in self.engine.layers:
            btn = LayerButton(layer_frame, layer.index, layer.name, layer.color,
                              command=self._on_layer_select)
            btn.pack(side='left', padx=2)
            self.layer_buttons.append(btn)

        right_frame = tk.Frame(toolbar, bg=self.COLORS['bg_medium'])
        right_frame.pack(side='right', padx=5, pady=5)

        self.play_button = ToggleButton(right_frame, text="play", active_text="pause",
                                        command=self._on_play_toggle)
        self.play_button.pack(side='left', padx=(0, 10))

        tk.Label(right_frame, text="bpm:",
                 font=('Segoe UI', 7), fg=self.COLORS['text_dim'],
                 bg=self.COLORS['bg_medium']).pack(side='left', padx=(0, 3))

        self.bpm_var = tk.StringVar(value=str(int(self.engine.bpm)))
        self.bpm_spin = ttk.Spinbox(right_frame, from_=MIN_BPM, to=MAX_BPM,
                                    textvariable=self.bpm_var, width=5,
                                    command=self._on_bpm_change)
        self.bpm_spin.pack(side='left')
        self.bpm_spin.bind('<Return>', self._on_bpm_change)
        self.bpm_spin.bind('<FocusOut>', self._on_bpm_change)

    def _build_layer_section(self, parent):
        section = tk.Frame(parent, bg=self.COLORS['bg_medium'])
        section.pack(fill='x', pady=5)

        tk.Label(section, text="effect:",
                 font=('Segoe UI', 7), fg=self.COLORS['text_dim'],
                 bg=self.COLORS['bg_medium']).pack(side='left', padx=(5, 3), pady=5)

        self.effect_selector = ModeSelector(section, options=[a.value for a in ARCHETYPES],
                                            command=self._on_effect_change)
        self.effect_selector.pack(side='left', pady=5)

        tk.Button(section, text="clear", font=('Segoe UI', 8),
                  bg=self.COLORS['bg_light'], fg=self.COLORS['text'],
                  command=self._on_clear).pack(side='right', padx=5, pady=5)

    # ============== Event Handlers ==============

    def _on_layer_select(self, layer_index):
        self.engine.select_layer(layer_index)
        self._refresh_layer_controls()
        self._refresh_grid()

    def _on_cell_press(self, row, col):
        self.engine.press_cell(row, col)
        self._refresh_grid()

    def _on_cell_drag(self, row, col):
        if self.engine.drag_over_cell(row, col):
            self._refresh_grid()

    def _on_play_toggle(self, enabled):
        if enabled != self.engine.is_playing:
            self.engine.toggle_playback()
        self.play_button.set_value(self.engine.is_playing)

    def _on_bpm_change(self, event=None):
        """Handle BPM entry change"""
        try:
            bpm = self.engine.set_tempo(float(self.bpm_var.get()))
        except ValueError:
            bpm = self.engine.bpm
        self.bpm_var.set(str(int(bpm)))

    def _on_volume_change(self, value):
        self.engine.set_volume(self.engine.active_layer, value)

    def _on_effect_change(self, index):
        self.engine.set_effect_archetype(self.engine.active_layer, ARCHETYPES[index])

    def _on_clear(self):
        self.engine.clear_layer()
        self._refresh_grid()

    def _on_step(self, column):
        for layer, button in zip(self.engine.layers, self.layer_buttons):
            fired = column >= 0 and bool(self.engine.grid.active_rows(layer.index, column))
            button.set_triggered(fired)
        self.grid_canvas.set_step_column(column)

    def _on_frame(self):
        self.grid_canvas.set_brightness(self.engine.brightness_field())

    # ============== Refresh ==============

    def _refresh_layer_controls(self):
        active = self.engine.active_layer
        layer = self.engine.layers[active]
        for i, button in enumerate(self.layer_buttons):
            button.set_selected(i == active)
        self.volume_slider.set_value(layer.volume, notify=False)
        self.effect_selector.set_value(ARCHETYPES.index(layer.effect))

    def _refresh_grid(self):
        layer = self.engine.layers[self.engine.active_layer]
        self.grid_canvas.set_state(self.engine.grid.layer_snapshot(layer.index), layer.color,
                                   self.engine.current_step_column(),
                                   self.engine.brightness_field())

    def _on_close(self):
        self.engine.dispose()
        self.root.destroy()

    def run(self):
        """Run the application"""
        try:
            self.root.mainloop()
        finally:
            self.engine.dispose()
            MasterBus.reset_instance()


def main():
    """Main entry point"""
    app = LuminaGUI()
    app.run()


if __name__ == '__main__':
    main()
