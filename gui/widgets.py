"""
Custom Widgets for Lumina Grid GUI
Grid canvas, layer buttons, selectors and a volume fader

Style features:
- Click toggles a cell, dragging paints cells on
- Ctrl/Cmd click on the fader resets it to default
- Scroll wheel adjusts the fader
"""

import tkinter as tk

import numpy as np

from lumina.pattern_grid import GridGeometry


def hex_to_rgb(color):
    """'#rrggbb' -> (r, g, b)"""
    color = color.lstrip('#')
    return tuple(int(color[i:i + 2], 16) for i in (0, 2, 4))


def blend(color_a, color_b, amount):
    """Mix two '#rrggbb' colours; amount 0 = a, 1 = b"""
    amount = max(0.0, min(1.0, float(amount)))
    a = hex_to_rgb(color_a)
    b = hex_to_rgb(color_b)
    mixed = [int(round(x + (y - x) * amount)) for x, y in zip(a, b)]
    return '#{:02x}{:02x}{:02x}'.format(*mixed)


class GridCanvas(tk.Canvas):
    """
    16x16 cell grid for one layer

    Shows active cells in the layer colour, the playhead column and
    the effect brightness field on top. Pointer input is translated to
    (row, col) through GridGeometry and forwarded to the callbacks.
    """

    CELL_OFF = '#1e1e2e'
    CELL_PLAYHEAD = '#2e2e44'
    OUTLINE = '#2a2a3a'
    GLOW = '#ffffff'

    def __init__(self, parent, cell_size=28, gap=4, padding=8,
                 press_command=None, drag_command=None, release_command=None, **kwargs):
        """
        Args:
            cell_size: Cell edge in pixels
            gap: Pixels between cells
            padding: Border around the grid
            press_command: Called with (row, col) on button press over a cell
            drag_command: Called with (row, col) when a drag enters a cell
            release_command: Called with no arguments on button release
        """
        self.geometry = GridGeometry(cell_size, gap, padding, padding)
        width = int(self.geometry.width + 2 * padding)
        height = int(self.geometry.height + 2 * padding)
        super().__init__(parent, width=width, height=height,
                         bg='#14141f', highlightthickness=1,
                         highlightbackground='#4a4a5a', **kwargs)

        self.press_command = press_command
        self.drag_command = drag_command
        self.release_command = release_command

        self.color = '#60a5fa'
        self.cells = np.zeros((self.geometry.rows, self.geometry.cols), dtype=bool)
        self.brightness = np.zeros((self.geometry.rows, self.geometry.cols), dtype=np.float32)
        self.step_column = -1

        # One rectangle per cell, recoloured in place on every redraw
        self._items = {}
        for r in range(self.geometry.rows):
            for c in range(self.geometry.cols):
                x0, y0, x1, y1 = self.geometry.cell_bounds(r, c)
                self._items[(r, c)] = self.create_rectangle(
                    x0, y0, x1, y1, fill=self.CELL_OFF, outline=self.OUTLINE)

        self.bind('<Button-1>', self._on_click)
        self.bind('<B1-Motion>', self._on_drag)
        self.bind('<ButtonRelease-1>', self._on_release)

    def set_state(self, cells, color, step_column, brightness=None):
        """Update everything shown and redraw"""
        self.cells = np.asarray(cells, dtype=bool)
        self.color = color
        self.step_column = step_column
        if brightness is not None:
            self.brightness = brightness
        self._draw()

    def set_brightness(self, brightness):
        self.brightness = brightness
        self._draw()

    def set_step_column(self, column):
        self.step_column = column
        self._draw()

    def cell_color(self, row, col):
        """Fill colour for one cell from its state, playhead and glow"""
        if self.cells[row, col]:
            base = self.color
        elif col == self.step_column:
            base = self.CELL_PLAYHEAD
        else:
            base = self.CELL_OFF
        glow = float(self.brightness[row, col])
        if glow <= 0:
            return base
        if self.cells[row, col]:
            return blend(base, self.GLOW, glow * 0.6)
        return blend(base, self.color, glow)

    def _draw(self):
        """Recolour all cells"""
        for (r, c), item in self._items.items():
            outline = '#ccccee' if (c == self.step_column and self.cells[r, c]) else self.OUTLINE
            self.itemconfigure(item, fill=self.cell_color(r, c), outline=outline)

    def _on_click(self, event):
        cell = self.geometry.cell_at(event.x, event.y)
        if cell is not None and self.press_command:
            self.press_command(*cell)

    def _on_drag(self, event):
        cell = self.geometry.cell_at(event.x, event.y)
        if cell is not None and self.drag_command:
            self.drag_command(*cell)

    def _on_release(self, event):
        if self.release_command:
            self.release_command()


class LayerButton(tk.Canvas):
    """
    Layer selection button with LED in the layer colour
    """

    def __init__(self, parent, layer_index, name, color, width=64, height=30,
                 command=None, **kwargs):
        super().__init__(parent, width=width, height=height,
                         bg='#3a3a4a', highlightthickness=0, **kwargs)

        self.layer_index = layer_index
        self.name = name
        self.color = color
        self.btn_width = width
        self.btn_height = height
        self.selected = False
        self.triggered = False
        self.command = command

        self._draw()

        self.bind('<Button-1>', self._on_click)

    def _draw(self):
        """Draw the button"""
        self.delete('all')

        bg_color = '#5566aa' if self.selected else '#4a4a5a'
        self.create_rectangle(2, 2, self.btn_width - 2, self.btn_height - 2,
                              fill=bg_color, outline=self.color if self.selected else '#666688')

        self.create_text(self.btn_width // 2 - 4, self.btn_height // 2,
                         text=self.name, fill='#ccccee', font=('Segoe UI', 9, 'bold'))

        led_color = self.color if (self.triggered or self.selected) else '#333344'
        self.create_oval(self.btn_width - 12, 4, self.btn_width - 4, 12,
                         fill=led_color, outline='')

    def _on_click(self, event):
        if self.command:
            self.command(self.layer_index)

    def set_selected(self, selected):
        self.selected = selected
        self._draw()

    def set_triggered(self, triggered):
        """Set triggered state (flash)"""
        self.triggered = triggered
        self._draw()


class ModeSelector(tk.Canvas):
    """
    N-way selector (effect archetype)
    """

    def __init__(self, parent, options=None, command=None, width=240, **kwargs):
        super().__init__(parent, width=width, height=22,
                         bg='#3a3a4a', highlightthickness=0, **kwargs)

        self.options = options or ['A', 'B', 'C']
        self.selected = 0
        self.command = command
        self.btn_width = width // len(self.options)

        self._draw()

        self.bind('<Button-1>', self._on_click)

    def _draw(self):
        """Draw mode selector"""
        self.delete('all')

        for i, opt in enumerate(self.options):
            x1 = i * self.btn_width
            x2 = x1 + self.btn_width

            if i == self.selected:
                self.create_rectangle(x1 + 1, 1, x2 - 1, 20,
                                      fill='#5566aa', outline='#7788cc')
            else:
                self.create_rectangle(x1 + 1, 1, x2 - 1, 20,
                                      fill='#4a4a5a', outline='#666688')

            self.create_text((x1 + x2) // 2, 11,
                             text=opt, fill='#ccccee',
                             font=('Segoe UI', 7))

    def _on_click(self, event):
        idx = event.x // self.btn_width
        idx = max(0, min(len(self.options) - 1, idx))

        self.selected = idx
        self._draw()

        if self.command:
            self.command(idx)

    def set_value(self, value):
        """Set selected option"""
        self.selected = max(0, min(len(self.options) - 1, value))
        self._draw()

    def get_value(self):
        return self.selected


class ToggleButton(tk.Canvas):
    """
    Toggle button with LED indicator (play/pause)
    """

    def __init__(self, parent, text="", active_text=None, width=70, height=25,
                 command=None, **kwargs):
        super().__init__(parent, width=width, height=height,
                         bg='#3a3a4a', highlightthickness=0, **kwargs)

        self.text = text
        self.active_text = active_text or text
        self.btn_width = width
        self.btn_height = height
        self.enabled = False
        self.command = command

        self._draw()

        self.bind('<Button-1>', self._on_click)

    def _draw(self):
        """Draw toggle button"""
        self.delete('all')

        if self.enabled:
            bg_color = '#5566aa'
            led_color = '#44ff88'
        else:
            bg_color = '#4a4a5a'
            led_color = '#333344'

        self.create_rectangle(2, 2, self.btn_width - 2, self.btn_height - 2,
                              fill=bg_color, outline='#666688')

        self.create_oval(self.btn_width - 15, 5, self.btn_width - 5, 15,
                         fill=led_color, outline='')

        self.create_text(self.btn_width // 2 - 5, self.btn_height // 2,
                         text=self.active_text if self.enabled else self.text,
                         fill='#ccccee', font=('Segoe UI', 8))

    def _on_click(self, event):
        self.enabled = not self.enabled
        self._draw()

        if self.command:
            self.command(self.enabled)

    def set_value(self, enabled):
        """Set enabled state without calling the command"""
        self.enabled = bool(enabled)
        self._draw()

    def get_value(self):
        return self.enabled


class VerticalSlider(tk.Canvas):
    """
    Vertical fader (layer volume)

    Features:
    - Drag to change, Shift for fine adjustments
    - Ctrl+click or double-click resets to default
    """

    def __init__(self, parent, width=30, height=100, min_val=0.0, max_val=1.0,
                 default=0.8, label="", command=None, **kwargs):
        super().__init__(parent, width=width, height=height + 20,
                         bg='#3a3a4a', highlightthickness=0, **kwargs)

        self.slider_width = width
        self.slider_height = height
        self.min_val = min_val
        self.max_val = max_val
        self.default_val = default
        self.value = default
        self.label = label
        self.command = command

        # Track dimensions
        self.track_x = width // 2
        self.track_top = 10
        self.track_bottom = height - 10
        self.track_range = self.track_bottom - self.track_top

        self.handle_width = width - 8
        self.handle_height = 14

        self.dragging = False
        self.drag_start_y = 0
        self.drag_start_value = 0

        self._draw()

        self.bind('<Button-1>', self._on_click)
        self.bind('<B1-Motion>', self._on_drag)
        self.bind('<ButtonRelease-1>', self._on_release)
        self.bind('<MouseWheel>', self._on_scroll)
        self.bind('<Button-4>', self._on_scroll_linux)
        self.bind('<Button-5>', self._on_scroll_linux)
        self.bind('<Control-Button-1>', self._on_ctrl_click)
        self.bind('<Double-Button-1>', self._on_ctrl_click)

    def _value_to_normalized(self, value):
        value_range = self.max_val - self.min_val
        if value_range != 0:
            return (value - self.min_val) / value_range
        return 0.5

    def _normalized_to_value(self, normalized):
        normalized = max(0.0, min(1.0, normalized))
        return self.min_val + normalized * (self.max_val - self.min_val)

    def _draw(self):
        """Draw the slider"""
        self.delete('all')

        self.create_rectangle(
            self.track_x - 3, self.track_top,
            self.track_x + 3, self.track_bottom,
            fill='#222233', outline='#555566'
        )

        normalized = self._value_to_normalized(self.value)
        handle_y = self.track_bottom - normalized * self.track_range

        hx1 = self.track_x - self.handle_width // 2
        hx2 = self.track_x + self.handle_width // 2
        self.create_rectangle(hx1, handle_y - self.handle_height // 2,
                              hx2, handle_y + self.handle_height // 2,
                              fill='#7788aa', outline='#99aacc')

        if self.label:
            self.create_text(self.slider_width // 2, self.slider_height + 10,
                             text=self.label, fill='#aaaacc',
                             font=('Segoe UI', 7))

    def _on_click(self, event):
        self.dragging = True
        self.drag_start_y = event.y
        self.drag_start_value = self.value

    def _on_ctrl_click(self, event):
        """Reset to default value"""
        self.set_value(self.default_val)
        return "break"

    def _on_drag(self, event):
        """Handle drag - Shift for fine control"""
        if not self.dragging:
            return
        fine_mode = event.state & 0x1
        sensitivity = 0.1 if fine_mode else 1.0
        delta = (self.drag_start_y - event.y) / self.track_range * sensitivity
        start = self._value_to_normalized(self.drag_start_value)
        self.set_value(self._normalized_to_value(start + delta))

    def _on_release(self, event):
        self.dragging = False

    def _on_scroll(self, event):
        """Handle scroll (Windows/Mac)"""
        delta = event.delta / 120
        current = self._value_to_normalized(self.value)
        self.set_value(self._normalized_to_value(current + delta / 50.0))

    def _on_scroll_linux(self, event):
        """Handle scroll on Linux"""
        delta = 1 if event.num == 4 else -1
        current = self._value_to_normalized(self.value)
        self.set_value(self._normalized_to_value(current + delta / 50.0))

    def set_value(self, value, notify=True):
        """Set slider value"""
        self.value = max(self.min_val, min(self.max_val, value))
        self._draw()

        if notify and self.command:
            self.command(self.value)

    def get_value(self):
        return self.value
