"""
Layer configuration for Lumina Grid
Four fixed instrument layers with mutable volume and visual archetype
"""

from enum import Enum
from typing import List, Union

from .constants import DEFAULT_VOLUME, clamp_volume


class SynthKind(Enum):
    SINE = 'sine'
    TRIANGLE = 'triangle'
    SQUARE = 'square'
    SAWTOOTH = 'sawtooth'
    DRUM = 'drum'  # Percussive, row selects kick/snare/hat

    @property
    def is_percussive(self) -> bool:
        return self is SynthKind.DRUM


class EffectArchetype(Enum):
    RIPPLE = 'RIPPLE'
    GRAVITY = 'GRAVITY'
    SPLASH = 'SPLASH'
    STAR = 'STAR'

    @classmethod
    def parse(cls, value: Union['EffectArchetype', str]) -> 'EffectArchetype':
        """Accept an archetype or its (case-insensitive) name"""
        if isinstance(value, cls):
            return value
        try:
            return cls[str(value).upper()]
        except KeyError:
            raise ValueError(f"Unknown effect archetype: {value!r}") from None


class LayerConfig:
    """
    One instrument layer

    Identity, name, kind, octave and colour are fixed at startup;
    volume and effect archetype can be changed while playing.
    """

    def __init__(self, index: int, name: str, kind: SynthKind, base_octave: float,
                 color: str, effect: EffectArchetype, volume: float = DEFAULT_VOLUME):
        self.index = index
        self.name = name
        self.kind = kind
        self.base_octave = base_octave
        self.color = color
        self.effect = effect
        self._volume = clamp_volume(volume)

    @property
    def volume(self) -> float:
        return self._volume

    @volume.setter
    def volume(self, value: float):
        self._volume = clamp_volume(value)

    def set_effect(self, effect: Union[EffectArchetype, str]):
        """Change the visual archetype used for new effects"""
        self.effect = EffectArchetype.parse(effect)

    def to_dict(self) -> dict:
        """Read-only view for display"""
        return {
            'index': self.index,
            'name': self.name,
            'kind': self.kind.value,
            'base_octave': self.base_octave,
            'color': self.color,
            'volume': self.volume,
            'effect': self.effect.value,
        }

    def __repr__(self):
        return (f"LayerConfig({self.index}, {self.name!r}, {self.kind.name}, "
                f"vol={self.volume:.2f}, fx={self.effect.name})")


def default_layers() -> List[LayerConfig]:
    """Create the four factory layers"""
    return [
        LayerConfig(0, 'LEAD', SynthKind.SINE, 0.0, '#60a5fa', EffectArchetype.RIPPLE),
        LayerConfig(1, 'BASS', SynthKind.TRIANGLE, -1.0, '#34d399', EffectArchetype.GRAVITY),
        LayerConfig(2, 'DRUM', SynthKind.DRUM, 0.0, '#f472b6', EffectArchetype.SPLASH),
        LayerConfig(3, 'CHRD', SynthKind.SQUARE, -0.5, '#fbbf24', EffectArchetype.STAR),
    ]
