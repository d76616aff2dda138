"""
Preferences Manager for Lumina Grid
Handles persistent user preferences (audio device, tempo, window size)
Cross-platform support using platformdirs
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from platformdirs import user_config_dir

from .constants import DEFAULT_BPM, DEFAULT_SAMPLE_RATE, clamp, clamp_bpm

logger = logging.getLogger(__name__)


class PreferencesManager:
    """
    Manages application preferences with persistent storage.
    Preferences are stored in a JSON file in the platform-appropriate location.
    Pattern data is never persisted.
    """

    APP_NAME = "Lumina Grid"
    APP_AUTHOR = "Lumina"
    PREFS_FILENAME = "preferences.json"

    DEFAULT_PREFERENCES = {
        'window_width': 720,
        'window_height': 760,
        # Audio settings
        'audio_output_device': None,  # None = system default
        'sample_rate': DEFAULT_SAMPLE_RATE,
        'blocksize': 1024,
        'master_gain': 0.4,
        # Sequencer / display
        'default_bpm': DEFAULT_BPM,
        'frame_interval_ms': 16,
        'log_level': 'INFO',
    }

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize the preferences manager

        Args:
            config_dir: Override for the config directory (defaults to the
                platform user config dir)
        """
        self.prefs_dir = config_dir or user_config_dir(self.APP_NAME, self.APP_AUTHOR)
        os.makedirs(self.prefs_dir, exist_ok=True)
        self.prefs_file = os.path.join(self.prefs_dir, self.PREFS_FILENAME)
        self.preferences = self._load_preferences()

    def _load_preferences(self) -> Dict[str, Any]:
        """Load preferences from file"""
        if not os.path.exists(self.prefs_file):
            return self.DEFAULT_PREFERENCES.copy()
        try:
            with open(self.prefs_file, 'r', encoding='utf-8') as f:
                loaded_prefs = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Error loading preferences: %s", e)
            return self.DEFAULT_PREFERENCES.copy()

        # Merge with defaults to ensure all keys exist
        prefs = self.DEFAULT_PREFERENCES.copy()
        if isinstance(loaded_prefs, dict):
            prefs.update(loaded_prefs)
        return prefs

    def _save_preferences(self) -> bool:
        """Save preferences to file"""
        try:
            os.makedirs(os.path.dirname(self.prefs_file), exist_ok=True)
            with open(self.prefs_file, 'w', encoding='utf-8') as f:
                json.dump(self.preferences, f, indent=2)
            return True
        except (OSError, TypeError) as e:
            logger.warning("Error saving preferences: %s", e)
            return False

    def get(self, key: str, default: Any = None) -> Any:
        """Get a preference value"""
        return self.preferences.get(key, default)

    def set(self, key: str, value: Any) -> bool:
        """Set a preference value and save"""
        self.preferences[key] = value
        return self._save_preferences()

    def get_default_bpm(self) -> float:
        return clamp_bpm(self.preferences.get('default_bpm', DEFAULT_BPM))

    def get_master_gain(self) -> float:
        return clamp(float(self.preferences.get('master_gain', 0.4)), 0.0, 1.0)

    def get_frame_interval_ms(self) -> int:
        try:
            return max(1, int(self.preferences.get('frame_interval_ms', 16)))
        except (TypeError, ValueError):
            return 16

    def reset_to_defaults(self) -> bool:
        """Reset all preferences to defaults"""
        self.preferences = self.DEFAULT_PREFERENCES.copy()
        return self._save_preferences()

    def get_all_preferences(self) -> Dict[str, Any]:
        """Get all preferences"""
        return self.preferences.copy()
