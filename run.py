"""
Lumina Grid - Main Entry Point
Run this script to start the application
"""

import argparse
import logging
import os
import sys

# Add the project root to the path
project_root = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, project_root)

from lumina.preferences_manager import PreferencesManager


def resolve_log_level(cli_level, prefs) -> int:
    """Logging level from --log-level, else the log_level preference"""
    name = str(cli_level or prefs.get('log_level', 'INFO')).upper()
    level = getattr(logging, name, logging.INFO)
    return level if isinstance(level, int) else logging.INFO


def main(argv=None):
    parser = argparse.ArgumentParser(description="Lumina Grid step sequencer")
    parser.add_argument('--log-level', default=None,
                        help="DEBUG, INFO, WARNING or ERROR (default: from preferences)")
    parser.add_argument('--device', default=None,
                        help="sounddevice output device index or name")
    args = parser.parse_args(argv)

    prefs = PreferencesManager()
    logging.basicConfig(level=resolve_log_level(args.log_level, prefs),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    if args.device is not None:
        device = int(args.device) if args.device.isdigit() else args.device
        prefs.set('audio_output_device', device)

    # Tk is only imported once logging is configured
    from gui.main_window import LuminaGUI
    LuminaGUI(preferences_manager=prefs).run()


if __name__ == '__main__':
    main()
