#!/usr/bin/env python3
"""whisper-connector — record the microphone and print what was said.

Usage:
    python cli.py devices                        # List audio input devices
    python cli.py transcribe <language> <device> # Record (Enter stops, Ctrl+C cancels), then transcribe

Requires OPENAI_AUTH_KEY in the environment or a .env file, and ffmpeg on PATH.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

from whisper_connector.cli_runtime import main


if __name__ == "__main__":
    main()
