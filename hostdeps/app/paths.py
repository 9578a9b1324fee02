# hostdeps/app/paths.py
from __future__ import annotations
from pathlib import Path



PACKAGE_DIR = Path(__file__).resolve().parent.parent  # hostdeps/
USER_SETTINGS_PATH = Path("~/.hostdeps/hostdeps.json5").expanduser()
