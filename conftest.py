"""
Pytest configuration for test discovery and imports.

The scheduler modules live flat under src/; put it on sys.path so tests can
import them by module name without installing the project.
"""

import os
import sys

ROOT_DIR = os.path.dirname(__file__)
SRC_DIR = os.path.join(ROOT_DIR, "src")

if SRC_DIR not in sys.path:
    sys.path.insert(0, SRC_DIR)
