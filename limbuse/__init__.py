"""Limb-use detection from multi-camera wrist position traces."""
from __future__ import annotations

__version__ = "1.0.0"
