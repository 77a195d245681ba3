"""modwarden: Version-aware lifecycle management for client-library capabilities."""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"
