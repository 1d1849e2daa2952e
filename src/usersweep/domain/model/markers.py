"""Deletion marker constants for the grace-period strategy."""

from __future__ import annotations

from typing import Final

MARKER_MODULE: Final[str] = "usersweep"
DELETE_MARKER_KEY: Final[str] = "delete"
