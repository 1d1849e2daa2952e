"""Enumerations used by the account model."""

from __future__ import annotations

from enum import StrEnum


class CancelMethod(StrEnum):
    """How removing an account treats the content it owns."""

    BLOCK = "block"
    BLOCK_UNPUBLISH = "block_unpublish"
    REASSIGN = "reassign"
    DELETE = "delete"
