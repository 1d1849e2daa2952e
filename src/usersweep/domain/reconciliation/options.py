"""Per-run switches."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RunOptions:
    """``dry_run`` computes and reports without mutating any store.

    ``debug`` logs every account that is (or would be) deleted; it never changes
    what gets deleted.
    """

    dry_run: bool = False
    debug: bool = False
