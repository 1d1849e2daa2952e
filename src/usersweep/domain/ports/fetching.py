"""Ports for reading the authoritative directory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

    from usersweep.domain.model import ExternalIdentityRecord


@runtime_checkable
class IdentityFeed(Protocol):
    """Yields pages of identities that are present upstream.

    Exhausting the iterator is the end-of-stream signal. Implementations raise
    ``DataError`` when a page is malformed.
    """

    def __iter__(self) -> Iterator[Sequence[ExternalIdentityRecord]]: ...


__all__ = ["IdentityFeed"]
