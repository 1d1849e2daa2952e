"""Public interface for the Microsoft Graph adapter."""

from __future__ import annotations

from .client import GraphAPIError, GraphGroupMembersFeed
from .schema import ErrorResponse, MembersPage

__all__ = [
    "ErrorResponse",
    "GraphAPIError",
    "GraphGroupMembersFeed",
    "MembersPage",
]
