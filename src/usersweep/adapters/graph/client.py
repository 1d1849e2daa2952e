"""Paged reader for the user members of a Microsoft Graph group."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from usersweep.adapters.http_resilience import build_client
from usersweep.config.graph import GraphConfig, get_graph_config
from usersweep.domain.errors import DataError

from .schema import ErrorResponse, MembersPage

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from usersweep.config.http_resilience import ResilienceConfig
    from usersweep.domain.model import ExternalIdentityRecord
    from usersweep.domain.ports.fetching import IdentityFeed

log = getLogger(__name__)


class GraphAPIError(DataError):
    """Raised when Graph returns an error payload or a page that cannot be parsed."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


def _default_client_factory(config: ResilienceConfig) -> httpx.Client:
    return build_client(config)


@dataclass(slots=True)
class GraphGroupMembersFeed:
    """Yields one page of user records per Graph response until no next link remains."""

    config: GraphConfig = field(default_factory=get_graph_config)
    client_factory: Callable[[ResilienceConfig], httpx.Client] = field(
        default=_default_client_factory
    )

    def __iter__(self) -> Iterator[Sequence[ExternalIdentityRecord]]:
        url: str | None = f"groups/{self.config.group_id}/members/microsoft.graph.user"
        params: dict[str, str | int] | None = {
            "$select": ",".join(self.config.select),
            "$top": self.config.page_size,
        }
        headers = {"Authorization": f"Bearer {self.config.access_token}"}
        page_number = 0

        with self.client_factory(self.config.resilience) as client:
            while url is not None:
                page_number += 1
                page = self._request_page(client, url, params=params, headers=headers)
                log.debug("Fetched Graph page %d with %d users", page_number, len(page.value))
                yield page.value
                # Next links are absolute and already carry the query.
                url = page.next_link
                params = None

        log.info("Read %d Graph pages", page_number)

    def _request_page(
        self,
        client: httpx.Client,
        url: str,
        *,
        params: dict[str, str | int] | None,
        headers: dict[str, str],
    ) -> MembersPage:
        response = client.get(url, params=params, headers=headers)
        try:
            payload = response.json()
        except ValueError as exc:
            response.raise_for_status()
            raise GraphAPIError(f"Graph returned a non-JSON page from {url}") from exc

        if isinstance(payload, dict) and "error" in payload:
            try:
                error = ErrorResponse.model_validate(payload).error
            except ValidationError:
                response.raise_for_status()
                raise GraphAPIError("Unexpected Graph error payload") from None
            log.error(f"Graph API error {error.code}: {error.message}")
            raise GraphAPIError(error.message or error.code, code=error.code)

        response.raise_for_status()
        try:
            return MembersPage.model_validate(payload)
        except ValidationError as exc:
            raise GraphAPIError(f"Unexpected Graph page payload: {exc}") from exc


if TYPE_CHECKING:
    _feed_check: IdentityFeed = GraphGroupMembersFeed()
