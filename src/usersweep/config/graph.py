"""Microsoft Graph group-members feed configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import ResilienceConfig

GRAPH_BASE_URL = "https://graph.microsoft.com/v1.0/"
GRAPH_TIMEOUT_SECONDS = 30.0
DEFAULT_PAGE_SIZE = 999


@dataclass(frozen=True)
class GraphConfig:
    """Holds the settings needed to page through a directory group.

    The access token is issued elsewhere; this package never negotiates it.
    """

    access_token: str
    group_id: str
    resilience: ResilienceConfig
    page_size: int = DEFAULT_PAGE_SIZE
    select: tuple[str, ...] = ("id", "userPrincipalName", "mail")


def get_graph_config(*, resilience: ResilienceConfig | None = None) -> GraphConfig:
    values = require_env_vars(("GRAPH_ACCESS_TOKEN", "GRAPH_GROUP_ID"))
    page_size = os.getenv("GRAPH_PAGE_SIZE")
    return GraphConfig(
        access_token=values["GRAPH_ACCESS_TOKEN"],
        group_id=values["GRAPH_GROUP_ID"],
        page_size=int(page_size) if page_size else DEFAULT_PAGE_SIZE,
        resilience=resilience
        or ResilienceConfig(
            name="graph",
            base_url=os.getenv("GRAPH_BASE_URL", GRAPH_BASE_URL),
            timeout_seconds=GRAPH_TIMEOUT_SECONDS,
        ),
    )
