"""httpx client construction with retrying transport."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypedDict

import httpx
from httpx_retries import RetryTransport

if TYPE_CHECKING:
    from httpx._types import HeaderTypes, TimeoutTypes

    from usersweep.config.http_resilience import ResilienceConfig


class ClientOptions(TypedDict, total=False):
    base_url: str
    timeout: TimeoutTypes
    headers: HeaderTypes
    transport: httpx.BaseTransport


def build_client(
    config: ResilienceConfig,
    *,
    transport: httpx.BaseTransport | None = None,
) -> httpx.Client:
    """Return a client that retries idempotent requests per ``config.retry``.

    ``transport`` replaces the inner network transport (tests pass a
    ``httpx.MockTransport`` here); retries still wrap it.
    """

    retry_transport = RetryTransport(transport=transport, retry=config.retry.build())
    options: ClientOptions = {
        "timeout": config.timeout_seconds,
        "transport": retry_transport,
    }
    if config.base_url is not None:
        options["base_url"] = config.base_url
    if config.default_headers is not None:
        options["headers"] = dict(config.default_headers)
    return httpx.Client(**options)
