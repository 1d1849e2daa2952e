"""Directory feed read from a JSON Lines export, one identity per line."""

from __future__ import annotations

import json
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, cast

from usersweep.domain.errors import DataError

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from pathlib import Path

    from usersweep.domain.model import ExternalIdentityRecord
    from usersweep.domain.ports.fetching import IdentityFeed

log = getLogger(__name__)

DEFAULT_PAGE_SIZE = 500


@dataclass(frozen=True, slots=True)
class JsonLinesIdentityFeed:
    path: Path
    page_size: int = DEFAULT_PAGE_SIZE

    def __post_init__(self) -> None:
        if self.page_size < 1:
            raise ValueError("page_size must be positive")

    def __iter__(self) -> Iterator[Sequence[ExternalIdentityRecord]]:
        page: list[ExternalIdentityRecord] = []
        with self.path.open(encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                page.append(self._parse(line, line_number))
                if len(page) >= self.page_size:
                    yield page
                    page = []
        if page:
            yield page

    def _parse(self, line: str, line_number: int) -> ExternalIdentityRecord:
        try:
            record = json.loads(line)
        except json.JSONDecodeError as exc:
            raise DataError(f"{self.path}:{line_number}: invalid JSON ({exc.msg})") from exc
        if not isinstance(record, dict):
            raise DataError(f"{self.path}:{line_number}: expected a JSON object")
        return cast("dict[str, object]", record)


if TYPE_CHECKING:
    _feed_check: IdentityFeed = JsonLinesIdentityFeed(path=cast("Path", None))
