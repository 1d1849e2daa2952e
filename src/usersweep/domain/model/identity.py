"""Records delivered by the external directory."""

from __future__ import annotations

from collections.abc import Mapping

type ExternalIdentityRecord = Mapping[str, object]
