"""Local user accounts as seen by the reconciler."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final

type AccountId = int

# Anonymous and the site owner; never candidates for deletion.
RESERVED_ACCOUNT_IDS: Final[frozenset[AccountId]] = frozenset({0, 1})

CORE_FIELDS: Final[frozenset[str]] = frozenset({"name", "mail"})


def _empty_properties() -> Mapping[str, str]:
    return MappingProxyType({})


@dataclass(frozen=True, kw_only=True)
class Account:
    """A local account with its scope-relevant attributes.

    ``properties`` carries custom fields (e.g. an employee number) that can be
    used as the join key against directory records.
    """

    id: AccountId
    name: str
    mail: str | None = None
    active: bool = True
    roles: frozenset[str] = frozenset()
    providers: frozenset[str] = frozenset()
    properties: Mapping[str, str] = field(default_factory=_empty_properties)

    def __post_init__(self) -> None:
        if self.id < 0:
            raise ValueError(f"Account id must be non-negative, got {self.id}")
        if not isinstance(self.properties, MappingProxyType):
            object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))

    @property
    def is_reserved(self) -> bool:
        return self.id in RESERVED_ACCOUNT_IDS

    def value_of(self, field_name: str) -> str | None:
        """Return the value of a core field or custom property."""
        if field_name == "name":
            return self.name
        if field_name == "mail":
            return self.mail
        return self.properties.get(field_name)

    def describe(self) -> str:
        roles = ",".join(sorted(self.roles)) or "-"
        providers = ",".join(sorted(self.providers)) or "-"
        return (
            f"#{self.id} name={self.name!r} mail={self.mail!r} active={self.active} "
            f"roles={roles} providers={providers}"
        )
