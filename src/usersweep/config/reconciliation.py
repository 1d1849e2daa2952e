"""Reconciliation settings: claim mapping, scope rules and deletion behaviour."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, cast

from usersweep.domain.model import CancelMethod

from .env import env_list
from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from pathlib import Path

ENV_USER_ID_CLAIM = "USERSWEEP_USER_ID_CLAIM"
ENV_USER_ID_FIELD = "USERSWEEP_USER_ID_FIELD"
ENV_EXCLUDED_ROLES = "USERSWEEP_EXCLUDED_ROLES"
ENV_EXCLUDED_IDS = "USERSWEEP_EXCLUDED_IDS"
ENV_PROVIDERS = "USERSWEEP_PROVIDERS"
ENV_USER_CANCEL_METHOD = "USERSWEEP_USER_CANCEL_METHOD"


@dataclass(frozen=True, slots=True)
class ReconciliationConfig:
    """Validated settings, built once at startup.

    ``user_id_claim`` names the claim read from directory records
    (``azure.user_id_claim``), ``user_id_field`` the local account field it is
    joined against (``drupal.user_id_field``).
    """

    user_id_claim: str
    user_id_field: str
    excluded_roles: tuple[str, ...] = ()
    excluded_ids: tuple[int, ...] = ()
    providers: tuple[str, ...] = ()
    user_cancel_method: CancelMethod = CancelMethod.DELETE

    def __post_init__(self) -> None:
        missing = [
            name
            for name, value in (
                ("azure.user_id_claim", self.user_id_claim),
                ("drupal.user_id_field", self.user_id_field),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise MissingConfigurationError(f"Missing configuration for: {', '.join(missing)}")


def get_reconciliation_config() -> ReconciliationConfig:
    """Load settings from ``USERSWEEP_*`` environment variables."""

    cancel_method = os.getenv(ENV_USER_CANCEL_METHOD)
    return ReconciliationConfig(
        user_id_claim=os.getenv(ENV_USER_ID_CLAIM, ""),
        user_id_field=os.getenv(ENV_USER_ID_FIELD, ""),
        excluded_roles=env_list(ENV_EXCLUDED_ROLES),
        excluded_ids=_parse_ids(env_list(ENV_EXCLUDED_IDS)),
        providers=env_list(ENV_PROVIDERS),
        user_cancel_method=_parse_cancel_method(cancel_method),
    )


def load_reconciliation_config(path: Path) -> ReconciliationConfig:
    """Load settings from a TOML file.

    Expected tables: ``[azure] user_id_claim``, ``[drupal] user_id_field``,
    ``[scope] excluded_roles / excluded_ids / providers`` and
    ``[deletion] user_cancel_method``.
    """

    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid configuration file {path}: {exc}") from exc
    return reconciliation_config_from_mapping(document)


def reconciliation_config_from_mapping(document: Mapping[str, Any]) -> ReconciliationConfig:
    azure = _section(document, "azure")
    drupal = _section(document, "drupal")
    scope = _section(document, "scope")
    deletion = _section(document, "deletion")

    cancel_method = deletion.get("user_cancel_method")
    return ReconciliationConfig(
        user_id_claim=str(azure.get("user_id_claim") or ""),
        user_id_field=str(drupal.get("user_id_field") or ""),
        excluded_roles=_string_list(scope.get("excluded_roles"), "scope.excluded_roles"),
        excluded_ids=_parse_ids(scope.get("excluded_ids") or ()),
        providers=_string_list(scope.get("providers"), "scope.providers"),
        user_cancel_method=_parse_cancel_method(
            str(cancel_method) if cancel_method is not None else None
        ),
    )


def _section(document: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    value = document.get(name, {})
    if not isinstance(value, dict):
        raise ConfigurationError(f"Configuration section [{name}] must be a table")
    return cast("Mapping[str, Any]", value)


def _string_list(value: object, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str) or not isinstance(value, list):
        raise ConfigurationError(f"{key} must be a list of strings")
    items = cast("list[object]", value)
    return tuple(str(item).strip() for item in items if str(item).strip())


def _parse_ids(values: Iterable[object]) -> tuple[int, ...]:
    ids: list[int] = []
    for value in values:
        try:
            account_id = int(str(value).strip())
        except ValueError as exc:
            raise ConfigurationError(f"Invalid excluded account id: {value!r}") from exc
        if account_id < 0:
            raise ConfigurationError(f"Invalid excluded account id: {value!r}")
        ids.append(account_id)
    return tuple(ids)


def _parse_cancel_method(value: str | None) -> CancelMethod:
    if value is None or not value.strip():
        return CancelMethod.DELETE
    try:
        return CancelMethod(value.strip())
    except ValueError as exc:
        choices = ", ".join(method.value for method in CancelMethod)
        raise ConfigurationError(
            f"Unsupported user cancel method {value!r} (expected one of: {choices})"
        ) from exc
