"""Pydantic models describing Microsoft Graph collection pages."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class GraphBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class MembersPage(GraphBaseModel):
    value: list[dict[str, object]]
    next_link: str | None = Field(default=None, alias="@odata.nextLink")
    delta_link: str | None = Field(default=None, alias="@odata.deltaLink")


class ErrorDetail(GraphBaseModel):
    code: str
    message: str = ""


class ErrorResponse(GraphBaseModel):
    error: ErrorDetail
