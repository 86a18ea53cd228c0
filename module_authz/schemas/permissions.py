from __future__ import annotations

from pydantic import BaseModel, Field


class PermissionsOut(BaseModel):
    user_id: str | None
    display_name: str
    roles: list[str] = Field(default_factory=list)
    modules: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)


class HealthOut(BaseModel):
    status: str
    policies: int
