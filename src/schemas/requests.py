"""External request schemas for the HTTP API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class PerusalRequestCreate(BaseModel):
    company_name: str | None = Field(default=None, max_length=200)
    purpose: str | None = Field(default=None, max_length=2000)

    model_config = ConfigDict(extra="forbid")


__all__ = ["PerusalRequestCreate"]
