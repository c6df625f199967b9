from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    status: Literal["running"] = "running"
    server_name: str
    version: str
    endpoints: list[str] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)


class MessageAccepted(BaseModel):
    ok: bool = True


class ConnectedEvent(BaseModel):
    type: Literal["connected"] = "connected"
    client: int = Field(ge=0)


class PingEvent(BaseModel):
    type: Literal["ping"] = "ping"
