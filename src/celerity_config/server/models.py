"""Pydantic models for HTTP API responses."""

from typing import Optional

from pydantic import BaseModel, Field


class NamespaceInfo(BaseModel):
    """Cache state of one namespace. Never includes values."""
    name: str
    store_id: str
    backend: str
    refresh_interval_ms: Optional[int] = None
    loaded: bool = Field(..., description="Whether the first fetch has completed")
    refresh_in_flight: bool = False


class ConfigHealthResponse(BaseModel):
    """Config layer health."""
    status: str
    initialized: bool
    platform: Optional[str] = None
    namespaces: list[NamespaceInfo] = Field(default_factory=list)
