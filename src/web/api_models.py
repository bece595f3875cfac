from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str = Field(..., description="ok|degraded|stopped")
    streams_total: int
    streams_running: int
    timestamp: float


class StreamStatus(BaseModel):
    id: str
    label: str
    input: Optional[str] = Field(None, description="Source with credentials masked")
    state: str = Field("unknown", description="opening|capturing|skip|processing|closed")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last published frame")
    stats: Dict[str, Optional[float]] = Field(default_factory=dict)
    last_error: Optional[str] = None
