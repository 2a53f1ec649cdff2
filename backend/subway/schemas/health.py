"""Operational endpoint schemas."""

from pydantic import BaseModel


class RootResponse(BaseModel):
    """Root endpoint response."""

    message: str
    version: str


class HealthResponse(BaseModel):
    """Liveness response."""

    status: str


class ReadinessResponse(BaseModel):
    """Readiness response; database is 'ok' when a trivial query succeeds."""

    status: str
    database: str
