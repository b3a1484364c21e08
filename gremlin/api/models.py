"""Pydantic v2 response models for the application's own endpoints."""

from pydantic import BaseModel


class LiveResponse(BaseModel):
    status: str = "alive"


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    base_path: str
    procedure_count: int
