"""
Pydantic models for the JSON routes.
"""

from typing import List

from pydantic import BaseModel, Field


class StatusResponse(BaseModel):
    """Body of ``GET /`` and ``GET /status``."""
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Agent version")
    uptime_seconds: int = Field(..., description="Seconds since the agent started")
    requests: int = Field(..., description="Requests received since start")
    scripts_run: int = Field(..., description="Script executions since start")
    available_scripts: List[str] = Field(default_factory=list, description="Installed script names")
    scripts_dir: str = Field(..., description="Configured scripts directory")


class ScriptListResponse(BaseModel):
    """Body of ``GET /list``."""
    scripts: List[str] = Field(default_factory=list, description="Installed script names, sorted")
