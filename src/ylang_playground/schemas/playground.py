"""Schemas for the playground display surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ylang_playground.schemas.compiler import CompileTarget, OverallStatus, SlotStatus


class ResultSlotView(BaseModel):
    """Read-only view of one target's latest accepted result."""

    target: CompileTarget
    status: SlotStatus
    last_accepted_version: int
    compiled_code: str = ""
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    elapsed_time_ms: float = 0

    model_config = ConfigDict(from_attributes=True)


class PlaygroundState(BaseModel):
    source_version: int
    auto_compile: bool
    status: OverallStatus
    last_compile_duration_ms: float = 0
    slots: list[ResultSlotView] = Field(default_factory=list)
    # Every slot's messages as "target: message", for a single status pane
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class SourceUpdateRequest(BaseModel):
    code: str = Field(..., max_length=200_000)

    model_config = ConfigDict(extra="forbid")


class AutoCompileRequest(BaseModel):
    enabled: bool

    model_config = ConfigDict(extra="forbid")


class CompileTriggerRequest(BaseModel):
    """Targets to compile; all configured targets when omitted."""

    targets: list[CompileTarget] | None = Field(default=None, min_length=1)

    model_config = ConfigDict(extra="forbid")


class BackendStatus(BaseModel):
    healthy: bool
    health_message: str | None = None
    name: str | None = None
    version: str | None = None
    available_endpoints: list[str] = Field(default_factory=list)
