"""Wire and domain schemas for the remote Y Language compiler.

Wire models mirror the compiler service's camelCase JSON (``targetLanguage``,
``compiledCode``, ``executionTimeMs`` ...) through field aliases, while Python
code uses snake_case attribute names. ``CompileOutcome`` is the version-tagged
result the dispatcher decides to commit or discard.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ylang_playground.core.exceptions import UnknownTargetError


class CompileTarget(StrEnum):
    """Output languages the remote compiler can produce."""

    TYPESCRIPT = "typescript"
    RUST = "rust"

    @classmethod
    def parse(cls, value: str | CompileTarget) -> CompileTarget:
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise UnknownTargetError(str(value)) from e


class SlotStatus(StrEnum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OverallStatus(StrEnum):
    """Cross-target status shown by the display layer."""

    IDLE = "idle"
    COMPILING = "compiling"
    SUCCESS = "success"
    FAILED = "failed"


class CompileRequest(BaseModel):
    """Body of ``POST /compile``."""

    code: str
    target_language: CompileTarget = Field(alias="targetLanguage")
    project_id: str | None = Field(default=None, alias="projectId")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="forbid")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class CompileResponse(BaseModel):
    """Body returned by ``POST /compile`` on success.

    Failures are normalized into the same shape by the client so callers
    never branch on transport details.
    """

    success: bool
    compiled_code: str | None = Field(default=None, alias="compiledCode")
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    execution_time_ms: float = Field(default=0, alias="executionTimeMs")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def failure(cls, message: str) -> CompileResponse:
        return cls(success=False, compiled_code=None, errors=[message], warnings=[])


class ValidateRequest(BaseModel):
    code: str

    model_config = ConfigDict(frozen=True, extra="forbid")


class ValidateResponse(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    validation_time_ms: float = Field(default=0, alias="validationTimeMs")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def failure(cls, message: str) -> ValidateResponse:
        return cls(valid=False, errors=[message], warnings=[])


class ApiInfo(BaseModel):
    """Body of ``GET /info``."""

    name: str
    version: str
    description: str = ""
    available_endpoints: list[str] = Field(
        default_factory=list, alias="availableEndpoints"
    )

    model_config = ConfigDict(populate_by_name=True)


class CompileOutcome(BaseModel):
    """Normalized result of one compile attempt for one buffer version."""

    target: CompileTarget
    version: int = Field(..., ge=0)
    success: bool
    compiled_code: str | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    elapsed_time_ms: float = 0

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_response(
        cls, target: CompileTarget, version: int, response: CompileResponse
    ) -> CompileOutcome:
        return cls(
            target=target,
            version=version,
            success=response.success,
            compiled_code=response.compiled_code if response.success else None,
            errors=list(response.errors),
            warnings=list(response.warnings),
            elapsed_time_ms=response.execution_time_ms,
        )

    @classmethod
    def failure(cls, target: CompileTarget, version: int, message: str) -> CompileOutcome:
        return cls(target=target, version=version, success=False, errors=[message])
