"""Shared test fixtures for pytest.

ENVIRONMENT is forced to ``test`` before any application import so settings
never pick up a developer's ``.env.dev``.
"""

import asyncio
import os
from collections.abc import Callable

import pytest

os.environ.setdefault("ENVIRONMENT", "test")

from ylang_playground.schemas.compiler import CompileResponse, CompileTarget


class ControlledCompilerClient:
    """Stand-in compiler whose responses are released one at a time.

    Each ``(target, code)`` pair waits on its own gate, so a test decides the
    order in which responses "arrive".
    """

    def __init__(self) -> None:
        self.calls: list[tuple[CompileTarget, str]] = []
        self.responses: dict[tuple[CompileTarget, str], CompileResponse | Exception] = {}
        self._gates: dict[tuple[CompileTarget, str], asyncio.Event] = {}

    def gate(self, target: CompileTarget, code: str) -> asyncio.Event:
        return self._gates.setdefault((target, code), asyncio.Event())

    def respond(
        self,
        target: CompileTarget,
        code: str,
        response: CompileResponse | Exception,
        *,
        release: bool = False,
    ) -> None:
        self.responses[(target, code)] = response
        if release:
            self.gate(target, code).set()

    def release(self, target: CompileTarget, code: str) -> None:
        self.gate(target, code).set()

    async def compile(
        self, code: str, target: CompileTarget, project_id: str | None = None
    ) -> CompileResponse:
        self.calls.append((target, code))
        await self.gate(target, code).wait()
        result = self.responses[(target, code)]
        if isinstance(result, Exception):
            raise result
        return result


def ok(compiled_code: str, *, warnings: list[str] | None = None, ms: float = 12):
    return CompileResponse(
        success=True,
        compiled_code=compiled_code,
        errors=[],
        warnings=warnings or [],
        execution_time_ms=ms,
    )


def failed(*errors: str, warnings: list[str] | None = None, ms: float = 3):
    return CompileResponse(
        success=False,
        compiled_code=None,
        errors=list(errors),
        warnings=warnings or [],
        execution_time_ms=ms,
    )


@pytest.fixture
def controlled_client() -> ControlledCompilerClient:
    return ControlledCompilerClient()


@pytest.fixture
def ok_response() -> Callable[..., CompileResponse]:
    return ok


@pytest.fixture
def failed_response() -> Callable[..., CompileResponse]:
    return failed
