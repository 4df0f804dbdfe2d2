"""Playground session: one source buffer compiled to every target.

Wires the source buffer, result store, request dispatcher and debounce
scheduler together and is the only object the display layer talks to. Edits,
explicit compile/clear actions and the auto-compile toggle go in; result
snapshots come out.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

import httpx

from ylang_playground.core.config import Settings
from ylang_playground.core.exceptions import CompilerServiceError
from ylang_playground.core.scheduler import DEFAULT_DEBOUNCE_SECONDS, DebounceScheduler
from ylang_playground.schemas.compiler import (
    ApiInfo,
    CompileOutcome,
    CompileTarget,
    ValidateResponse,
)
from ylang_playground.schemas.playground import BackendStatus, PlaygroundState
from ylang_playground.services.compiler_client import CompilerClient
from ylang_playground.services.dispatcher import RequestDispatcher
from ylang_playground.services.result_store import ResultStore
from ylang_playground.services.source_buffer import SourceBuffer


logger = logging.getLogger(__name__)


class PlaygroundSession:
    def __init__(
        self,
        client: CompilerClient,
        *,
        targets: Iterable[CompileTarget] | None = None,
        initial_code: str = "",
        auto_compile: bool = False,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        project_id: str | None = None,
    ) -> None:
        self.client = client
        self.buffer = SourceBuffer(initial_code)
        self.store = ResultStore(
            [CompileTarget.parse(t) for t in targets]
            if targets is not None
            else tuple(CompileTarget)
        )
        self.dispatcher = RequestDispatcher(
            self.buffer, self.store, client, project_id=project_id
        )
        self.debouncer = DebounceScheduler(
            debounce_seconds, job_id="auto_compile", name="Auto-compile all targets"
        )
        self._auto_compile = auto_compile

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        initial_code: str = "",
    ) -> PlaygroundSession:
        return cls(
            CompilerClient.from_settings(settings, transport=transport),
            targets=[CompileTarget.parse(t) for t in settings.COMPILE_TARGETS],
            initial_code=initial_code,
            auto_compile=settings.AUTO_COMPILE,
            debounce_seconds=settings.debounce_interval_seconds,
            project_id=settings.PROJECT_ID,
        )

    @property
    def auto_compile(self) -> bool:
        return self._auto_compile

    @property
    def is_compiling(self) -> bool:
        return self.store.is_compiling()

    def edit(self, text: str) -> int:
        """Replace the source; with auto-compile on, (re)arm the debounced compile."""
        version = self.buffer.edit(text)
        if self._auto_compile and not self.debouncer.closed:
            self.debouncer.schedule(self.dispatcher.compile_all)
        return version

    def set_auto_compile(self, enabled: bool) -> None:
        """Toggle auto-compile; enabling it schedules a compile of the current text."""
        if enabled == self._auto_compile:
            return
        self._auto_compile = enabled
        if enabled and not self.debouncer.closed:
            self.debouncer.schedule(self.dispatcher.compile_all)
        else:
            self.debouncer.cancel()
        logger.info("Auto-compile %s", "enabled" if enabled else "disabled")

    async def compile_all(self) -> list[CompileOutcome]:
        return await self.dispatcher.compile_all()

    async def compile(self, target: CompileTarget) -> CompileOutcome:
        (outcome,) = await self.dispatcher.trigger_compile([target])
        return outcome

    async def compile_targets(
        self, targets: Iterable[CompileTarget] | None
    ) -> list[CompileOutcome]:
        return await self.dispatcher.trigger_compile(targets)

    def clear(self) -> None:
        """Reset every result slot; in-flight compiles are left to finish unseen."""
        self.store.clear()

    def state(self) -> PlaygroundState:
        return PlaygroundState(
            source_version=self.buffer.current_version(),
            auto_compile=self._auto_compile,
            status=self.store.overall_status(),
            last_compile_duration_ms=self.store.last_compile_duration_ms,
            slots=self.store.views(),
            errors=self.store.errors(),
            warnings=self.store.warnings(),
        )

    async def validate(self) -> ValidateResponse:
        return await self.client.validate(self.buffer.current_text())

    async def info(self) -> ApiInfo:
        """Compiler metadata; raises ``CompilerServiceError`` when unreachable."""
        return await self.client.info()

    async def health(self) -> str:
        return await self.client.health()

    async def backend_status(self) -> BackendStatus:
        """Health and metadata of the remote compiler; never raises."""
        try:
            health_message = await self.health()
        except CompilerServiceError as exc:
            return BackendStatus(healthy=False, health_message=exc.message)
        try:
            info = await self.info()
        except CompilerServiceError as exc:
            logger.warning("Compiler info unavailable: %s", exc.message)
            return BackendStatus(healthy=True, health_message=health_message)
        return BackendStatus(
            healthy=True,
            health_message=health_message,
            name=info.name,
            version=info.version,
            available_endpoints=info.available_endpoints,
        )

    async def aclose(self) -> None:
        """Disarm any pending auto-compile; call on session teardown."""
        self.debouncer.shutdown()
