"""Version-tagged fan-out of compile requests across targets.

Every compile is tagged with the buffer version it was built from and the
store's clear epoch at issue time. When an outcome arrives it is committed
only if the buffer still holds that version, the target has not already
accepted a newer version, and no ``clear()`` happened in between; otherwise
it is dropped silently. Older requests are never cancelled on the wire, they
simply lose this check when they come back late.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

from ylang_playground.core.error_handler import StructuredLogger, set_correlation_id
from ylang_playground.core.exceptions import UnknownTargetError
from ylang_playground.schemas.compiler import CompileOutcome, CompileTarget
from ylang_playground.services.compiler_client import CompilerClient
from ylang_playground.services.result_store import ResultStore
from ylang_playground.services.source_buffer import SourceBuffer


logger = logging.getLogger(__name__)
structured_logger = StructuredLogger(__name__)


class RequestDispatcher:
    def __init__(
        self,
        buffer: SourceBuffer,
        store: ResultStore,
        client: CompilerClient,
        *,
        project_id: str | None = None,
    ) -> None:
        self.buffer = buffer
        self.store = store
        self.client = client
        self.project_id = project_id
        self._tasks: set[asyncio.Task[list[CompileOutcome]]] = set()

    def _resolve_targets(
        self, targets: Iterable[CompileTarget] | None
    ) -> list[CompileTarget]:
        if targets is None:
            return list(self.store.targets)
        resolved: list[CompileTarget] = []
        for target in targets:
            target = CompileTarget.parse(target)
            if target not in self.store.targets:
                raise UnknownTargetError(str(target))
            if target not in resolved:
                resolved.append(target)
        return resolved

    async def trigger_compile(
        self, targets: Iterable[CompileTarget] | None = None
    ) -> list[CompileOutcome]:
        """Compile the current source for ``targets`` and wait for all to settle.

        Slots turn Pending before the first network await. Targets run
        concurrently and are committed independently as each arrives, so a
        caller awaiting this only learns of overall completion.
        """
        return await self._fan_out(self._resolve_targets(targets))

    def start_compile(
        self, targets: Iterable[CompileTarget] | None = None
    ) -> asyncio.Task[list[CompileOutcome]]:
        """Like ``trigger_compile`` but returns immediately after marking Pending."""
        resolved = self._resolve_targets(targets)
        snapshot = self.buffer.snapshot()
        epoch = self.store.epoch
        for target in resolved:
            self.store.mark_pending(target)
        task = asyncio.create_task(
            self._gather(resolved, snapshot.version, snapshot.text, epoch)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def compile_all(self) -> list[CompileOutcome]:
        return await self.trigger_compile(None)

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def _fan_out(self, targets: list[CompileTarget]) -> list[CompileOutcome]:
        snapshot = self.buffer.snapshot()
        epoch = self.store.epoch
        for target in targets:
            self.store.mark_pending(target)
        return await self._gather(targets, snapshot.version, snapshot.text, epoch)

    async def _gather(
        self, targets: list[CompileTarget], version: int, text: str, epoch: int
    ) -> list[CompileOutcome]:
        return list(
            await asyncio.gather(
                *(self._compile_target(t, version, text, epoch) for t in targets)
            )
        )

    async def _compile_target(
        self, target: CompileTarget, version: int, text: str, epoch: int
    ) -> CompileOutcome:
        # Each gathered coroutine runs in its own task, so the id stays local
        set_correlation_id(f"{target}:v{version}")
        try:
            response = await self.client.compile(text, target, self.project_id)
            outcome = CompileOutcome.from_response(target, version, response)
        except Exception as e:
            structured_logger.exception(
                "Compile request raised unexpectedly",
                target=str(target),
                version=version,
                exception_type=e.__class__.__name__,
            )
            outcome = CompileOutcome.failure(target, version, str(e) or repr(e))
        self._accept(outcome, epoch)
        return outcome

    def is_current(self, outcome: CompileOutcome, epoch: int) -> bool:
        slot = self.store.slot(outcome.target)
        return (
            outcome.version == self.buffer.current_version()
            and outcome.version >= slot.last_accepted_version
            and epoch == self.store.epoch
        )

    def _accept(self, outcome: CompileOutcome, epoch: int) -> bool:
        if not self.is_current(outcome, epoch):
            logger.debug(
                "Discarding stale %s outcome for version %s (buffer at %s)",
                outcome.target,
                outcome.version,
                self.buffer.current_version(),
            )
            return False
        self.store.commit(outcome)
        structured_logger.info(
            "Compile committed",
            target=str(outcome.target),
            version=outcome.version,
            success=outcome.success,
            error_count=len(outcome.errors),
            warning_count=len(outcome.warnings),
            elapsed_time_ms=outcome.elapsed_time_ms,
        )
        return True
