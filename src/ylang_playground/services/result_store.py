"""Per-target result slots and the aggregate status shown to the user."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ylang_playground.schemas.compiler import (
    CompileOutcome,
    CompileTarget,
    OverallStatus,
    SlotStatus,
)
from ylang_playground.schemas.playground import ResultSlotView


@dataclass
class ResultSlot:
    target: CompileTarget
    status: SlotStatus = SlotStatus.IDLE
    last_accepted_version: int = 0
    compiled_code: str = ""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    elapsed_time_ms: float = 0

    def reset(self) -> None:
        # last_accepted_version is kept so acceptance stays non-decreasing
        self.status = SlotStatus.IDLE
        self.compiled_code = ""
        self.errors = []
        self.warnings = []
        self.elapsed_time_ms = 0


class ResultStore:
    """Holds one ``ResultSlot`` per target.

    Slots are written only through ``mark_pending`` and ``commit``, which the
    dispatcher calls; everything else is a read. ``epoch`` increments on every
    ``clear()`` so outcomes issued before a clear can be recognized and
    suppressed.
    """

    def __init__(self, targets: Iterable[CompileTarget] = tuple(CompileTarget)) -> None:
        self._slots: dict[CompileTarget, ResultSlot] = {
            target: ResultSlot(target=target) for target in targets
        }
        if not self._slots:
            raise ValueError("ResultStore needs at least one target")
        self.last_compile_duration_ms: float = 0
        self.epoch = 0

    @property
    def targets(self) -> tuple[CompileTarget, ...]:
        return tuple(self._slots)

    def slot(self, target: CompileTarget) -> ResultSlot:
        return self._slots[target]

    def slots(self) -> list[ResultSlot]:
        return list(self._slots.values())

    def mark_pending(self, target: CompileTarget) -> None:
        self._slots[target].status = SlotStatus.PENDING

    def commit(self, outcome: CompileOutcome) -> None:
        slot = self._slots[outcome.target]
        slot.last_accepted_version = outcome.version
        slot.status = SlotStatus.SUCCEEDED if outcome.success else SlotStatus.FAILED
        slot.compiled_code = outcome.compiled_code or ""
        slot.errors = list(outcome.errors)
        slot.warnings = list(outcome.warnings)
        slot.elapsed_time_ms = outcome.elapsed_time_ms
        self.last_compile_duration_ms = outcome.elapsed_time_ms

    def clear(self) -> None:
        for slot in self._slots.values():
            slot.reset()
        self.last_compile_duration_ms = 0
        self.epoch += 1

    def is_compiling(self) -> bool:
        return any(s.status is SlotStatus.PENDING for s in self._slots.values())

    def overall_status(self) -> OverallStatus:
        statuses = {s.status for s in self._slots.values()}
        if SlotStatus.PENDING in statuses:
            return OverallStatus.COMPILING
        if SlotStatus.FAILED in statuses:
            return OverallStatus.FAILED
        if SlotStatus.SUCCEEDED in statuses:
            return OverallStatus.SUCCESS
        return OverallStatus.IDLE

    def errors(self) -> list[str]:
        """All errors across targets, prefixed with the target name."""
        return [f"{s.target}: {e}" for s in self._slots.values() for e in s.errors]

    def warnings(self) -> list[str]:
        return [f"{s.target}: {w}" for s in self._slots.values() for w in s.warnings]

    def views(self) -> list[ResultSlotView]:
        return [ResultSlotView.model_validate(s) for s in self._slots.values()]
