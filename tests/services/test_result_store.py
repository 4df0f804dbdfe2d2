"""Unit tests for the result store."""

from __future__ import annotations

import pytest

from ylang_playground.schemas.compiler import (
    CompileOutcome,
    CompileTarget,
    OverallStatus,
    SlotStatus,
)
from ylang_playground.services.result_store import ResultStore


TS = CompileTarget.TYPESCRIPT
RUST = CompileTarget.RUST


def _outcome(target: CompileTarget, version: int, **kwargs) -> CompileOutcome:
    defaults = {
        "success": True,
        "compiled_code": "console.log(1)",
        "errors": [],
        "warnings": [],
        "elapsed_time_ms": 12,
    }
    defaults.update(kwargs)
    return CompileOutcome(target=target, version=version, **defaults)


class TestResultStoreBasics:
    def test_one_idle_slot_per_target(self) -> None:
        store = ResultStore()
        assert store.targets == (TS, RUST)
        for slot in store.slots():
            assert slot.status is SlotStatus.IDLE
            assert slot.compiled_code == ""
            assert slot.errors == []
            assert slot.warnings == []
            assert slot.last_accepted_version == 0
        assert store.overall_status() is OverallStatus.IDLE

    def test_requires_a_target(self) -> None:
        with pytest.raises(ValueError):
            ResultStore([])

    def test_subset_of_targets(self) -> None:
        store = ResultStore([RUST])
        assert store.targets == (RUST,)
        with pytest.raises(KeyError):
            store.slot(TS)


class TestCommit:
    def test_success_commit(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 3))

        slot = store.slot(TS)
        assert slot.status is SlotStatus.SUCCEEDED
        assert slot.compiled_code == "console.log(1)"
        assert slot.last_accepted_version == 3
        assert slot.elapsed_time_ms == 12
        assert store.last_compile_duration_ms == 12

    def test_failure_commit_clears_compiled_code(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1))
        store.commit(
            _outcome(
                TS,
                2,
                success=False,
                compiled_code=None,
                errors=["unexpected token at line 2"],
                warnings=["unused variable x"],
                elapsed_time_ms=0,
            )
        )

        slot = store.slot(TS)
        assert slot.status is SlotStatus.FAILED
        assert slot.compiled_code == ""
        assert slot.errors == ["unexpected token at line 2"]
        assert slot.warnings == ["unused variable x"]

    def test_success_with_warnings_keeps_both(self) -> None:
        store = ResultStore()
        store.commit(_outcome(RUST, 1, compiled_code="fn main() {}", warnings=["w"]))
        slot = store.slot(RUST)
        assert slot.status is SlotStatus.SUCCEEDED
        assert slot.warnings == ["w"]

    def test_commit_only_touches_its_target(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1, success=False, compiled_code=None, errors=["e"]))
        assert store.slot(RUST).status is SlotStatus.IDLE


class TestOverallStatus:
    def test_pending_wins(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1, success=False, compiled_code=None, errors=["e"]))
        store.mark_pending(RUST)
        assert store.is_compiling()
        assert store.overall_status() is OverallStatus.COMPILING

    def test_failure_over_success(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1))
        store.commit(_outcome(RUST, 1, success=False, compiled_code=None, errors=["e"]))
        assert store.overall_status() is OverallStatus.FAILED

    def test_success(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1))
        assert store.overall_status() is OverallStatus.SUCCESS

    def test_aggregated_errors_and_warnings_are_prefixed(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 1, success=False, compiled_code=None, errors=["bad"]))
        store.commit(_outcome(RUST, 1, warnings=["meh"]))
        assert store.errors() == ["typescript: bad"]
        assert store.warnings() == ["rust: meh"]


class TestClear:
    def test_clear_resets_every_slot_and_duration(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 4))
        store.commit(_outcome(RUST, 4, success=False, compiled_code=None, errors=["e"]))
        store.mark_pending(TS)

        store.clear()

        for slot in store.slots():
            assert slot.status is SlotStatus.IDLE
            assert slot.compiled_code == ""
            assert slot.errors == []
            assert slot.warnings == []
            assert slot.elapsed_time_ms == 0
        assert store.last_compile_duration_ms == 0
        assert store.overall_status() is OverallStatus.IDLE

    def test_clear_bumps_epoch(self) -> None:
        store = ResultStore()
        assert store.epoch == 0
        store.clear()
        store.clear()
        assert store.epoch == 2

    def test_clear_keeps_last_accepted_version(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 7))
        store.clear()
        assert store.slot(TS).last_accepted_version == 7

    def test_views_reflect_slots(self) -> None:
        store = ResultStore()
        store.commit(_outcome(TS, 2))
        views = {v.target: v for v in store.views()}
        assert views[TS].status is SlotStatus.SUCCEEDED
        assert views[TS].compiled_code == "console.log(1)"
        assert views[RUST].status is SlotStatus.IDLE
