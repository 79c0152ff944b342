"""WriteCoalescerのユニットテスト。"""

import asyncio

import pytest
from factories import ManualScheduler, make_project

from keel.models.project import Project
from keel.services.debounce import LoopScheduler, WriteCoalescer


class _Recorder:
    def __init__(self, fail: bool = False) -> None:
        self.saved: list[Project] = []
        self.fail = fail

    async def __call__(self, project: Project) -> None:
        if self.fail:
            raise OSError("disk full")
        self.saved.append(project)


class TestWriteCoalescer:
    async def test_burst_collapses_to_one_write(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        for i in range(3):
            writer.submit(make_project(name=f"v{i}"))
            scheduler.advance(0.2)
        assert recorder.saved == []

        scheduler.advance(1.0)
        await scheduler.drain()
        assert [p.name for p in recorder.saved] == ["v2"]
        assert writer.completed_writes == 1
        assert writer.has_pending is False

    async def test_timer_restarts_on_each_submit(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        writer.submit(make_project(name="v1"))
        scheduler.advance(0.9)
        writer.submit(make_project(name="v2"))
        scheduler.advance(0.9)
        assert scheduler.spawned_count == 0
        scheduler.advance(0.1)
        await scheduler.drain()
        assert [p.name for p in recorder.saved] == ["v2"]

    async def test_write_failure_is_retained_locally(self, scheduler: ManualScheduler) -> None:
        writer = WriteCoalescer(_Recorder(fail=True), delay=1.0, scheduler=scheduler)
        writer.submit(make_project())
        scheduler.advance(1.0)
        await scheduler.drain()
        assert writer.failed_writes == 1
        assert writer.completed_writes == 0
        assert writer.in_flight == 0

    async def test_flush_writes_immediately(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        writer.submit(make_project(name="pending"))
        await writer.flush()
        assert [p.name for p in recorder.saved] == ["pending"]
        assert scheduler.active_timers == []

    async def test_flush_without_pending_is_noop(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        await writer.flush()
        assert recorder.saved == []

    async def test_cancel_discards_pending(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        writer.submit(make_project())
        writer.cancel()
        scheduler.advance(5.0)
        await scheduler.drain()
        assert recorder.saved == []
        assert writer.has_pending is False


class _RefusingScheduler(ManualScheduler):
    def call_later(self, delay, callback):  # type: ignore[no-untyped-def]
        raise RuntimeError("timer unavailable")


class TestSchedulingFailures:
    def test_failed_submit_keeps_previous_pending(self) -> None:
        writer = WriteCoalescer(_Recorder(), delay=1.0, scheduler=_RefusingScheduler())
        with pytest.raises(RuntimeError):
            writer.submit(make_project())
        assert writer.has_pending is False

    def test_loop_scheduler_outside_event_loop_defers_to_flush(self) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=LoopScheduler())
        writer.submit(make_project(name="offline"))
        assert writer.has_pending is True

        asyncio.run(writer.flush())
        assert [p.name for p in recorder.saved] == ["offline"]


class _GatedRecorder(_Recorder):
    def __init__(self) -> None:
        super().__init__()
        self.gate: asyncio.Future[None] | None = None

    async def __call__(self, project: Project) -> None:
        self.gate = asyncio.get_running_loop().create_future()
        await self.gate
        self.saved.append(project)


class TestDiscard:
    async def test_spawned_write_skipped_after_discard(self, scheduler: ManualScheduler) -> None:
        recorder = _Recorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        writer.submit(make_project())
        scheduler.advance(1.0)
        assert scheduler.spawned_count == 1

        await writer.discard()
        await scheduler.drain()
        assert recorder.saved == []
        assert writer.completed_writes == 0

    async def test_discard_waits_for_in_flight_write(self, scheduler: ManualScheduler) -> None:
        recorder = _GatedRecorder()
        writer = WriteCoalescer(recorder, delay=1.0, scheduler=scheduler)
        writer.submit(make_project())
        scheduler.advance(1.0)
        drain = asyncio.create_task(scheduler.drain())
        await asyncio.sleep(0)
        assert writer.in_flight == 1

        discard = asyncio.create_task(writer.discard())
        await asyncio.sleep(0)
        assert not discard.done()

        assert recorder.gate is not None
        recorder.gate.set_result(None)
        await drain
        await discard
        assert writer.in_flight == 0
        assert len(recorder.saved) == 1
