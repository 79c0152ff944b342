"""プロジェクト保存のデバウンス（書き込みの集約）を行う。"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Coroutine
from typing import Any, Protocol

from keel.models.project import Project

logger = logging.getLogger(__name__)

PersistFn = Callable[[Project], Awaitable[None]]


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """タイマーとバックグラウンド実行の抽象。テストでは時間を手動で進める実装に差し替える。

    call_laterがNoneを返した場合、保存はflushされるまで保留される。
    """

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle | None: ...

    def spawn(self, coro: Coroutine[Any, Any, None]) -> None: ...


class LoopScheduler:
    """実行中のasyncioイベントループを利用するスケジューラ。"""

    def __init__(self) -> None:
        # 実行中タスクがGCされないよう参照を保持する
        self._tasks: set[asyncio.Task[None]] = set()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # イベントループ外の変更はタイマーを張らず、flushまで保留する
            return None
        return loop.call_later(delay, callback)

    def spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)


class WriteCoalescer:
    """一定時間内の保存要求を1回の書き込みに集約する。

    書き込まれるのは常に最新のプロジェクト全体のスナップショットであり、
    完了順序が前後しても最後の書き込みが勝つ。
    書き込み失敗はログに記録して握りつぶし、ローカル状態はそのまま保持する（ロールバック・リトライなし）。
    """

    def __init__(self, persist: PersistFn, delay: float = 1.0, scheduler: Scheduler | None = None) -> None:
        self._persist = persist
        self._delay = delay
        self._scheduler = scheduler or LoopScheduler()
        self._pending: Project | None = None
        self._timer: TimerHandle | None = None
        self._discarded = False
        self._idle = asyncio.Event()
        self._idle.set()
        self.in_flight = 0
        self.completed_writes = 0
        self.failed_writes = 0

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    def submit(self, snapshot: Project) -> None:
        """保存対象のスナップショットを登録し、デバウンスタイマーを再設定する。

        タイマーの予約に失敗した場合は例外を送出し、既存の保留状態は変更しない。
        """
        timer = self._scheduler.call_later(self._delay, self._fire)
        if self._timer is not None:
            self._timer.cancel()
        self._timer = timer
        self._pending = snapshot

    def _fire(self) -> None:
        self._timer = None
        snapshot = self._take_pending()
        if snapshot is not None:
            self._scheduler.spawn(self._write(snapshot))

    def _take_pending(self) -> Project | None:
        snapshot, self._pending = self._pending, None
        return snapshot

    async def flush(self) -> None:
        """待機中の保存を即時に実行する。"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        snapshot = self._take_pending()
        if snapshot is not None:
            await self._write(snapshot)

    def cancel(self) -> None:
        """待機中の保存を破棄する。"""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending = None

    async def discard(self) -> None:
        """待機中の保存を破棄し、実行中の書き込みの完了を待つ。

        以降、開始前の書き込みはすべてスキップされる。プロジェクト削除時に
        書き込みで削除済みのプロジェクトが復活しないようにするために使う。
        """
        self.cancel()
        self._discarded = True
        await self._idle.wait()

    async def _write(self, snapshot: Project) -> None:
        if self._discarded:
            logger.debug("Skipping save of discarded project %s", snapshot.id)
            return
        self.in_flight += 1
        self._idle.clear()
        try:
            await self._persist(snapshot)
        except Exception:
            self.failed_writes += 1
            logger.exception("Failed to save project %s; keeping local state", snapshot.id)
        else:
            self.completed_writes += 1
            logger.debug("Saved project %s", snapshot.id)
        finally:
            self.in_flight -= 1
            if self.in_flight == 0:
                self._idle.set()
