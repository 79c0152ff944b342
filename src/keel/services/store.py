"""アクティブプロジェクトの変更操作と導出状態を管理するストア。"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol

from pydantic import BaseModel

from keel.models.errors import InvalidPayloadError, PhaseLockedError, RecommendationError
from keel.models.project import COLLECTION_MODELS, PHASE_ORDER, Project, parse_payload
from keel.models.recommendation import AIRecommendation
from keel.models.validation import ValidationResult
from keel.services.debounce import PersistFn, Scheduler, WriteCoalescer
from keel.validators.gate import can_advance, can_navigate
from keel.validators.phase import IdFactory, validate_phase

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


class RecommendationSource(Protocol):
    async def recommend(self, project: Project, phase: str) -> list[AIRecommendation]: ...


def _model_for(collection: str) -> type[BaseModel]:
    try:
        return COLLECTION_MODELS[collection]
    except KeyError:
        raise InvalidPayloadError(f"Unknown collection: {collection}", field="collection") from None


class ProjectStore:
    """単一のアクティブプロジェクトを保持し、唯一の変更窓口を提供する。

    変更はコピーオンライトで行い、毎回新しいProjectを生成する。
    有効な変更ごとにupdated_atを更新し、デバウンス保存を予約し、
    現在フェーズのバリデーション結果を再計算する。
    """

    def __init__(
        self,
        project: Project,
        persist: PersistFn,
        *,
        debounce_seconds: float = 1.0,
        scheduler: Scheduler | None = None,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._project = project
        self._writer = WriteCoalescer(persist, delay=debounce_seconds, scheduler=scheduler)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._id_factory = id_factory
        self.validation_results: list[ValidationResult] = []
        self.recommendations: list[AIRecommendation] = []
        self.recommendation_error: str | None = None
        self._issued_requests = 0
        self._applied_request = 0
        self._pending_requests = 0
        self.revalidate()

    @property
    def project(self) -> Project:
        return self._project

    @property
    def writer(self) -> WriteCoalescer:
        return self._writer

    @property
    def is_fetching_recommendations(self) -> bool:
        return self._pending_requests > 0

    # --- コレクション操作 ---

    def add(self, collection: str, item: BaseModel | dict[str, Any]) -> Project:
        """コレクションに要素を追加する。要素のIDは呼び出し側で採番済みであること。

        Raises:
            InvalidPayloadError: コレクション名・要素が不正、またはIDが重複している場合。
        """
        model = _model_for(collection)
        new_item = parse_payload(model, item)
        items: list[Any] = getattr(self._project, collection)
        new_id = new_item.id  # type: ignore[attr-defined]
        if any(existing.id == new_id for existing in items):
            raise InvalidPayloadError(f"Duplicate id in {collection}: {new_id}", field="id")
        return self._commit(**{collection: [*items, new_item]})

    def update(self, collection: str, item_id: str, patch: BaseModel | dict[str, Any]) -> Project:
        """要素を部分更新する（浅いマージ）。IDが存在しない場合は何もしない。

        Raises:
            InvalidPayloadError: コレクション名・更新内容が不正な場合。
        """
        model = _model_for(collection)
        items: list[Any] = getattr(self._project, collection)
        index = next((i for i, existing in enumerate(items) if existing.id == item_id), None)
        if index is None:
            return self._project

        changes = patch.model_dump(exclude_unset=True) if isinstance(patch, BaseModel) else dict(patch)
        merged = {**items[index].model_dump(), **changes, "id": item_id}
        updated_item = parse_payload(model, merged)
        return self._commit(**{collection: [*items[:index], updated_item, *items[index + 1 :]]})

    def remove(self, collection: str, item_id: str) -> Project:
        """要素を削除する。IDが存在しない場合は何もしない。"""
        _model_for(collection)
        items: list[Any] = getattr(self._project, collection)
        remaining = [existing for existing in items if existing.id != item_id]
        if len(remaining) == len(items):
            return self._project
        return self._commit(**{collection: remaining})

    # --- フェーズ操作 ---

    def set_phase(self, phase: str) -> Project:
        """current_phaseを無条件に更新する。ゲート判定は呼び出し側の責務。

        Raises:
            InvalidPayloadError: 未知のフェーズの場合。
        """
        if phase not in PHASE_ORDER:
            raise InvalidPayloadError(f"Unknown phase: {phase}", field="current_phase")
        return self._commit(current_phase=phase)

    def navigate(self, phase: str) -> Project:
        """フェーズゲートを適用してフェーズを移動する。

        Raises:
            InvalidPayloadError: 未知のフェーズの場合。
            PhaseLockedError: 先のフェーズへの移動条件を満たしていない場合。
        """
        if phase not in PHASE_ORDER:
            raise InvalidPayloadError(f"Unknown phase: {phase}", field="current_phase")
        if not can_navigate(self._project, phase):
            raise PhaseLockedError(self._project.current_phase, phase)
        return self.set_phase(phase)

    def can_advance(self, phase: str) -> bool:
        return can_advance(self._project, phase)

    def revalidate(self) -> list[ValidationResult]:
        """現在フェーズのバリデーション結果を再計算する。"""
        self.validation_results = validate_phase(self._project, self._project.current_phase, self._id_factory)
        return self.validation_results

    # --- AI推奨 ---

    async def fetch_recommendations(self, source: RecommendationSource) -> list[AIRecommendation]:
        """現在フェーズのAI推奨を取得する。

        進行中の要求はキャンセルしない。後から発行された要求の応答が優先され、
        それより古い要求の応答が後着した場合は破棄する。

        Raises:
            RecommendationError: 取得に失敗した場合。
        """
        self._issued_requests += 1
        ticket = self._issued_requests
        self._pending_requests += 1
        try:
            recommendations = await source.recommend(self._project, self._project.current_phase)
        except RecommendationError as e:
            if ticket > self._applied_request:
                self.recommendation_error = str(e)
            logger.warning("Recommendation request %d failed: %s", ticket, e)
            raise
        finally:
            self._pending_requests -= 1

        if ticket < self._applied_request:
            logger.info("Discarding stale recommendation response %d", ticket)
            return self.recommendations
        self._applied_request = ticket
        self.recommendations = recommendations
        self.recommendation_error = None
        return recommendations

    # --- 保存 ---

    async def flush(self) -> None:
        """待機中の保存を即時に書き込む。"""
        await self._writer.flush()

    async def close(self) -> None:
        """待機中の保存を書き込んでからストアを閉じる。"""
        await self._writer.flush()

    async def discard(self) -> None:
        """保存せずにストアを破棄する。実行中の書き込みは完了を待つ。"""
        await self._writer.discard()

    def _commit(self, **changes: Any) -> Project:
        # 保存の予約に失敗した場合はローカル状態を変更しない
        updated = self._project.model_copy(update={**changes, "updated_at": self._clock()})
        self._writer.submit(updated)
        self._project = updated
        self.revalidate()
        return updated
