"""アクティブプロジェクト編集のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from keel.models.errors import KeelError
from keel.models.project import PHASE_ORDER
from keel.services.project import ProjectService
from keel.services.store import ProjectStore


def workspace_state(store: ProjectStore) -> dict[str, Any]:
    """アクティブプロジェクトと導出状態をまとめて返す。"""
    project = store.project
    return {
        "project": project.model_dump(mode="json"),
        "current_phase": project.current_phase,
        "phase_access": {phase: store.can_advance(phase) for phase in PHASE_ORDER},
        "validations": [v.model_dump() for v in store.validation_results],
        "recommendations": [r.model_dump() for r in store.recommendations],
        "recommendation_error": store.recommendation_error,
        "save_pending": store.writer.has_pending,
    }


def register_workspace_tools(mcp: FastMCP, project_service: ProjectService) -> None:
    """アクティブプロジェクトのコレクション操作・フェーズ移動のMCPツールを登録する。"""

    @mcp.tool()
    async def get_workspace() -> dict[str, Any]:
        """アクティブプロジェクトの現在の状態を取得する。

        プロジェクト本体、現在フェーズ、各フェーズへの到達可否、
        現在フェーズのバリデーション結果、直近のAI推奨を返します。
        """
        try:
            return workspace_state(project_service.active)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def add_item(collection: str, item: dict[str, Any]) -> dict[str, Any]:
        """アクティブプロジェクトのコレクションに要素を追加する。

        変更は約1秒のデバウンス後に自動保存されます。

        Args:
            collection: コレクション名（bounded_contexts, services, container_configs,
                slo_definitions, autoscaling_strategies, k8s_manifests,
                resilience_patterns, observability_configs）。
            item: 追加する要素。"id" フィールドは呼び出し側で採番してください。
        """
        try:
            store = project_service.active
            store.add(collection, item)
            return workspace_state(store)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def update_item(collection: str, item_id: str, patch: dict[str, Any]) -> dict[str, Any]:
        """コレクションの要素を部分更新する。

        指定したフィールドのみを上書きします。IDが存在しない場合は何も変更しません。

        Args:
            collection: コレクション名。
            item_id: 更新する要素のID。
            patch: 更新するフィールド。
        """
        try:
            store = project_service.active
            store.update(collection, item_id, patch)
            return workspace_state(store)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def remove_item(collection: str, item_id: str) -> dict[str, Any]:
        """コレクションから要素を削除する。IDが存在しない場合は何も変更しない。

        Args:
            collection: コレクション名。
            item_id: 削除する要素のID。
        """
        try:
            store = project_service.active
            store.remove(collection, item_id)
            return workspace_state(store)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def set_phase(phase: str) -> dict[str, Any]:
        """現在フェーズを無条件に設定する。

        フェーズゲートを適用しません。通常の移動には navigate_to_phase を使用してください。

        Args:
            phase: フェーズ（"A", "B", "C", "D"）。
        """
        try:
            store = project_service.active
            store.set_phase(phase)
            return workspace_state(store)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def navigate_to_phase(phase: str) -> dict[str, Any]:
        """フェーズゲートに従ってフェーズを移動する。

        前のフェーズへは常に戻れます。先のフェーズへは、
        B: サービスが1件以上、C: コンテナ設定が1件以上、D: K8sマニフェストが1件以上
        ある場合にのみ進めます。

        Args:
            phase: 移動先フェーズ（"A", "B", "C", "D"）。
        """
        try:
            store = project_service.active
            store.navigate(phase)
            return workspace_state(store)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def check_phase_access() -> dict[str, Any]:
        """アクティブプロジェクトの各フェーズへの到達可否を取得する。"""
        try:
            store = project_service.active
            return {
                "current_phase": store.project.current_phase,
                "phase_access": {phase: store.can_advance(phase) for phase in PHASE_ORDER},
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}
