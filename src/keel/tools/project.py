"""プロジェクト管理のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from keel.models.errors import KeelError
from keel.services.project import ProjectService


def register_project_tools(mcp: FastMCP, project_service: ProjectService) -> None:
    """プロジェクトCRUD・エクスポート関連のMCPツールを登録する。"""

    @mcp.tool()
    async def create_project(name: str, description: str = "") -> dict[str, Any]:
        """新しい設計プロジェクトを作成し、アクティブプロジェクトとして開く。

        プロジェクトはフェーズAから開始し、全コレクションが空の状態で作成されます。
        返却される id を以降のツール呼び出しで使用します。

        Args:
            name: プロジェクト名（必須）。
            description: プロジェクトの説明。
        """
        try:
            project = await project_service.create_project(name, description)
            return project.model_dump(mode="json")
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_project(project_id: str) -> dict[str, Any]:
        """プロジェクトを取得する。

        Args:
            project_id: プロジェクトID。
        """
        try:
            project = await project_service.get_project(project_id)
            return project.model_dump(mode="json")
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def list_projects() -> dict[str, Any]:
        """保存されているプロジェクトの一覧を取得する。"""
        try:
            projects = await project_service.list_projects()
            return {
                "projects": [
                    {
                        "id": p.id,
                        "name": p.name,
                        "description": p.description,
                        "current_phase": p.current_phase,
                        "updated_at": p.updated_at.isoformat(),
                    }
                    for p in projects
                ]
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def patch_project(project_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """プロジェクトを部分更新する。

        name、description、current_phase、および8つのコレクション
        （bounded_contexts, services, container_configs, slo_definitions,
        autoscaling_strategies, k8s_manifests, resilience_patterns, observability_configs）
        の任意の組み合わせを指定できます。指定しなかったフィールドは変更されません。

        Args:
            project_id: プロジェクトID。
            fields: 更新するフィールド。
        """
        try:
            project = await project_service.patch_project(project_id, fields)
            return project.model_dump(mode="json")
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def delete_project(project_id: str) -> dict[str, Any]:
        """プロジェクトを削除する。

        Args:
            project_id: プロジェクトID。
        """
        try:
            deleted = await project_service.delete_project(project_id)
            return {"deleted": deleted}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def open_project(project_id: str) -> dict[str, Any]:
        """既存のプロジェクトをアクティブプロジェクトとして開く。

        既に開いているプロジェクトは保存を確定してから閉じられます。

        Args:
            project_id: プロジェクトID。
        """
        try:
            store = await project_service.open_project(project_id)
            return {
                "project": store.project.model_dump(mode="json"),
                "validations": [v.model_dump() for v in store.validation_results],
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def close_project() -> dict[str, Any]:
        """アクティブプロジェクトの保存を確定して閉じる。"""
        try:
            await project_service.close_project()
            return {"success": True}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def export_project(project_id: str) -> dict[str, Any]:
        """プロジェクト全体を整形済みJSONとして出力する。

        出力したJSONは import_project でそのまま復元できます。

        Args:
            project_id: プロジェクトID。
        """
        try:
            document = await project_service.export_json(project_id)
            return {"filename": f"{project_id}.json", "json": document}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def import_project(document: str, overwrite: bool = False) -> dict[str, Any]:
        """export_project で出力したJSONからプロジェクトを復元する。

        Args:
            document: エクスポートされたJSON文字列。
            overwrite: 同一IDのプロジェクトが存在する場合に上書きするか。
        """
        try:
            project = await project_service.import_json(document, overwrite=overwrite)
            return project.model_dump(mode="json")
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}
