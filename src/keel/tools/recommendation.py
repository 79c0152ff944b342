"""AI推奨のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from keel.models.errors import InvalidPayloadError, KeelError
from keel.models.project import PHASE_ORDER
from keel.services.project import ProjectService
from keel.services.recommendation import RecommendationGateway


def register_recommendation_tools(
    mcp: FastMCP, project_service: ProjectService, gateway: RecommendationGateway
) -> None:
    """AI推奨のMCPツールを登録する。"""

    @mcp.tool()
    async def get_recommendations(project_id: str, phase: str | None = None) -> dict[str, Any]:
        """プロジェクトの指定フェーズに対するAI推奨を取得する。

        OpenAI APIキーが設定されていない場合はエラーを返します。
        phaseを省略した場合はプロジェクトの現在フェーズを対象にします。

        Args:
            project_id: プロジェクトID。
            phase: 対象フェーズ（"A", "B", "C", "D"）。
        """
        try:
            project = await project_service.get_project(project_id)
            target = phase or project.current_phase
            if target not in PHASE_ORDER:
                raise InvalidPayloadError(f"Unknown phase: {target}", field="phase")
            recommendations = await gateway.recommend(project, target)
            return {"phase": target, "recommendations": [r.model_dump() for r in recommendations]}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def refresh_workspace_recommendations() -> dict[str, Any]:
        """アクティブプロジェクトの現在フェーズに対するAI推奨を再取得する。

        取得結果はワークスペースに保持され、get_workspace でも参照できます。
        """
        try:
            store = project_service.active
            recommendations = await store.fetch_recommendations(gateway)
            return {
                "phase": store.project.current_phase,
                "recommendations": [r.model_dump() for r in recommendations],
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}
