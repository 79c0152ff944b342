"""フェーズバリデーションのMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from keel.models.errors import InvalidPayloadError, KeelError
from keel.models.project import PHASE_ORDER
from keel.services.project import ProjectService
from keel.validators.phase import validate_phase


def _summarize(results: list[Any]) -> dict[str, int]:
    summary: dict[str, int] = {}
    for result in results:
        summary[result.status] = summary.get(result.status, 0) + 1
    return summary


def register_validation_tools(mcp: FastMCP, project_service: ProjectService) -> None:
    """バリデーション関連のMCPツールを登録する。"""

    @mcp.tool()
    async def validate_project(project_id: str, phase: str | None = None) -> dict[str, Any]:
        """保存済みプロジェクトの指定フェーズを検証する。

        プロジェクトの状態は変更しません。phaseを省略した場合は
        プロジェクトの現在フェーズを検証します。

        Args:
            project_id: プロジェクトID。
            phase: 検証するフェーズ（"A", "B", "C", "D"）。
        """
        try:
            project = await project_service.get_project(project_id)
            target = phase or project.current_phase
            if target not in PHASE_ORDER:
                raise InvalidPayloadError(f"Unknown phase: {target}", field="phase")
            results = validate_phase(project, target)
            return {
                "phase": target,
                "results": [r.model_dump() for r in results],
                "summary": _summarize(results),
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def validate_workspace() -> dict[str, Any]:
        """アクティブプロジェクトの現在フェーズを再検証する。"""
        try:
            store = project_service.active
            results = store.revalidate()
            return {
                "phase": store.project.current_phase,
                "results": [r.model_dump() for r in results],
                "summary": _summarize(results),
            }
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}
