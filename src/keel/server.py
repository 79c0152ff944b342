"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from keel.config import ServerConfig
from keel.prompts.workflow import register_workflow_prompts
from keel.resources.catalog import register_catalog_resources
from keel.services.project import ProjectService
from keel.services.recommendation import RecommendationGateway
from keel.storage.service import StorageService
from keel.tools.codegen import register_codegen_tools
from keel.tools.project import register_project_tools
from keel.tools.recommendation import register_recommendation_tools
from keel.tools.validation import register_validation_tools
from keel.tools.workspace import register_workspace_tools


def create_server(
    config: ServerConfig | None = None,
    gateway: RecommendationGateway | None = None,
) -> FastMCP:
    """Keel MCPサーバーを作成し、ツール・リソース・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。
        gateway: AI推奨ゲートウェイ。Noneの場合は設定から生成する。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("keel")

    # データアクセス層
    storage = StorageService(data_dir=config.data_dir)

    # サービス層
    project_service = ProjectService(storage, debounce_seconds=config.save_debounce_seconds)
    if gateway is None:
        gateway = RecommendationGateway(
            api_key=config.openai_api_key,
            model=config.openai_model,
            max_tokens=config.recommendation_max_tokens,
            timeout=config.openai_timeout_seconds,
        )

    # MCPインターフェース登録
    register_project_tools(mcp, project_service)
    register_workspace_tools(mcp, project_service)
    register_validation_tools(mcp, project_service)
    register_codegen_tools(mcp, project_service)
    register_recommendation_tools(mcp, project_service, gateway)
    register_catalog_resources(mcp, config.config_dir)
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok", "active_project": project_service.has_active})

    return mcp
