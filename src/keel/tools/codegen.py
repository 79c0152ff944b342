"""Dockerfile・Kubernetesマニフェスト生成のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from keel.generators.dockerfile import render_dockerfile
from keel.generators.kubernetes import render_k8s_manifest
from keel.generators.observability import render_observability_code
from keel.generators.resilience import render_resilience_code
from keel.models.errors import InvalidPayloadError, KeelError
from keel.services.project import ProjectService, render_artifacts


def register_codegen_tools(mcp: FastMCP, project_service: ProjectService) -> None:
    """成果物生成のMCPツールを登録する。"""

    @mcp.tool()
    async def generate_dockerfile(project_id: str, container_config_id: str) -> dict[str, Any]:
        """コンテナ設定からDockerfileを生成する。

        シークレット指定の環境変数は値を出力せず、コメントとして出力します。

        Args:
            project_id: プロジェクトID。
            container_config_id: コンテナ設定ID。
        """
        try:
            project = await project_service.get_project(project_id)
            config = next((c for c in project.container_configs if c.id == container_config_id), None)
            if config is None:
                raise InvalidPayloadError(
                    f"Container config not found: {container_config_id}", field="container_config_id"
                )
            service = project.find_service(config.service_id)
            service_name = service.name if service is not None else config.service_id
            return {"service_name": service_name, "dockerfile": render_dockerfile(config, service_name)}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def generate_k8s_manifest(project_id: str, manifest_id: str) -> dict[str, Any]:
        """K8sマニフェスト設定からDeploymentとServiceのYAMLを生成する。

        同じサービスのコンテナ設定があれば、ポート・リソース・プローブをそこから導出します。

        Args:
            project_id: プロジェクトID。
            manifest_id: K8sマニフェスト設定ID。
        """
        try:
            project = await project_service.get_project(project_id)
            manifest = next((m for m in project.k8s_manifests if m.id == manifest_id), None)
            if manifest is None:
                raise InvalidPayloadError(f"K8s manifest not found: {manifest_id}", field="manifest_id")
            service = project.find_service(manifest.service_id)
            service_name = service.name if service is not None else manifest.service_id
            yaml_text = render_k8s_manifest(manifest, service_name, project.container_config_for(manifest.service_id))
            return {"service_name": service_name, "yaml": yaml_text}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def generate_resilience_code(project_id: str, pattern_id: str) -> dict[str, Any]:
        """耐障害性パターン設定から設定・利用コードを生成する。

        Args:
            project_id: プロジェクトID。
            pattern_id: 耐障害性パターンID。
        """
        try:
            project = await project_service.get_project(project_id)
            pattern = next((p for p in project.resilience_patterns if p.id == pattern_id), None)
            if pattern is None:
                raise InvalidPayloadError(f"Resilience pattern not found: {pattern_id}", field="pattern_id")
            return {"type": pattern.type, "code": render_resilience_code(pattern)}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def generate_observability_code(project_id: str, observability_config_id: str) -> dict[str, Any]:
        """可観測性設定からメトリクス・ログ・トレースの初期化コードを生成する。

        無効化されている項目は出力されません。

        Args:
            project_id: プロジェクトID。
            observability_config_id: 可観測性設定ID。
        """
        try:
            project = await project_service.get_project(project_id)
            config = next((o for o in project.observability_configs if o.id == observability_config_id), None)
            if config is None:
                raise InvalidPayloadError(
                    f"Observability config not found: {observability_config_id}", field="observability_config_id"
                )
            service = project.find_service(config.service_id)
            service_name = service.name if service is not None else config.service_id
            return {"service_name": service_name, "code": render_observability_code(config, service_name)}
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def export_artifacts(project_id: str) -> dict[str, Any]:
        """プロジェクトの全設定から成果物（Dockerfile・マニフェスト・耐障害性・可観測性コード）を一括生成する。

        Args:
            project_id: プロジェクトID。
        """
        try:
            project = await project_service.get_project(project_id)
            return render_artifacts(project)
        except KeelError as e:
            return {"error": type(e).__name__, "message": str(e)}
