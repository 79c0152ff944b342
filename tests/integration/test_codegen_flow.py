"""成果物生成・バリデーション・AI推奨のMCPプロトコル経由統合テスト。"""

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
import yaml
from fastmcp import Client

from keel.config import ServerConfig
from keel.server import create_server
from keel.services.recommendation import RecommendationGateway


def _config(tmp_path: Path) -> ServerConfig:
    return ServerConfig(
        data_dir=tmp_path / "keel-test",
        config_dir=Path(__file__).parent.parent.parent / "config",
        openai_api_key="",
    )


@pytest.fixture
def mcp_server(tmp_path: Path) -> object:
    """テスト用MCPサーバー。"""
    return create_server(_config(tmp_path))


def parse_tool_result(result: object) -> dict:
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


async def _call(client: Client, name: str, arguments: dict | None = None) -> dict:  # type: ignore[type-arg]
    return parse_tool_result(await client.call_tool(name, arguments or {}))


async def _seed_project(client: Client) -> str:  # type: ignore[type-arg]
    """サービス・コンテナ設定・マニフェストを持つプロジェクトを作成する。"""
    project = await _call(client, "create_project", {"name": "Shop"})
    await _call(client, "add_item", {"collection": "services", "item": {"id": "s1", "name": "Order Service"}})
    await _call(
        client,
        "add_item",
        {
            "collection": "container_configs",
            "item": {
                "id": "c1",
                "service_id": "s1",
                "exposed_ports": [8080],
                "environment_variables": [{"key": "API_KEY", "value": "s3cr3t", "is_secret": True}],
                "health_check": {"path": "/health", "port": 8080},
            },
        },
    )
    await _call(
        client,
        "add_item",
        {"collection": "k8s_manifests", "item": {"id": "k1", "service_id": "s1", "namespace": "shop"}},
    )
    return project["id"]


class TestCodegenTools:
    async def test_generate_dockerfile(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(
                client, "generate_dockerfile", {"project_id": project_id, "container_config_id": "c1"}
            )
            assert result["service_name"] == "Order Service"
            assert "s3cr3t" not in result["dockerfile"]
            assert "EXPOSE 8080" in result["dockerfile"]

    async def test_generate_k8s_manifest(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(client, "generate_k8s_manifest", {"project_id": project_id, "manifest_id": "k1"})
            deployment, service = list(yaml.safe_load_all(result["yaml"]))
            assert deployment["metadata"]["name"] == "order-service"
            assert deployment["metadata"]["namespace"] == "shop"
            assert service["spec"]["ports"][0]["targetPort"] == 8080

    async def test_unknown_container_config(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(
                client, "generate_dockerfile", {"project_id": project_id, "container_config_id": "missing"}
            )
            assert result["error"] == "InvalidPayloadError"

    async def test_generate_resilience_and_observability_code(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            await _call(
                client,
                "add_item",
                {
                    "collection": "resilience_patterns",
                    "item": {"id": "r1", "service_id": "s1", "config": {"type": "circuit-breaker"}},
                },
            )
            await _call(
                client,
                "add_item",
                {"collection": "observability_configs", "item": {"id": "o1", "service_id": "s1"}},
            )

            resilience = await _call(
                client, "generate_resilience_code", {"project_id": project_id, "pattern_id": "r1"}
            )
            assert resilience["type"] == "circuit-breaker"
            assert "new CircuitBreaker(" in resilience["code"]

            observability = await _call(
                client,
                "generate_observability_code",
                {"project_id": project_id, "observability_config_id": "o1"},
            )
            assert observability["service_name"] == "Order Service"
            assert "labels: { service: 'order service' }," in observability["code"]

            missing = await _call(
                client, "generate_resilience_code", {"project_id": project_id, "pattern_id": "missing"}
            )
            assert missing["error"] == "InvalidPayloadError"

    async def test_export_artifacts(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(client, "export_artifacts", {"project_id": project_id})
            assert list(result["dockerfiles"]) == ["Order Service"]
            assert list(result["manifests"]) == ["Order Service"]
            assert result["resilience"] == {}
            assert result["observability"] == {}


class TestValidationTools:
    async def test_validate_project_phase(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(client, "validate_project", {"project_id": project_id, "phase": "C"})
            assert result["phase"] == "C"
            assert [r["category"] for r in result["results"]] == ["Manifests", "SLOs", "Autoscaling"]
            assert result["summary"] == {"passed": 1, "warning": 1, "info": 1}

    async def test_validate_workspace_uses_current_phase(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await _call(client, "create_project", {"name": "Shop"})
            result = await _call(client, "validate_workspace")
            assert result["phase"] == "A"
            assert result["summary"] == {"failed": 1, "warning": 1}

    async def test_unknown_phase(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(client, "validate_project", {"project_id": project_id, "phase": "Z"})
            assert result["error"] == "InvalidPayloadError"


class TestRecommendationTools:
    async def test_missing_api_key(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            project_id = await _seed_project(client)
            result = await _call(client, "get_recommendations", {"project_id": project_id})
            assert result["error"] == "RecommendationConfigError"
            assert "OPENAI_API_KEY" in result["message"]

            # 推奨以外の機能は引き続き利用できる
            state = await _call(client, "get_workspace")
            assert state["project"]["id"] == project_id

    async def test_refresh_workspace_recommendations(self, tmp_path: Path) -> None:
        content = json.dumps(
            {
                "recommendations": [
                    {
                        "type": "pattern",
                        "title": "Add a circuit breaker",
                        "description": "Protect calls to payments",
                        "rationale": "Prevents cascading failures",
                    }
                ]
            }
        )
        openai_client = MagicMock()
        openai_client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])
        )
        server = create_server(_config(tmp_path), gateway=RecommendationGateway(client=openai_client))

        async with Client(server) as client:
            await _call(client, "create_project", {"name": "Shop"})
            result = await _call(client, "refresh_workspace_recommendations")
            assert [r["title"] for r in result["recommendations"]] == ["Add a circuit breaker"]

            state = await _call(client, "get_workspace")
            assert state["recommendations"][0]["severity"] == "info"
            assert state["recommendation_error"] is None
