"""K8sManifest設定からKubernetesマニフェスト（YAML）を生成する。"""

import re
from typing import Any

import yaml

from keel.models.project import ContainerConfig, HealthCheck, K8sManifest

# ContainerConfigが無い場合のフォールバック値
_DEFAULT_CONTAINER_PORT = 3000
_DEFAULT_RESOURCES: dict[str, str] = {
    "cpu_request": "100m",
    "cpu_limit": "500m",
    "memory_request": "128Mi",
    "memory_limit": "512Mi",
}

_ROLLING_UPDATE = {"maxSurge": "25%", "maxUnavailable": "25%"}

_LIVENESS_INITIAL_DELAY = 15
_READINESS_INITIAL_DELAY = 5

_SERVICE_PORT = 80


def normalize_name(service_name: str) -> str:
    """サービス表示名をKubernetesリソース名用に正規化する（小文字化・空白をハイフン化）。"""
    return re.sub(r"\s+", "-", service_name.strip().lower())


def _container_port(container_config: ContainerConfig | None) -> int:
    if container_config is not None and container_config.exposed_ports:
        return container_config.exposed_ports[0]
    return _DEFAULT_CONTAINER_PORT


def _resources(container_config: ContainerConfig | None) -> dict[str, Any]:
    limits = _DEFAULT_RESOURCES
    if container_config is not None and container_config.resource_limits is not None:
        limits = container_config.resource_limits.model_dump()
    return {
        "requests": {"cpu": limits["cpu_request"], "memory": limits["memory_request"]},
        "limits": {"cpu": limits["cpu_limit"], "memory": limits["memory_limit"]},
    }


def _probe(health_check: HealthCheck, initial_delay: int) -> dict[str, Any]:
    return {
        "httpGet": {"path": health_check.path, "port": health_check.port},
        "initialDelaySeconds": initial_delay,
        "periodSeconds": health_check.interval_seconds,
    }


def build_deployment(
    manifest: K8sManifest,
    service_name: str,
    container_config: ContainerConfig | None = None,
) -> dict[str, Any]:
    """Deploymentリソースを挿入順を保持したdictとして構築する。"""
    name = normalize_name(service_name)
    metadata: dict[str, Any] = {
        "name": name,
        "namespace": manifest.namespace or "default",
        "labels": {**manifest.labels, "app": name},
    }
    if manifest.annotations:
        metadata["annotations"] = dict(manifest.annotations)

    strategy: dict[str, Any] = {"type": manifest.deployment_strategy}
    if manifest.deployment_strategy == "RollingUpdate":
        strategy["rollingUpdate"] = dict(_ROLLING_UPDATE)

    container: dict[str, Any] = {
        "name": name,
        "image": f"{name}:latest",
        "ports": [{"containerPort": _container_port(container_config)}],
        "resources": _resources(container_config),
    }
    if container_config is not None and container_config.health_check is not None:
        container["livenessProbe"] = _probe(container_config.health_check, _LIVENESS_INITIAL_DELAY)
        container["readinessProbe"] = _probe(container_config.health_check, _READINESS_INITIAL_DELAY)

    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": metadata,
        "spec": {
            "replicas": manifest.replicas,
            "selector": {"matchLabels": {"app": name}},
            "strategy": strategy,
            "template": {
                "metadata": {"labels": {"app": name}},
                "spec": {"containers": [container]},
            },
        },
    }


def build_service(
    manifest: K8sManifest,
    service_name: str,
    container_config: ContainerConfig | None = None,
) -> dict[str, Any]:
    """ClusterIP型のServiceリソースを構築する。"""
    name = normalize_name(service_name)
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": f"{name}-svc", "namespace": manifest.namespace or "default"},
        "spec": {
            "selector": {"app": name},
            "ports": [{"port": _SERVICE_PORT, "targetPort": _container_port(container_config)}],
            "type": "ClusterIP",
        },
    }


def render_k8s_manifest(
    manifest: K8sManifest,
    service_name: str,
    container_config: ContainerConfig | None = None,
) -> str:
    """DeploymentとServiceを"---"で区切った単一のYAMLテキストとして出力する。

    Args:
        manifest: Kubernetesマニフェスト設定。
        service_name: サービスの表示名。
        container_config: ポート・リソース・プローブの導出元（任意）。

    Returns:
        YAMLテキスト。
    """
    documents = [
        build_deployment(manifest, service_name, container_config),
        build_service(manifest, service_name, container_config),
    ]
    return yaml.safe_dump_all(documents, sort_keys=False, default_flow_style=False, allow_unicode=True)
