"""Kubernetesマニフェスト生成のユニットテスト。"""

import yaml

from keel.generators.kubernetes import normalize_name, render_k8s_manifest
from keel.models.project import ContainerConfig, HealthCheck, K8sManifest, ResourceLimits


def _load(text: str) -> tuple[dict, dict]:
    deployment, service = list(yaml.safe_load_all(text))
    return deployment, service


class TestNormalizeName:
    def test_lowercases_and_hyphenates(self) -> None:
        assert normalize_name("Order Service") == "order-service"
        assert normalize_name("  Billing  ") == "billing"


class TestRenderK8sManifest:
    def test_deployment_and_service_documents(self) -> None:
        text = render_k8s_manifest(K8sManifest(id="k1", service_id="s1", namespace="shop"), "Orders")
        assert "\n---\n" in text
        deployment, service = _load(text)
        assert deployment["kind"] == "Deployment"
        assert deployment["metadata"] == {"name": "orders", "namespace": "shop", "labels": {"app": "orders"}}
        assert deployment["spec"]["replicas"] == 3
        assert service["metadata"]["name"] == "orders-svc"
        assert service["spec"]["type"] == "ClusterIP"
        assert service["spec"]["ports"] == [{"port": 80, "targetPort": 3000}]

    def test_defaults_without_container_config(self) -> None:
        deployment, _ = _load(render_k8s_manifest(K8sManifest(id="k1", service_id="s1"), "orders"))
        container = deployment["spec"]["template"]["spec"]["containers"][0]
        assert container["image"] == "orders:latest"
        assert container["ports"] == [{"containerPort": 3000}]
        assert container["resources"] == {
            "requests": {"cpu": "100m", "memory": "128Mi"},
            "limits": {"cpu": "500m", "memory": "512Mi"},
        }

    def test_rolling_update_block(self) -> None:
        rolling = render_k8s_manifest(K8sManifest(id="k1", service_id="s1"), "orders")
        recreate = render_k8s_manifest(
            K8sManifest(id="k1", service_id="s1", deployment_strategy="Recreate"), "orders"
        )
        assert rolling.count("25%") == 2
        assert "25%" not in recreate
        deployment, _ = _load(recreate)
        assert deployment["spec"]["strategy"] == {"type": "Recreate"}

    def test_probes_follow_health_check(self) -> None:
        manifest = K8sManifest(id="k1", service_id="s1")
        without = render_k8s_manifest(manifest, "orders", ContainerConfig(id="c1", service_id="s1"))
        with_probe = render_k8s_manifest(
            manifest,
            "orders",
            ContainerConfig(id="c1", service_id="s1", health_check=HealthCheck(path="/health", port=3000)),
        )
        assert "Probe" not in without
        deployment, _ = _load(with_probe)
        container = deployment["spec"]["template"]["spec"]["containers"][0]
        assert container["livenessProbe"]["httpGet"] == {"path": "/health", "port": 3000}
        assert container["readinessProbe"]["httpGet"] == {"path": "/health", "port": 3000}
        assert container["livenessProbe"]["initialDelaySeconds"] == 15
        assert container["readinessProbe"]["initialDelaySeconds"] == 5
        assert container["readinessProbe"]["periodSeconds"] == 30

    def test_container_config_drives_ports_and_resources(self) -> None:
        config = ContainerConfig(
            id="c1",
            service_id="s1",
            exposed_ports=[8080, 9090],
            resource_limits=ResourceLimits(cpu_request="250m", cpu_limit="1", memory_request="256Mi", memory_limit="1Gi"),
        )
        deployment, service = _load(render_k8s_manifest(K8sManifest(id="k1", service_id="s1"), "orders", config))
        container = deployment["spec"]["template"]["spec"]["containers"][0]
        assert container["ports"] == [{"containerPort": 8080}]
        assert container["resources"]["limits"] == {"cpu": "1", "memory": "1Gi"}
        assert service["spec"]["ports"][0]["targetPort"] == 8080

    def test_labels_and_annotations_preserve_order(self) -> None:
        manifest = K8sManifest(
            id="k1",
            service_id="s1",
            labels={"tier": "backend", "team": "core"},
            annotations={"prometheus.io/scrape": "true"},
        )
        deployment, _ = _load(render_k8s_manifest(manifest, "orders"))
        assert list(deployment["metadata"]["labels"]) == ["tier", "team", "app"]
        assert deployment["metadata"]["annotations"] == {"prometheus.io/scrape": "true"}
