"""設計プロジェクト関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Annotated, Any, Literal, TypeVar

from pydantic import BaseModel, Field, ValidationError

from keel.models.errors import InvalidPayloadError

Phase = Literal["A", "B", "C", "D"]

# フェーズの固定順序（A < B < C < D）
PHASE_ORDER: tuple[Phase, ...] = ("A", "B", "C", "D")

CollectionName = Literal[
    "bounded_contexts",
    "services",
    "container_configs",
    "slo_definitions",
    "autoscaling_strategies",
    "k8s_manifests",
    "resilience_patterns",
    "observability_configs",
]


class KeelModel(BaseModel):
    """未知のフィールドを拒否する基底モデル。"""

    model_config = {"extra": "forbid"}


# --- Phase A: ドメイン分割 ---


class Service(KeelModel):
    """境界づけられたコンテキストに属するマイクロサービス。"""

    id: str
    name: str
    description: str = ""
    bounded_context: str = ""
    responsibilities: list[str] = Field(default_factory=list)
    dependencies: list[str] = Field(default_factory=list)
    communication_type: Literal["sync", "async", "event-driven"] = "sync"
    data_ownership: list[str] = Field(default_factory=list)


class BoundedContext(KeelModel):
    """DDDの境界づけられたコンテキスト。

    servicesはサービス名の非正規化リストで、Service.bounded_contextとは同期されない。
    """

    id: str
    name: str
    description: str = ""
    domain_events: list[str] = Field(default_factory=list)
    aggregates: list[str] = Field(default_factory=list)
    services: list[str] = Field(default_factory=list)


# --- Phase B: コンテナ化 ---


class EnvironmentVariable(KeelModel):
    key: str
    value: str = ""
    is_secret: bool = False


class HealthCheck(KeelModel):
    path: str
    port: int
    interval_seconds: int = 30


class ResourceLimits(KeelModel):
    cpu_request: str
    cpu_limit: str
    memory_request: str
    memory_limit: str


class ContainerConfig(KeelModel):
    """サービスのコンテナビルド設定。"""

    id: str
    service_id: str
    base_image: str = "node:20-alpine"
    build_type: Literal["single-stage", "multi-stage"] = "multi-stage"
    exposed_ports: list[int] = Field(default_factory=list)
    environment_variables: list[EnvironmentVariable] = Field(default_factory=list)
    health_check: HealthCheck | None = None
    resource_limits: ResourceLimits | None = None


# --- Phase C: オーケストレーション ---


class SLODefinition(KeelModel):
    id: str
    service_id: str
    metric: Literal["availability", "latency", "throughput", "error-rate"]
    target: float
    unit: str = ""
    window: str = "30d"


class AutoscalingStrategy(KeelModel):
    id: str
    service_id: str
    type: Literal["HPA", "VPA", "KEDA"] = "HPA"
    min_replicas: int = 1
    max_replicas: int = 10
    target_metric: str = "cpu"
    target_value: float = 70


class K8sManifest(KeelModel):
    """Kubernetesデプロイメント設定。labels/annotationsは挿入順で出力される。"""

    id: str
    service_id: str
    deployment_strategy: Literal["RollingUpdate", "Recreate", "BlueGreen", "Canary"] = "RollingUpdate"
    replicas: int = 3
    namespace: str = "default"
    labels: dict[str, str] = Field(default_factory=dict)
    annotations: dict[str, str] | None = None


# --- Phase D: レジリエンス・可観測性 ---


class CircuitBreakerConfig(KeelModel):
    type: Literal["circuit-breaker"] = "circuit-breaker"
    failure_threshold: int = 5
    success_threshold: int = 3
    timeout_ms: int = 30000
    half_open_requests: int = 1


class BulkheadConfig(KeelModel):
    type: Literal["bulkhead"] = "bulkhead"
    max_concurrent: int = 10
    max_queue: int = 100
    queue_timeout_ms: int = 5000


class RetryConfig(KeelModel):
    type: Literal["retry"] = "retry"
    max_attempts: int = 3
    initial_delay_ms: int = 1000
    max_delay_ms: int = 10000
    backoff_multiplier: float = 2.0


class TimeoutConfig(KeelModel):
    type: Literal["timeout"] = "timeout"
    connection_timeout_ms: int = 5000
    request_timeout_ms: int = 30000


class RateLimiterConfig(KeelModel):
    type: Literal["rate-limiter"] = "rate-limiter"
    requests_per_second: int = 100
    burst_size: int = 150


ResilienceConfig = Annotated[
    CircuitBreakerConfig | BulkheadConfig | RetryConfig | TimeoutConfig | RateLimiterConfig,
    Field(discriminator="type"),
]


class ResiliencePattern(KeelModel):
    """耐障害性パターン。設定はパターン種別ごとの型付きバリアントで保持する。"""

    id: str
    service_id: str
    config: ResilienceConfig
    enabled: bool = True

    @property
    def type(self) -> str:
        return self.config.type


class MetricsConfig(KeelModel):
    enabled: bool = True
    endpoint: str | None = "/metrics"
    scrape_interval: str | None = "15s"


class LoggingConfig(KeelModel):
    enabled: bool = True
    level: Literal["debug", "info", "warn", "error"] = "info"
    format: Literal["json", "text"] = "json"


class TracingConfig(KeelModel):
    enabled: bool = False
    sampling_rate: float | None = 0.1
    exporter: Literal["jaeger", "zipkin", "otlp"] | None = "otlp"


class ObservabilityConfig(KeelModel):
    id: str
    service_id: str
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    tracing: TracingConfig = Field(default_factory=TracingConfig)


# --- ルート集約 ---


class Project(KeelModel):
    """マイクロサービス設計プロジェクト。

    子コレクション間の参照（service_id、サービス名による依存関係など）は
    助言的なものであり、モデル自体では整合性を検証しない。
    """

    id: str
    name: str
    description: str = ""
    current_phase: Phase = "A"
    bounded_contexts: list[BoundedContext] = Field(default_factory=list)
    services: list[Service] = Field(default_factory=list)
    container_configs: list[ContainerConfig] = Field(default_factory=list)
    slo_definitions: list[SLODefinition] = Field(default_factory=list)
    autoscaling_strategies: list[AutoscalingStrategy] = Field(default_factory=list)
    k8s_manifests: list[K8sManifest] = Field(default_factory=list)
    resilience_patterns: list[ResiliencePattern] = Field(default_factory=list)
    observability_configs: list[ObservabilityConfig] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    def find_service(self, service_id: str) -> Service | None:
        return next((s for s in self.services if s.id == service_id), None)

    def container_config_for(self, service_id: str) -> ContainerConfig | None:
        """サービスに対応する最初のコンテナ設定を返す。"""
        return next((c for c in self.container_configs if c.service_id == service_id), None)

    def services_in_context(self, context_name: str) -> list[Service]:
        """境界づけられたコンテキストに属するサービスを読み取り時に導出する。

        BoundedContext.servicesの非正規化リストは参照しない。
        """
        return [s for s in self.services if s.bounded_context == context_name]


# コレクション名 → 要素モデルのマッピング
COLLECTION_MODELS: dict[str, type[BaseModel]] = {
    "bounded_contexts": BoundedContext,
    "services": Service,
    "container_configs": ContainerConfig,
    "slo_definitions": SLODefinition,
    "autoscaling_strategies": AutoscalingStrategy,
    "k8s_manifests": K8sManifest,
    "resilience_patterns": ResiliencePattern,
    "observability_configs": ObservabilityConfig,
}

# patchで更新可能なフィールド
PATCHABLE_FIELDS: frozenset[str] = frozenset({"name", "description", "current_phase", *COLLECTION_MODELS})

ModelT = TypeVar("ModelT", bound=BaseModel)


def parse_payload(model: type[ModelT], data: BaseModel | dict[str, Any]) -> ModelT:
    """外部入力をモデルに変換する。

    Raises:
        InvalidPayloadError: 入力がモデルの制約を満たさない場合。
    """
    if isinstance(data, model):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump()
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidPayloadError(str(e)) from e
