"""フェーズごとのプロジェクトバリデーションロジック。"""

import itertools
import uuid
from collections.abc import Callable

from keel.models.project import Phase, Project
from keel.models.validation import ValidationResult, ValidationStatus

IdFactory = Callable[[], str]


def _default_id_factory() -> IdFactory:
    # 呼び出しごとのプレフィックス + 連番でバッチ内の一意性を保証する
    prefix = uuid.uuid4().hex[:8]
    counter = itertools.count(1)
    return lambda: f"val-{prefix}-{next(counter)}"


class _ResultBuilder:
    """単一フェーズの検証結果を順序どおりに蓄積する。"""

    def __init__(self, phase: Phase, next_id: IdFactory) -> None:
        self._phase = phase
        self._next_id = next_id
        self.results: list[ValidationResult] = []

    def add(self, category: str, status: ValidationStatus, message: str, details: str | None = None) -> None:
        self.results.append(
            ValidationResult(
                id=self._next_id(),
                phase=self._phase,
                category=category,
                status=status,
                message=message,
                details=details,
            )
        )


def validate_phase(project: Project, phase: str, id_factory: IdFactory | None = None) -> list[ValidationResult]:
    """プロジェクトの指定フェーズを検証する。

    同一のproject/phaseに対しては常に同じ結果（id以外）を同じ順序で返す純粋関数。
    ルールは固定順に評価され、該当するものはすべて出力される。

    Args:
        project: 検証対象のプロジェクト。
        phase: 検証するフェーズ。
        id_factory: 結果IDの生成関数。省略時は呼び出しごとに一意なIDを生成する。

    Returns:
        検証結果のリスト。未知のフェーズの場合は空リスト。
    """
    checks: dict[str, Callable[[Project, _ResultBuilder], None]] = {
        "A": _check_domain_decomposition,
        "B": _check_containerization,
        "C": _check_orchestration,
        "D": _check_resilience,
    }
    check = checks.get(phase)
    if check is None:
        return []

    builder = _ResultBuilder(phase, id_factory or _default_id_factory())  # type: ignore[arg-type]
    check(project, builder)
    return builder.results


def _check_domain_decomposition(project: Project, out: _ResultBuilder) -> None:
    if not project.services:
        out.add("Services", "failed", "No services defined", "Add at least one microservice to proceed")
    else:
        out.add("Services", "passed", f"{len(project.services)} services defined")

    if not project.bounded_contexts:
        out.add(
            "Bounded Contexts",
            "warning",
            "No bounded contexts defined",
            "Consider grouping services into bounded contexts for better organization",
        )
    else:
        out.add("Bounded Contexts", "passed", f"{len(project.bounded_contexts)} bounded contexts defined")

    orphans = [s for s in project.services if not s.bounded_context]
    if orphans:
        out.add(
            "Service Assignment",
            "warning",
            f"{len(orphans)} services not assigned to a bounded context",
            "Assign services to bounded contexts for better domain organization",
        )

    # サービス名ベースの有向辺を走査順に記録し、逆辺が既出なら循環とみなす。
    # ペアは正規化せず重複も除去しない。
    edges: set[tuple[str, str]] = set()
    for service in project.services:
        for dependency in service.dependencies:
            if (dependency, service.name) in edges:
                out.add(
                    "Dependencies",
                    "error",
                    f"Circular dependency detected: {service.name} <-> {dependency}",
                    "Consider using async communication or event-driven patterns",
                )
            edges.add((service.name, dependency))


def _check_containerization(project: Project, out: _ResultBuilder) -> None:
    configured = {c.service_id for c in project.container_configs}
    unconfigured = [s for s in project.services if s.id not in configured]

    if unconfigured:
        status: ValidationStatus = "failed" if len(unconfigured) == len(project.services) else "warning"
        out.add(
            "Configuration",
            status,
            f"{len(unconfigured)} services not containerized",
            f"Configure containers for: {', '.join(s.name for s in unconfigured)}",
        )
    elif project.container_configs:
        out.add("Configuration", "passed", "All services have container configurations")

    single_stage = [c for c in project.container_configs if c.build_type == "single-stage"]
    if single_stage:
        out.add(
            "Build Optimization",
            "info",
            f"{len(single_stage)} services using single-stage builds",
            "Consider multi-stage builds for smaller production images",
        )

    without_health_check = [c for c in project.container_configs if c.health_check is None]
    if without_health_check:
        out.add(
            "Health Checks",
            "warning",
            f"{len(without_health_check)} containers without health checks",
            "Add health checks for better Kubernetes integration",
        )


def _check_orchestration(project: Project, out: _ResultBuilder) -> None:
    if not project.k8s_manifests:
        out.add("Manifests", "failed", "No Kubernetes manifests defined", "Generate deployment manifests to proceed")
    else:
        out.add("Manifests", "passed", f"{len(project.k8s_manifests)} Kubernetes manifests configured")

    if not project.slo_definitions:
        out.add("SLOs", "warning", "No SLOs defined", "Define service level objectives to track reliability")

    if not project.autoscaling_strategies:
        out.add(
            "Autoscaling", "info", "No autoscaling configured", "Consider adding autoscaling for dynamic workloads"
        )


def _check_resilience(project: Project, out: _ResultBuilder) -> None:
    if not project.resilience_patterns:
        out.add(
            "Resilience",
            "warning",
            "No resilience patterns configured",
            "Add circuit breakers and retries for fault tolerance",
        )
    else:
        out.add("Resilience", "passed", f"{len(project.resilience_patterns)} resilience patterns configured")

    if not project.observability_configs:
        out.add(
            "Observability",
            "warning",
            "No observability configured",
            "Add metrics, logging, and tracing for operational visibility",
        )
    else:
        out.add("Observability", "passed", f"{len(project.observability_configs)} observability configurations")
