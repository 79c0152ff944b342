"""プロジェクトモデルのユニットテスト。"""

import pytest

from keel.models.errors import InvalidPayloadError
from keel.models.project import (
    COLLECTION_MODELS,
    PATCHABLE_FIELDS,
    CircuitBreakerConfig,
    ContainerConfig,
    Project,
    ResiliencePattern,
    RetryConfig,
    Service,
    parse_payload,
)


class TestProject:
    def test_new_project_defaults(self) -> None:
        project = Project(id="p1", name="Shop")
        assert project.current_phase == "A"
        assert project.description == ""
        for collection in COLLECTION_MODELS:
            assert getattr(project, collection) == []
        assert project.created_at.tzinfo is not None

    def test_invalid_phase_rejected(self) -> None:
        with pytest.raises(ValueError):
            Project(id="p1", name="Shop", current_phase="E")  # type: ignore[arg-type]

    def test_json_round_trip(self) -> None:
        project = Project(
            id="p1",
            name="Shop",
            services=[Service(id="s1", name="orders", dependencies=["payments"])],
            resilience_patterns=[ResiliencePattern(id="r1", service_id="s1", config=RetryConfig(max_attempts=5))],
        )
        restored = Project.model_validate_json(project.model_dump_json())
        assert restored == project

    def test_services_in_context_derived_from_services(self) -> None:
        project = Project(
            id="p1",
            name="Shop",
            services=[
                Service(id="s1", name="orders", bounded_context="Ordering"),
                Service(id="s2", name="billing", bounded_context="Billing"),
            ],
        )
        assert [s.name for s in project.services_in_context("Ordering")] == ["orders"]

    def test_container_config_for_returns_first_match(self) -> None:
        project = Project(
            id="p1",
            name="Shop",
            container_configs=[
                ContainerConfig(id="c1", service_id="s1", exposed_ports=[3000]),
                ContainerConfig(id="c2", service_id="s1", exposed_ports=[4000]),
            ],
        )
        config = project.container_config_for("s1")
        assert config is not None
        assert config.id == "c1"
        assert project.container_config_for("missing") is None

    def test_patchable_fields(self) -> None:
        assert "services" in PATCHABLE_FIELDS
        assert "name" in PATCHABLE_FIELDS
        assert "id" not in PATCHABLE_FIELDS
        assert "created_at" not in PATCHABLE_FIELDS


class TestResiliencePattern:
    def test_config_selected_by_type(self) -> None:
        pattern = ResiliencePattern.model_validate(
            {"id": "r1", "service_id": "s1", "config": {"type": "circuit-breaker", "failure_threshold": 3}}
        )
        assert isinstance(pattern.config, CircuitBreakerConfig)
        assert pattern.config.failure_threshold == 3
        assert pattern.type == "circuit-breaker"
        assert pattern.enabled is True

    def test_unknown_type_rejected(self) -> None:
        with pytest.raises(ValueError):
            ResiliencePattern.model_validate({"id": "r1", "service_id": "s1", "config": {"type": "hedging"}})


class TestParsePayload:
    def test_returns_model_instance(self) -> None:
        service = parse_payload(Service, {"id": "s1", "name": "orders"})
        assert isinstance(service, Service)
        assert service.communication_type == "sync"

    def test_passes_through_instance(self) -> None:
        service = Service(id="s1", name="orders")
        assert parse_payload(Service, service) is service

    def test_invalid_payload_raises(self) -> None:
        with pytest.raises(InvalidPayloadError):
            parse_payload(Service, {"id": "s1", "name": "orders", "communication_type": "carrier-pigeon"})
