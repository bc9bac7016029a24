"""Tests for application status aggregation."""
from datetime import datetime, timezone

import pytest

from provisioner.errors import NotFoundError, RegistryError
from provisioner.query_service import QueryService
from provisioner.registry import ResourceKind


def test_describe_one_with_pods(registry, make_deployment, make_pod):
    started = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("web", replicas=2, ready=1))
    registry.add(ResourceKind.POD, make_pod("web-abc", "web", start_time=started))
    registry.add(ResourceKind.POD, make_pod("web-def", "web", phase="Pending"))
    registry.add(ResourceKind.POD, make_pod("other-123", "other"))

    status = QueryService(registry).describe_one("web")

    assert status.deployment_name == "web"
    assert status.replicas == 2
    assert status.ready_replicas == 1
    assert [p.name for p in status.pod_statuses] == ["web-abc", "web-def"]
    first = status.pod_statuses[0]
    assert first.phase == "Running"
    assert first.host_ip == "10.0.0.1"
    assert first.pod_ip == "172.16.0.5"
    assert first.start_time == started
    assert status.pod_statuses[1].start_time is None


def test_describe_one_without_pods(registry, make_deployment):
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("fresh"))

    status = QueryService(registry).describe_one("fresh")

    assert status.pod_statuses == []
    assert status.ready_replicas == 0


def test_describe_one_missing(registry):
    with pytest.raises(NotFoundError):
        QueryService(registry).describe_one("ghost")


def test_pods_matched_by_app_label(registry, make_deployment, make_pod):
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("api", app_label="backend"))
    registry.add(ResourceKind.POD, make_pod("backend-1", "backend"))

    status = QueryService(registry).describe_one("api")

    assert [p.name for p in status.pod_statuses] == ["backend-1"]


def test_describe_all_empty(registry):
    assert QueryService(registry).describe_all() == []


def test_describe_all(registry, make_deployment, make_pod):
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("a"))
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("b", replicas=3))
    registry.add(ResourceKind.POD, make_pod("b-1", "b"))

    statuses = QueryService(registry).describe_all()

    by_name = {s.deployment_name: s for s in statuses}
    assert set(by_name) == {"a", "b"}
    assert by_name["a"].pod_statuses == []
    assert by_name["b"].replicas == 3
    assert len(by_name["b"].pod_statuses) == 1


def test_describe_all_listing_failure_propagates(registry, make_deployment):
    registry.add(ResourceKind.DEPLOYMENT, make_deployment("a"))
    registry.list_failure = RegistryError("connection refused", status=503)

    with pytest.raises(RegistryError):
        QueryService(registry).describe_all()
