"""
Test configuration for the provisioner.

External patches (Kubernetes config, database engine) are applied at MODULE
LEVEL, before the provisioner package is imported, so its module-level code
uses our test doubles.

Import order matters:
  1. Env vars
  2. Kubernetes config mock
  3. SQLite engine replaces the configured engine in provisioner.database
  4. provisioner.main imported
  5. pytest fixtures defined
"""
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional, Tuple

# ============================================================
# 1. Environment variables: read by config.py at import time
# ============================================================
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="provisioner-logs-"))
os.environ.setdefault("LOG_ENABLE_CONSOLE", "false")
os.environ.setdefault("DEBUG_MODE", "false")
os.environ.setdefault("K8S_NAMESPACE", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")

# ============================================================
# 2. Mock Kubernetes config: never read a real kubeconfig
# ============================================================
import kubernetes.config as _k8s_cfg  # noqa: E402
_k8s_cfg.load_kube_config = lambda **kw: None
_k8s_cfg.load_incluster_config = lambda **kw: None

# ============================================================
# 3. SQLite in-memory engine shared by every session
# ============================================================
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

_test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
    echo=False,
)
_TestSession = sessionmaker(autocommit=False, autoflush=False, bind=_test_engine)

import provisioner.database as _db_mod  # noqa: E402
_db_mod.engine = _test_engine
_db_mod.SessionLocal = _TestSession

# ============================================================
# 4. Import the application
# ============================================================
from provisioner.database import Base, get_db  # noqa: E402
from provisioner.dependencies import get_registry  # noqa: E402
from provisioner.errors import ConflictError, NotFoundError  # noqa: E402
from provisioner.main import app  # noqa: E402
from provisioner.registry import RegistryClient, ResourceKind  # noqa: E402

Base.metadata.create_all(bind=_test_engine)

# ============================================================
# 5. pytest fixtures
# ============================================================
import pytest  # noqa: E402
from httpx import AsyncClient, ASGITransport  # noqa: E402
from kubernetes import client as k8s_client  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402


def _labels_of(obj: Any) -> Dict[str, str]:
    if isinstance(obj, dict):
        return obj.get("metadata", {}).get("labels") or {}
    return getattr(obj.metadata, "labels", None) or {}


class FakeRegistry(RegistryClient):
    """In-memory registry: create is atomic and conflicts on duplicate names."""

    def __init__(self):
        self._lock = threading.Lock()
        self.objects: Dict[Tuple[ResourceKind, str], Any] = {}
        self.created: List[Tuple[ResourceKind, str]] = []
        self.failures: Dict[Tuple[ResourceKind, str], Exception] = {}
        self.list_failure: Optional[Exception] = None

    def add(self, kind: ResourceKind, obj: Any) -> None:
        name = obj["metadata"]["name"] if isinstance(obj, dict) else obj.metadata.name
        self.objects[(kind, name)] = obj

    def create_if_absent(self, kind, name, spec):
        with self._lock:
            failure = self.failures.get((kind, name))
            if failure is not None:
                raise failure
            if (kind, name) in self.objects:
                raise ConflictError(kind.value, name)
            self.objects[(kind, name)] = spec
            self.created.append((kind, name))

    def get(self, kind, name):
        try:
            return self.objects[(kind, name)]
        except KeyError:
            raise NotFoundError(kind.value, name)

    def list_by_selector(self, kind, selector=None):
        if self.list_failure is not None:
            raise self.list_failure
        selector = selector or {}
        return [
            obj
            for (obj_kind, _), obj in self.objects.items()
            if obj_kind == kind
            and all(_labels_of(obj).get(k) == v for k, v in selector.items())
        ]

    def kinds_created(self) -> List[ResourceKind]:
        return [kind for kind, _ in self.created]


def _make_deployment(name: str, replicas: int = 1, ready: Optional[int] = None, app_label: Optional[str] = None):
    return k8s_client.V1Deployment(
        metadata=k8s_client.V1ObjectMeta(name=name, labels={"app": app_label or name}),
        spec=k8s_client.V1DeploymentSpec(
            replicas=replicas,
            selector=k8s_client.V1LabelSelector(match_labels={"app": app_label or name}),
            template=k8s_client.V1PodTemplateSpec(),
        ),
        status=k8s_client.V1DeploymentStatus(ready_replicas=ready),
    )


def _make_pod(name: str, app: str, phase: str = "Running", start_time=None):
    return k8s_client.V1Pod(
        metadata=k8s_client.V1ObjectMeta(name=name, labels={"app": app}),
        status=k8s_client.V1PodStatus(
            phase=phase,
            host_ip="10.0.0.1",
            pod_ip="172.16.0.5",
            start_time=start_time,
        ),
    )


@pytest.fixture(autouse=True)
def _isolate():
    """Truncate every table before each test."""
    with _test_engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            conn.execute(table.delete())


@pytest.fixture()
def db():
    session = _TestSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def registry() -> FakeRegistry:
    return FakeRegistry()


def _db_override(session):
    def _override():
        yield session
    return _override


@pytest.fixture()
async def client(db, registry) -> AsyncClient:
    """HTTP client backed by the fake registry and the test DB."""
    app.dependency_overrides[get_db] = _db_override(db)
    app.dependency_overrides[get_registry] = lambda: registry
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def mock_k8s():
    """MagicMock instances standing in for AppsV1Api / CoreV1Api / NetworkingV1Api."""
    apps = MagicMock(name="AppsV1Api-instance")
    core = MagicMock(name="CoreV1Api-instance")
    net = MagicMock(name="NetworkingV1Api-instance")

    _empty = MagicMock(items=[])
    apps.list_namespaced_deployment.return_value = _empty
    core.list_namespaced_pod.return_value = _empty

    return {"apps": apps, "core": core, "networking": net}


@pytest.fixture()
def make_deployment():
    return _make_deployment


@pytest.fixture()
def make_pod():
    return _make_pod
