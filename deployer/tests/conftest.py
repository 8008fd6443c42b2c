"""
Test configuration for the deployer.

Environment variables are set at MODULE LEVEL, before the deployer package is
imported, because config.py reads them at import time and main.py configures
logging on import.

The cluster API is never contacted: ClusterClient is built over an
httpx.MockTransport backed by FakeCluster, which records every call.
The startup hook does not run under ASGITransport, so the deploy context is
injected by overriding the get_deploy_context dependency.
"""
import os
import tempfile
from typing import Dict, List, Optional, Set, Tuple

# ============================================================
# 1. Environment variables, read by config.py at import time
# ============================================================
os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="deployer-logs-"))
os.environ.setdefault("LOG_ENABLE_CONSOLE", "false")
os.environ.setdefault("API_URL", "https://cluster.test")

# ============================================================
# 2. Import deployer
# ============================================================
import certifi  # noqa: E402
import httpx  # noqa: E402
import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from deployer.cluster_client import ClusterClient  # noqa: E402
from deployer.cluster_config import ClusterConfig  # noqa: E402
from deployer.context import DeployContext, get_deploy_context  # noqa: E402
from deployer.main import app  # noqa: E402

API_BASE = "https://cluster.test"
TOKEN = "test-token-0123456789"


class FakeCluster:
    """Records cluster-API calls and answers them from a status table."""

    def __init__(self):
        self.calls: List[httpx.Request] = []
        self.statuses: Dict[Tuple[str, str], int] = {}
        self.failures: Set[Tuple[str, str]] = set()

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        key = (request.method, str(request.url))
        if key in self.failures:
            raise httpx.ConnectError("connection refused", request=request)
        default = 201 if request.method == "POST" else 200
        return httpx.Response(self.statuses.get(key, default))

    def respond(self, method: str, url: str, status: int) -> None:
        self.statuses[(method, url)] = status

    def fail(self, method: str, url: str) -> None:
        self.failures.add((method, url))

    @property
    def trace(self) -> List[Tuple[str, str]]:
        return [(r.method, str(r.url)) for r in self.calls]

    def body(self, index: int) -> Optional[str]:
        return self.calls[index].content.decode("utf-8") or None


# ---------- Cluster fixtures ----------

@pytest.fixture(scope="session")
def ca_pem() -> str:
    """A real PEM bundle (certifi) standing in for the cluster CA."""
    with open(certifi.where(), encoding="utf-8") as f:
        return f.read()


@pytest.fixture()
def cluster_config() -> ClusterConfig:
    return ClusterConfig(
        api_base_url=API_BASE,
        namespace="demo",
        registry_host="registry.example.com",
        cpu_limit="500m",
        memory_limit="512Mi",
        cpu_request="100m",
        memory_request="128Mi",
    )


@pytest.fixture()
def fake_cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture()
async def cluster_client(ca_pem, fake_cluster) -> ClusterClient:
    c = ClusterClient(ca_pem, TOKEN, transport=httpx.MockTransport(fake_cluster.handler))
    yield c
    await c.aclose()


@pytest.fixture()
def deploy_context(cluster_config, cluster_client) -> DeployContext:
    return DeployContext(config=cluster_config, client=cluster_client)


# ---------- HTTP client ----------

@pytest.fixture()
async def client(deploy_context) -> AsyncClient:
    """HTTP client against the app, with the test deploy context injected."""
    app.dependency_overrides[get_deploy_context] = lambda: deploy_context
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as c:
        yield c
    app.dependency_overrides.clear()
