"""
Reconciliation of a project's resources.

For every kind, in order, the existing object is deleted by name and a freshly
rendered one is created. The API has no upsert we rely on, so delete-then-create
is the protocol. Cluster statuses are recorded and logged, never acted upon;
only a transport failure or a render failure stops the sequence.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Dict, List, Optional

from .cluster_client import ClusterClient
from .cluster_config import ClusterConfig
from .errors import DeployerError
from .manifests import render
from .resources import RECONCILE_ORDER, ResourceKind
from .schemas import ProjectDeployRequest

logger = logging.getLogger("deployer.reconcile")

# A 404 on delete means there was nothing to replace: create anyway.
MISSING_IS_OK = frozenset({404})


def is_success(status: int) -> bool:
    return 200 <= status < 300


@dataclass(frozen=True)
class ReconcileOutcome:
    kind: ResourceKind
    url: str
    delete_status: int
    create_status: int

    @property
    def created(self) -> bool:
        return is_success(self.create_status)


class ProjectLocks:
    """One asyncio.Lock per project name, dropped once nobody holds or awaits it."""

    def __init__(self):
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, name: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(name, asyncio.Lock())
        self._users[name] = self._users.get(name, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[name] -= 1
            if not self._users[name]:
                del self._users[name]
                del self._locks[name]

    def __contains__(self, name: str) -> bool:
        return name in self._locks


class ReconcileEngine:
    def __init__(self, client: ClusterClient, config: ClusterConfig, locks: Optional[ProjectLocks] = None):
        self.client = client
        self.config = config
        self.locks = locks

    async def reconcile(self, request: ProjectDeployRequest) -> List[ReconcileOutcome]:
        """Apply Deployment, Ingress and Service for ``request``.

        Raises NetworkError or RenderError from the failing step; kinds after
        it are not attempted.
        """
        if self.locks is None:
            return await self._reconcile_all(request)
        async with self.locks.hold(request.name):
            return await self._reconcile_all(request)

    async def _reconcile_all(self, request: ProjectDeployRequest) -> List[ReconcileOutcome]:
        outcomes = []
        for kind in RECONCILE_ORDER:
            try:
                outcomes.append(await self.reconcile_kind(kind, request))
            except DeployerError as exc:
                logger.error(
                    "reconcile_aborted",
                    extra={
                        "extra_fields": {
                            "name": request.name,
                            "kind": kind.value,
                            "build_id": request.build_id,
                            "url": getattr(exc, "url", None),
                            "error_code": exc.code,
                            "error": str(exc),
                            "completed": [o.kind.value for o in outcomes],
                        }
                    },
                )
                raise
        logger.info(
            "project_reconciled",
            extra={
                "extra_fields": {
                    "name": request.name,
                    "tag": request.tag,
                    "build_id": request.build_id,
                    "outcomes": {
                        o.kind.value: [o.delete_status, o.create_status] for o in outcomes
                    },
                }
            },
        )
        return outcomes

    async def reconcile_kind(self, kind: ResourceKind, request: ProjectDeployRequest) -> ReconcileOutcome:
        url = kind.collection_url(self.config.api_base_url, self.config.namespace)

        delete_status = await self.client.delete(url, request.name)
        self._log_status(
            "deleted",
            delete_status,
            ok=is_success(delete_status) or delete_status in MISSING_IS_OK,
            url=f"{url}/{request.name}",
            name=request.name,
            build_id=request.build_id,
        )

        body = render(kind, request, self.config)

        create_status = await self.client.create(url, body)
        self._log_status(
            "created",
            create_status,
            ok=is_success(create_status),
            url=url,
            build_id=request.build_id,
        )
        return ReconcileOutcome(kind, url, delete_status, create_status)

    @staticmethod
    def _log_status(action: str, status: int, ok: bool, **fields) -> None:
        level = logging.INFO if ok else logging.WARNING
        logger.log(level, action, extra={"extra_fields": {"http_status": status, **fields}})
