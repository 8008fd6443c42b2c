"""Process-wide deploy context, built once at startup and shared read-only."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from .cluster_client import ClusterClient
from .cluster_config import ClusterConfig, load_cluster_config, load_cluster_credentials
from .config import Settings
from .errors import NotReadyError
from .reconcile import ProjectLocks, ReconcileEngine

logger = logging.getLogger("deployer.context")


@dataclass(frozen=True)
class DeployContext:
    config: ClusterConfig
    client: ClusterClient
    locks: Optional[ProjectLocks] = None

    def engine(self) -> ReconcileEngine:
        return ReconcileEngine(self.client, self.config, self.locks)


def load_deploy_context(settings: Settings) -> DeployContext:
    """Read credentials and config files and build the cluster client.

    Raises ConfigError or CredentialError; both are fatal at startup.
    """
    credentials = load_cluster_credentials(settings.SECRET_PATH)
    config = load_cluster_config(settings.API_URL, settings.CONFIG_PATH, credentials.namespace)
    client = ClusterClient(credentials.ca_certificate, credentials.bearer_token)
    locks = ProjectLocks() if settings.DEPLOY_SERIALIZE_PER_PROJECT else None

    logger.info(
        "deploy_context_loaded",
        extra={
            "extra_fields": {
                "api_url": config.api_base_url,
                "namespace": config.namespace,
                "registry": config.registry_host,
                "serialize_per_project": locks is not None,
            }
        },
    )
    return DeployContext(config=config, client=client, locks=locks)


def get_deploy_context(request: Request) -> DeployContext:
    """Dépendance FastAPI : contexte construit au démarrage."""
    context = getattr(request.app.state, "deploy_context", None)
    if context is None:
        raise NotReadyError("deploy context not initialised")
    return context
