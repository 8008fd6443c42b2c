"""
Rendering of the manifests submitted to the cluster API.

Each kind has a frozen record of the fields it needs; building the record is
where a missing value is caught. Rendering itself is a pure function of the
record, and the JSON output keeps insertion order so the same request and
configuration always produce byte-identical bodies.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, fields
from typing import Any, Dict, Union

from .cluster_config import ClusterConfig
from .errors import RenderError
from .resources import ResourceKind
from .schemas import ProjectDeployRequest

CONTAINER_PORT = 80
SERVICE_PORT = 80


class _RequiredFields:
    def __post_init__(self):
        for f in fields(self):
            value = getattr(self, f.name)
            if not isinstance(value, str) or not value:
                raise RenderError(f"{type(self).__name__}: missing required field '{f.name}'")


@dataclass(frozen=True)
class DeploymentFields(_RequiredFields):
    name: str
    namespace: str
    tag: str
    registry: str
    cpu_limit: str
    memory_limit: str
    cpu_request: str
    memory_request: str

    @property
    def image(self) -> str:
        return f"{self.registry}/{self.name}:{self.tag}"


@dataclass(frozen=True)
class IngressFields(_RequiredFields):
    name: str
    namespace: str


@dataclass(frozen=True)
class ServiceFields(_RequiredFields):
    name: str
    namespace: str


ManifestFields = Union[DeploymentFields, IngressFields, ServiceFields]


def fields_for(kind: ResourceKind, request: ProjectDeployRequest, config: ClusterConfig) -> ManifestFields:
    if kind is ResourceKind.DEPLOYMENT:
        return DeploymentFields(
            name=request.name,
            namespace=config.namespace,
            tag=request.tag,
            registry=config.registry_host,
            cpu_limit=config.cpu_limit,
            memory_limit=config.memory_limit,
            cpu_request=config.cpu_request,
            memory_request=config.memory_request,
        )
    if kind is ResourceKind.INGRESS:
        return IngressFields(name=request.name, namespace=config.namespace)
    if kind is ResourceKind.SERVICE:
        return ServiceFields(name=request.name, namespace=config.namespace)
    raise RenderError(f"no template for resource kind {kind!r}")


def deployment_manifest(f: DeploymentFields) -> Dict[str, Any]:
    labels = {"app": f.name}
    return {
        "apiVersion": "apps/v1",
        "kind": "Deployment",
        "metadata": {"name": f.name, "namespace": f.namespace, "labels": labels},
        "spec": {
            "replicas": 1,
            "selector": {"matchLabels": labels},
            "template": {
                "metadata": {"labels": labels},
                "spec": {
                    "containers": [{
                        "name": f.name,
                        "image": f.image,
                        "ports": [{"containerPort": CONTAINER_PORT}],
                        "resources": {
                            "limits": {"cpu": f.cpu_limit, "memory": f.memory_limit},
                            "requests": {"cpu": f.cpu_request, "memory": f.memory_request},
                        },
                    }],
                },
            },
        },
    }


def ingress_manifest(f: IngressFields) -> Dict[str, Any]:
    return {
        "apiVersion": "networking.k8s.io/v1beta1",
        "kind": "Ingress",
        "metadata": {"name": f.name, "namespace": f.namespace, "labels": {"app": f.name}},
        "spec": {
            "rules": [{
                "http": {
                    "paths": [{
                        "path": f"/{f.name}",
                        "backend": {"serviceName": f.name, "servicePort": SERVICE_PORT},
                    }],
                },
            }],
        },
    }


def service_manifest(f: ServiceFields) -> Dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": f.name, "namespace": f.namespace, "labels": {"app": f.name}},
        "spec": {
            "type": "ClusterIP",
            "selector": {"app": f.name},
            "ports": [{"port": SERVICE_PORT, "targetPort": CONTAINER_PORT}],
        },
    }


_BUILDERS = {
    DeploymentFields: deployment_manifest,
    IngressFields: ingress_manifest,
    ServiceFields: service_manifest,
}


def render_fields(f: ManifestFields) -> str:
    try:
        return json.dumps(_BUILDERS[type(f)](f))
    except (KeyError, TypeError, ValueError) as exc:
        raise RenderError(f"cannot render {type(f).__name__}: {exc}") from exc


def render(kind: ResourceKind, request: ProjectDeployRequest, config: ClusterConfig) -> str:
    """Serialized manifest body for ``kind``."""
    return render_fields(fields_for(kind, request, config))
