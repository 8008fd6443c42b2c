"""Resource kinds reconciled for every project, in reconcile order."""

from enum import Enum


class ResourceKind(str, Enum):
    DEPLOYMENT = "deployment"
    INGRESS = "ingress"
    SERVICE = "service"

    @property
    def collection_path(self) -> str:
        return _COLLECTION_PATHS[self]

    def collection_url(self, api_base_url: str, namespace: str) -> str:
        """URL of the namespaced collection; ``{url}/{name}`` addresses one object."""
        base = api_base_url.rstrip("/")
        return f"{base}{self.collection_path.format(namespace=namespace)}"


_COLLECTION_PATHS = {
    ResourceKind.DEPLOYMENT: "/apis/apps/v1/namespaces/{namespace}/deployments",
    ResourceKind.INGRESS: "/apis/networking.k8s.io/v1beta1/namespaces/{namespace}/ingresses",
    ResourceKind.SERVICE: "/api/v1/namespaces/{namespace}/services",
}

# Deployment, puis Ingress, puis Service
RECONCILE_ORDER = tuple(ResourceKind)
