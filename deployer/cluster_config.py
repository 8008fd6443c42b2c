"""Loading of the static cluster configuration and service account credentials."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigError

CONFIG_FILES = ("registry", "cpu_limit", "memory_limit", "cpu_request", "memory_request")
SECRET_FILES = ("ca.crt", "token", "namespace")


@dataclass(frozen=True)
class ClusterConfig:
    api_base_url: str
    namespace: str
    registry_host: str
    cpu_limit: str
    memory_limit: str
    cpu_request: str
    memory_request: str


@dataclass(frozen=True)
class ClusterCredentials:
    ca_certificate: str
    bearer_token: str = field(repr=False)
    namespace: str


def read_file(directory: Path, name: str, strip: bool = True) -> str:
    """Read ``directory/name`` as UTF-8, raising ConfigError when absent or empty."""
    path = Path(directory) / name
    try:
        data = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read {path}: {exc}") from exc
    if strip:
        data = data.strip()
    if not data.strip():
        raise ConfigError(f"{path} is empty")
    return data


def load_cluster_credentials(secret_path: Path) -> ClusterCredentials:
    # ca.crt is kept verbatim, PEM parsing happens in ClusterClient
    return ClusterCredentials(
        ca_certificate=read_file(secret_path, "ca.crt", strip=False),
        bearer_token=read_file(secret_path, "token"),
        namespace=read_file(secret_path, "namespace"),
    )


def load_cluster_config(api_url: str, config_path: Path, namespace: str) -> ClusterConfig:
    """Build the ClusterConfig from the mounted config directory.

    The namespace comes from the service account secret, not from the config
    directory.
    """
    values = {name: read_file(config_path, name) for name in CONFIG_FILES}
    return ClusterConfig(
        api_base_url=api_url.rstrip("/"),
        namespace=namespace,
        registry_host=values["registry"],
        cpu_limit=values["cpu_limit"],
        memory_limit=values["memory_limit"],
        cpu_request=values["cpu_request"],
        memory_request=values["memory_request"],
    )
