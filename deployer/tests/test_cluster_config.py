"""Tests for config/secret loading and startup context construction."""
from types import SimpleNamespace

import pytest

from deployer.cluster_config import (
    CONFIG_FILES,
    load_cluster_config,
    load_cluster_credentials,
    read_file,
)
from deployer.context import DeployContext, load_deploy_context
from deployer.errors import ConfigError, CredentialError
from deployer.main import app, build_deploy_context
from deployer.reconcile import ProjectLocks

CONFIG_VALUES = {
    "registry": "registry.example.com\n",
    "cpu_limit": " 500m\n",
    "memory_limit": "512Mi\n",
    "cpu_request": "100m",
    "memory_request": "128Mi\n",
}


@pytest.fixture()
def config_dir(tmp_path):
    d = tmp_path / "config"
    d.mkdir()
    for name, value in CONFIG_VALUES.items():
        (d / name).write_text(value)
    return d


@pytest.fixture()
def secret_dir(tmp_path, ca_pem):
    d = tmp_path / "secret"
    d.mkdir()
    (d / "ca.crt").write_text(ca_pem)
    (d / "token").write_text("sa-token\n")
    (d / "namespace").write_text("demo\n")
    return d


def _settings(config_dir, secret_dir, serialize=False):
    return SimpleNamespace(
        API_URL="https://kubernetes/",
        CONFIG_PATH=config_dir,
        SECRET_PATH=secret_dir,
        DEPLOY_SERIALIZE_PER_PROJECT=serialize,
    )


def test_read_file_trims(config_dir):
    assert read_file(config_dir, "cpu_limit") == "500m"


def test_read_file_missing(tmp_path):
    with pytest.raises(ConfigError):
        read_file(tmp_path, "registry")


def test_read_file_empty(tmp_path):
    (tmp_path / "registry").write_text("  \n")
    with pytest.raises(ConfigError):
        read_file(tmp_path, "registry")


def test_load_cluster_config(config_dir):
    cfg = load_cluster_config("https://kubernetes/", config_dir, "demo")
    assert cfg.api_base_url == "https://kubernetes"
    assert cfg.namespace == "demo"
    assert cfg.registry_host == "registry.example.com"
    assert (cfg.cpu_limit, cfg.memory_limit) == ("500m", "512Mi")
    assert (cfg.cpu_request, cfg.memory_request) == ("100m", "128Mi")


@pytest.mark.parametrize("name", CONFIG_FILES)
def test_load_cluster_config_missing_file(config_dir, name):
    (config_dir / name).unlink()
    with pytest.raises(ConfigError, match=name):
        load_cluster_config("https://kubernetes", config_dir, "demo")


def test_load_cluster_credentials(secret_dir, ca_pem):
    creds = load_cluster_credentials(secret_dir)
    assert creds.ca_certificate == ca_pem
    assert creds.bearer_token == "sa-token"
    assert creds.namespace == "demo"
    assert "sa-token" not in repr(creds)


def test_config_is_immutable(config_dir):
    cfg = load_cluster_config("https://kubernetes", config_dir, "demo")
    with pytest.raises(AttributeError):
        cfg.namespace = "other"


async def test_load_deploy_context(config_dir, secret_dir):
    ctx = load_deploy_context(_settings(config_dir, secret_dir))
    try:
        assert isinstance(ctx, DeployContext)
        assert ctx.config.namespace == "demo"
        assert ctx.config.api_base_url == "https://kubernetes"
        assert ctx.locks is None
    finally:
        await ctx.client.aclose()


async def test_load_deploy_context_with_locks(config_dir, secret_dir):
    ctx = load_deploy_context(_settings(config_dir, secret_dir, serialize=True))
    try:
        assert isinstance(ctx.locks, ProjectLocks)
        assert ctx.engine().locks is ctx.locks
    finally:
        await ctx.client.aclose()


def test_load_deploy_context_bad_certificate(config_dir, secret_dir):
    (secret_dir / "ca.crt").write_text("-----BEGIN CERTIFICATE-----\nbroken\n-----END CERTIFICATE-----\n")
    with pytest.raises(CredentialError):
        load_deploy_context(_settings(config_dir, secret_dir))


def test_load_deploy_context_missing_secret(config_dir, secret_dir):
    (secret_dir / "token").unlink()
    with pytest.raises(ConfigError):
        load_deploy_context(_settings(config_dir, secret_dir))


async def test_startup_hook_fails_without_secrets(monkeypatch, tmp_path):
    monkeypatch.setattr("deployer.main.settings.SECRET_PATH", tmp_path / "absent")
    with pytest.raises(ConfigError):
        await build_deploy_context()
    assert getattr(app.state, "deploy_context", None) is None


def test_load_deploy_context_non_ascii_token(config_dir, secret_dir):
    (secret_dir / "token").write_text("tokén-abc\n", encoding="utf-8")
    with pytest.raises(CredentialError, match="non-ASCII"):
        load_deploy_context(_settings(config_dir, secret_dir))
