"""
Client HTTP authentifié vers l'API du cluster.
La confiance (CA) et l'identité (jeton bearer) sont fixées à la construction.
"""
from __future__ import annotations

import logging
import ssl
from typing import Optional

import httpx

from .errors import CredentialError, NetworkError

logger = logging.getLogger("deployer.cluster")

USER_AGENT = "polkahub-deployer"


def build_ssl_context(ca_certificate: str) -> ssl.SSLContext:
    """Contexte TLS qui ne fait confiance qu'au certificat fourni."""
    if not ca_certificate or not ca_certificate.strip():
        # cadata vide ferait charger le magasin système
        raise CredentialError("CA certificate is empty")
    try:
        return ssl.create_default_context(cadata=ca_certificate)
    except (ssl.SSLError, ValueError) as exc:
        raise CredentialError(f"invalid CA certificate: {exc}") from exc


def _check_token(token: str) -> None:
    if not token:
        raise CredentialError("bearer token is empty")
    # La valeur d'en-tête HTTP est encodée en ASCII par httpx
    if not token.isascii():
        raise CredentialError("bearer token contains non-ASCII characters")
    if any(ch.isspace() or not ch.isprintable() for ch in token):
        raise CredentialError("bearer token contains whitespace or control characters")


class ClusterClient:
    """Appels DELETE/POST vers l'API du cluster, sans retry."""

    def __init__(
        self,
        ca_certificate: str,
        bearer_token: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        _check_token(bearer_token)
        self._http = httpx.AsyncClient(
            verify=build_ssl_context(ca_certificate),
            headers={
                "Authorization": f"Bearer {bearer_token}",
                "User-Agent": USER_AGENT,
            },
            transport=transport,
        )

    async def delete(self, url: str, name: str) -> int:
        return await self._send("DELETE", f"{url}/{name}")

    async def create(self, url: str, body: str) -> int:
        return await self._send(
            "POST",
            url,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json"},
        )

    async def _send(self, method: str, url: str, **kwargs) -> int:
        try:
            response = await self._http.request(method, url, **kwargs)
        except httpx.TransportError as exc:
            logger.error(
                "cluster_call_failed",
                extra={"extra_fields": {"method": method, "url": url, "error": repr(exc)}},
            )
            raise NetworkError(url, type(exc).__name__) from exc
        return response.status_code

    async def aclose(self) -> None:
        await self._http.aclose()
