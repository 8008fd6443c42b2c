"""
Erreurs du deployer.
Chaque erreur porte un code court et le statut HTTP à renvoyer à l'appelant.
"""


class DeployerError(Exception):
    """Base de toutes les erreurs métier du deployer."""

    code = "deployer_error"
    http_status = 500


class ConfigError(DeployerError):
    """Fichier de configuration ou de secret absent, illisible ou vide."""

    code = "config_error"


class CredentialError(DeployerError):
    """Certificat CA ou jeton bearer invalide."""

    code = "credential_error"


class RenderError(DeployerError):
    """Manifeste impossible à produire (champ requis vide, sérialisation)."""

    code = "render_error"


class NetworkError(DeployerError):
    """Échec de transport vers l'API du cluster (connexion, TLS, timeout)."""

    code = "network_error"
    http_status = 502

    def __init__(self, url: str, reason: str):
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class NotReadyError(DeployerError):
    """Contexte de déploiement pas (encore) construit : le service ne peut répondre."""

    code = "not_ready"
    http_status = 503
