"""
Configuration centralisée du deployer
Lue une seule fois depuis l'environnement (et un éventuel fichier .env)
"""
import os
from pathlib import Path

from dotenv import load_dotenv

# Charger les variables d'environnement
load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


class Settings:
    """Paramètres du processus"""

    # API
    API_TITLE = "Project Deployer"
    API_DESCRIPTION = "Réconcilie Deployment, Ingress et Service d'un projet à chaque build publié."
    API_VERSION = "0.1.0"

    # Serveur HTTP
    SERVER_IP = os.getenv("SERVER_IP", "127.0.0.1")
    SERVER_PORT = int(os.getenv("SERVER_PORT", "8080"))
    SERVER_WORKERS = int(os.getenv("SERVER_WORKERS", "1"))

    # Cluster
    API_URL = os.getenv("API_URL", "https://kubernetes")
    CONFIG_PATH = Path(os.getenv("CONFIG_PATH", "/config"))
    SECRET_PATH = Path(
        os.getenv("SECRET_PATH", "/var/run/secrets/kubernetes.io/serviceaccount")
    )
    # Verrou par nom de projet (désactivé par défaut, comportement historique)
    DEPLOY_SERIALIZE_PER_PROJECT = _env_flag("DEPLOY_SERIALIZE_PER_PROJECT", "False")

    # Logs
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = Path(os.getenv("LOG_DIR", Path(__file__).resolve().parents[1] / "logs"))
    LOG_MAX_BYTES = int(os.getenv("LOG_MAX_BYTES", str(5 * 1024 * 1024)))
    LOG_BACKUP_COUNT = int(os.getenv("LOG_BACKUP_COUNT", "10"))
    LOG_ENABLE_CONSOLE = _env_flag("LOG_ENABLE_CONSOLE", "True")


# Instance globale des paramètres
settings = Settings()
