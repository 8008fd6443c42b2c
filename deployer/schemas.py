"""
Schémas Pydantic du deployer
Principe KISS : uniquement les schémas utilisés
"""
from pydantic import BaseModel, Field

# Label RFC 1123 (noms d'objets Kubernetes)
K8S_NAME_PATTERN = r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$"


# Enveloppe reçue à chaque build publié
class ProjectDeployRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=63, pattern=K8S_NAME_PATTERN)
    tag: str = Field(..., min_length=1)
    build_id: str


class DeployResponse(BaseModel):
    status: str = "ok"
