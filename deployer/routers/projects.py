"""Endpoint de déploiement d'un projet (appelé à chaque build publié)."""

import logging

from fastapi import APIRouter, Depends

from ..context import DeployContext, get_deploy_context
from ..schemas import DeployResponse, ProjectDeployRequest

router = APIRouter(prefix="/api/v1", tags=["projects"])
logger = logging.getLogger("deployer.projects")


@router.post("/projects", response_model=DeployResponse)
async def deploy_project(
    payload: ProjectDeployRequest,
    context: DeployContext = Depends(get_deploy_context),
):
    """Supprime puis recrée Deployment, Ingress et Service du projet.

    Les statuts non-2xx du cluster sont journalisés mais ne font pas échouer
    la requête ; seules les erreurs réseau ou de rendu remontent.
    """
    logger.info(
        "deploy_requested",
        extra={"extra_fields": {"name": payload.name, "tag": payload.tag, "build_id": payload.build_id}},
    )
    await context.engine().reconcile(payload)
    return DeployResponse(status="ok")
