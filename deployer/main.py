"""
Application principale du deployer
Principe KISS : contexte immuable construit au démarrage, un seul endpoint métier
"""
import logging
import time
import uuid

import uvicorn
from fastapi import Depends, FastAPI, Request

from .config import settings
from .context import DeployContext, get_deploy_context, load_deploy_context
from .error_handlers import deployer_exception_handler, global_exception_handler
from .errors import DeployerError
from .logging_config import reset_request_id, set_request_id, setup_logging
from .routers import projects_router

setup_logging()
logger = logging.getLogger("deployer.main")
access_logger = logging.getLogger("deployer.access")

# Créer l'application FastAPI
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every incoming HTTP request with structured metadata."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id
    token = set_request_id(request_id)
    start_time = time.perf_counter()
    client = request.client or None
    fields = {
        "method": request.method,
        "path": request.url.path,
        "client_ip": getattr(client, "host", None),
        "user_agent": request.headers.get("user-agent"),
    }

    try:
        response = await call_next(request)
    except Exception as exc:
        access_logger.error(
            "request_failed",
            extra={
                "extra_fields": {
                    **fields,
                    "status_code": getattr(exc, "status_code", 500),
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 3),
                    "error": str(exc),
                    "success": False,
                }
            },
        )
        reset_request_id(token)
        raise

    access_logger.info(
        "request_completed",
        extra={
            "extra_fields": {
                **fields,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start_time) * 1000, 3),
                "success": response.status_code < 400,
            }
        },
    )

    response.headers["X-Request-ID"] = request_id
    reset_request_id(token)
    return response


# Gestionnaires d'erreurs
app.add_exception_handler(DeployerError, deployer_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)

app.include_router(projects_router)


@app.on_event("startup")
async def build_deploy_context():
    """Charge config et secrets ; une erreur ici empêche le serveur de démarrer."""
    try:
        app.state.deploy_context = load_deploy_context(settings)
    except DeployerError:
        logger.exception(
            "startup_failed",
            extra={
                "extra_fields": {
                    "config_path": str(settings.CONFIG_PATH),
                    "secret_path": str(settings.SECRET_PATH),
                }
            },
        )
        raise


@app.on_event("shutdown")
async def close_cluster_client():
    context = getattr(app.state, "deploy_context", None)
    if context is not None:
        await context.client.aclose()


@app.get("/api/v1/health")
async def health_check(context: DeployContext = Depends(get_deploy_context)):
    """Sonde de vivacité"""
    return {
        "status": "ok",
        "version": settings.API_VERSION,
        "namespace": context.config.namespace,
        "api_url": context.config.api_base_url,
    }


# ============= POINT D'ENTRÉE =============

def main():
    """Point d'entrée pour lancer l'API"""
    uvicorn.run(
        "deployer.main:app",
        host=settings.SERVER_IP,
        port=settings.SERVER_PORT,
        workers=settings.SERVER_WORKERS,
        log_config=None,
    )


if __name__ == "__main__":
    main()
