"""
Gestionnaires d'erreurs de l'API
Principe KISS : toujours du JSON valide, jamais de trace côté client
"""
import logging

from fastapi import Request
from fastapi.responses import JSONResponse

from .errors import DeployerError, NetworkError, NotReadyError

logger = logging.getLogger("deployer.error")


def _error_body(error: str, message: str, details=None) -> dict:
    return {"success": False, "error": error, "message": message, "details": details}


async def deployer_exception_handler(request: Request, exc: DeployerError):
    """Erreurs métier : statut porté par l'exception."""
    fields = {
        "path": request.url.path,
        "method": request.method,
        "error_code": exc.code,
        "error": str(exc),
    }
    if isinstance(exc, NetworkError):
        fields["url"] = exc.url
    logger.error("request_failed", extra={"extra_fields": fields})

    if isinstance(exc, NetworkError):
        message = "API du cluster injoignable"
    elif isinstance(exc, NotReadyError):
        message = "Service en cours de démarrage"
    else:
        message = "Échec du déploiement"
    return JSONResponse(
        status_code=exc.http_status,
        content=_error_body(exc.code, message, str(exc)),
    )


async def global_exception_handler(request: Request, exc: Exception):
    """Toutes les autres erreurs"""
    logger.exception(
        "unhandled_exception",
        extra={
            "extra_fields": {
                "path": request.url.path,
                "method": request.method,
                "request_id": getattr(request.state, "request_id", None),
            }
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_error",
            "Erreur interne du serveur",
            "Consultez les logs pour plus de détails",
        ),
    )
