"""
Routeurs HTTP du deployer.
Chaque sous-module expose un ``router`` APIRouter.
"""
from .projects import router as projects_router

__all__ = [
    "projects_router",
]
