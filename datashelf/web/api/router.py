from fastapi.routing import APIRouter

from datashelf.web.api import monitoring
from datashelf.web.api.datasets import routes as datasets_routes
from datashelf.web.api.internal import routes as internal_routes

api_router = APIRouter()
api_router.include_router(monitoring.router)
api_router.include_router(datasets_routes.api_router, prefix="/datasets")
api_router.include_router(internal_routes.api_router, prefix="/internal")
