"""API for checking project status."""
from datashelf.web.api.monitoring.views import router

__all__ = ["router"]
