from importlib import metadata
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, UJSONResponse

from datashelf.exceptions import DatashelfError
from datashelf.services.auth_bearer import verify_jwt
from datashelf.settings import settings
from datashelf.web.api.router import api_router
from datashelf.web.lifetime import lifespan

PUBLIC_PATHS = ("/api/health", "/api/docs", "/api/redoc", "/api/openapi.json")


def _forbidden(detail: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_403_FORBIDDEN, content={"detail": detail})


def get_app() -> FastAPI:
    """
    Get FastAPI application.

    This is the main constructor of an application.

    :return: application.
    """
    app = FastAPI(
        title="datashelf",
        version=metadata.version("datashelf"),
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        default_response_class=UJSONResponse,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"],
    )

    @app.middleware("http")
    async def check_auth(request: Request, call_next: Any) -> Any:
        if request.method == "OPTIONS":
            return await call_next(request)
        if request.url.path.startswith(PUBLIC_PATHS):
            return await call_next(request)
        request.state.is_service = False
        credentials = request.headers.get("Authorization")
        if credentials:
            if not credentials.startswith("Bearer "):
                return _forbidden("Invalid authentication scheme.")
            try:
                payload = verify_jwt(credentials.split(" ", 1)[1])
            except HTTPException as e:
                return _forbidden(e.detail)
            request.state.user_id = payload.sub
            return await call_next(request)
        # internal services authenticate with the api key
        api_key = request.headers.get("x-api-key")
        if settings.x_api_key and api_key == settings.x_api_key:
            request.state.user_id = settings.service_user_id
            request.state.is_service = True
            return await call_next(request)
        return _forbidden("Invalid authorization code.")

    @app.exception_handler(DatashelfError)
    async def datashelf_error_handler(request: Request, exc: DatashelfError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"detail": jsonable_encoder(exc.errors())},
        )

    # Main router for the API.
    app.include_router(router=api_router, prefix="/api")

    return app
