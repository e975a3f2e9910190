# fieldgallery/main.py: dev server wiring only, no endpoints here.
#
# Stands in for the file API while developing against the gallery:
#   uvicorn fieldgallery.main:create_app --factory --reload --port 8000
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from fieldgallery.api.routes import files
from fieldgallery.core.config import SETTINGS, Settings
from fieldgallery.repositories.db import init_db
from fieldgallery.schemas.media import ErrorBody


async def _http_error(_request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # the gallery reads {"message": ...} from every non-2xx body
    return JSONResponse(ErrorBody(message=str(exc.detail)).model_dump(), status_code=exc.status_code)


async def _validation_error(_request: Request, exc: RequestValidationError) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    where = ".".join(str(p) for p in first.get("loc", ()))
    msg = f"Invalid request: {where} {first.get('msg', '')}".strip()
    return JSONResponse(ErrorBody(message=msg).model_dump(), status_code=422)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or SETTINGS
    init_db(settings.db_path)

    app = FastAPI(title="FieldGallery dev file API", version="0.1")
    app.state.settings = settings

    # CORS (allow Vite dev)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(StarletteHTTPException, _http_error)
    app.add_exception_handler(RequestValidationError, _validation_error)

    app.include_router(files.api_router, prefix="/api")
    # public (non-API) routers for serving uploads/thumbs
    app.include_router(files.public_router)
    return app
