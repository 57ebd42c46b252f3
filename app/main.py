from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.db_check import wait_for_db
from app.core.logging import configure_logging
from app.api.v1.routes.system import router as system_router
from app.api.v1.routes.shared_budget import router as shared_budget_router

configure_logging()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await wait_for_db()
    yield


app = FastAPI(title="Shared Budget Ledger", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning("request_rejected", path=request.url.path, status=400, detail="invalid body")
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


@app.exception_handler(StarletteHTTPException)
async def logged_http_exception_handler(request: Request, exc: StarletteHTTPException):
    if 400 <= exc.status_code < 500:
        logger.warning("request_rejected", path=request.url.path, status=exc.status_code, detail=exc.detail)
    return await http_exception_handler(request, exc)


@app.get("/")
async def root():
    return {"message": "Shared Budget Ledger is live"}

app.include_router(system_router, prefix="/api/v1/system")
app.include_router(shared_budget_router, prefix="/api/v1/shared-budgets")
