import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from config import get_settings
from errors import ApiError

# Routers
from routers.admin import router as admin_router
from routers.auth import router as auth_router
from routers.health import router as health_router
from routers.test_results import router as test_results_router
from routers.tests import router as tests_router

settings = get_settings()

logger = logging.getLogger("iqtest")
logging.basicConfig(level=settings.log_level)

if not settings.jwt_secret:
    logger.error("JWT_SECRET is not set; login, registration and authenticated routes will fail")

app = FastAPI(title="IQ Test – Scoring API")

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*", "authorization"],
    )


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers
    )


@app.exception_handler(SQLAlchemyError)
async def db_error_handler(request: Request, exc: SQLAlchemyError):
    # storage errors that escaped a service wrapper; same contract as Unavailable
    logger.error("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=500, content={"detail": f"db_error: {type(exc).__name__}"})


def _brief(errors: list) -> list:
    return [{"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in errors]


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # malformed payloads are a client error, reported as 400
    errors = exc.errors()
    first = errors[0] if errors else {}
    where = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"{where}: {first.get('msg')}" if where else str(first.get("msg", "Invalid request"))
    return JSONResponse(status_code=400, content={"detail": message, "errors": _brief(errors)})


@app.get("/")
def health_root():
    return {"ok": True}


app.include_router(auth_router)  # /auth/...
app.include_router(tests_router)  # /tests/...
app.include_router(test_results_router)  # /test-results/...
app.include_router(admin_router)  # /admin/...
app.include_router(health_router)  # /health/...
