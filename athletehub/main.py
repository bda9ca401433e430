from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, RedirectResponse, JSONResponse
from fastapi.exceptions import HTTPException
from fastapi.staticfiles import StaticFiles
from loguru import logger
from pymongo.errors import PyMongoError

from athletehub import settings
from athletehub.db_init import ensure_indexes
from athletehub.errors import ServiceError, StoreUnavailable
from athletehub.middleware.audit_middleware import AuditMiddleware
from athletehub.routes import auth, users, connections, training, competitions, health, teams, dashboard
from athletehub.utils.logger import setup_logger

setup_logger()

app = FastAPI(title="AthleteHub", version="1.0.0")

app.add_middleware(AuditMiddleware)

# profile pictures and team logos; the folder is created on first upload
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")

# Routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(connections.router)
app.include_router(training.router)
app.include_router(competitions.router)
app.include_router(health.router)
app.include_router(teams.router)
app.include_router(dashboard.router)


@app.on_event("startup")
async def _startup():
    try:
        ensure_indexes()
    except PyMongoError as e:
        # the API can serve without indexes; queries are just slower
        logger.error(f"Index setup skipped: {e}")


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    if exc.status_code == 401 and "text/html" in request.headers.get("accept", ""):
        return RedirectResponse("/", status_code=307)
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if isinstance(exc, StoreUnavailable):
        logger.error(f"{request.method} {request.url.path}: {exc.message}")
    return JSONResponse({"detail": exc.message}, status_code=exc.status_code)


@app.get("/", response_class=HTMLResponse, include_in_schema=False)
def root():
    return HTMLResponse(
        "<p>AthleteHub API is running. "
        "<a href='/docs'>API docs</a> · <a href='/connections/view'>Connections</a></p>"
    )


@app.get("/health-check")
def health_check():
    return {"status": "ok"}
