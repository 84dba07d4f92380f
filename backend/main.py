# ------------------------------ IMPORTS ------------------------------
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging

from core.database import init_db, SessionLocal
from core.config.settings import settings
from core.errors import ModerationError
from core.utils.data_helpers import utcnow
from catalog.routes import router as catalog_router
from contributions.routes import router as contributions_router
from images.routes import router as images_router

# ------------------------------ SETUP ------------------------------
logger = logging.getLogger("ev_catalog")

# ------------------------------ LIFESPAN ------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle startup and shutdown events."""
    if settings.database.run_migrations_on_startup:
        logger.info("Applying database migrations...")
        init_db()
        logger.info("Database initialized successfully")
    yield

# ------------------------------ APP ------------------------------
app = FastAPI(
    title=settings.APP_NAME,
    description="Community moderation of EV catalog contributions",
    version=settings.APP_VERSION,
    lifespan=lifespan,
    debug=settings.api.debug,
)

# ------------------------------ CORS ------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.get_origins_list(),
    allow_credentials=settings.cors.credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ------------------------------ ERROR HANDLERS ------------------------------

def create_error_response(error: str, **context) -> dict:
    """Create standardized error response."""
    response = {
        "success": False,
        "error": error,
        "timestamp": utcnow().isoformat(),
    }
    response.update(context)
    return response

@app.exception_handler(ModerationError)
async def moderation_error_handler(request: Request, exc: ModerationError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=create_error_response(exc.message, error_type=exc.error_type, **exc.context),
    )

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content=create_error_response("Invalid request", error_type="validation_error", details=details),
    )

# ------------------------------ ROUTERS ------------------------------
app.include_router(contributions_router, prefix="/api/contributions")
app.include_router(images_router, prefix="/api/images")
app.include_router(catalog_router, prefix="/api/vehicles")

# ------------------------------ HEALTH ENDPOINTS ------------------------------
@app.get("/", tags=["Health"])
async def root():
    return {"message": settings.APP_NAME, "status": "running", "version": settings.APP_VERSION}

@app.get("/health", tags=["Health"])
async def health():
    """Health check including database connectivity."""
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        database_status = "connected"
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        database_status = "disconnected"
    finally:
        db.close()
    return {"status": "healthy", "database": database_status, "timestamp": utcnow().isoformat()}

# ------------------------------ MAIN ------------------------------
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host=settings.api.host, port=settings.api.port, reload=settings.api.debug)

# ------------------------------ END OF FILE ------------------------------
