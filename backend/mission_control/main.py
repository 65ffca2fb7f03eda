"""
Main FastAPI application entry point.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from mission_control import __version__
from mission_control.config import settings
from mission_control.api.routes import activities, agents, approvals, deliverables, tasks
from mission_control.middleware import RequestContextMiddleware
from mission_control.database import Base, engine
from mission_control.errors import MissionControlError
from mission_control.logging_config import setup_logging
from mission_control.rate_limiter import limiter, rate_limit_exceeded_handler
import logging

setup_logging("DEBUG" if settings.DEBUG else None)
logger = logging.getLogger(__name__)

# Create database tables
Base.metadata.create_all(bind=engine)

# Initialize FastAPI application
app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    version=__version__,
    description="Deliverable lifecycle, approval gate and activity feed for agent squads"
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Request id + access log, outermost so every response carries X-Request-ID
app.add_middleware(RequestContextMiddleware)

# Include routers
app.include_router(deliverables.router, prefix=settings.API_V1_PREFIX)
app.include_router(approvals.router, prefix=settings.API_V1_PREFIX)
app.include_router(activities.router, prefix=settings.API_V1_PREFIX)
app.include_router(agents.router, prefix=settings.API_V1_PREFIX)
app.include_router(tasks.router, prefix=settings.API_V1_PREFIX)


# Exception handler for domain errors raised by services
@app.exception_handler(MissionControlError)
async def mission_control_exception_handler(request: Request, exc: MissionControlError):
    log = logger.warning if exc.status_code in (401, 403) else logger.info
    log(f"{exc.__class__.__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Exception handler for validation errors
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Validation error on {request.method} {request.url.path}: {exc}")
    # Handle bytes body (e.g., from form data)
    body = exc.body
    if isinstance(body, bytes):
        try:
            body = body.decode('utf-8')
        except UnicodeDecodeError:
            body = "<binary data>"

    return JSONResponse(
        status_code=422,
        content={"detail": jsonable_encoder(exc.errors()), "body": jsonable_encoder(body), "error": "validation_error"}
    )


@app.get("/")
async def root():
    """Root endpoint - API health check."""
    return {
        "message": settings.PROJECT_NAME,
        "version": __version__,
        "status": "healthy",
        "features": ["Deliverables", "Version History", "Status Workflow", "Approvals", "Activity Feed"]
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "mission_control.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
