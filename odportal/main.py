"""
OD Portal — On-Duty leave requests, per-subject staff approval, OD utilization.
FastAPI entry point.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from odportal.core.config import settings
from odportal.core.exceptions import ODPortalError
from odportal.core.logging import get_logger, setup_logging
from odportal.routers import auth, admin, staff, student, od_requests, compliance
from odportal.utils.response import error_response

setup_logging(json_output=settings.LOG_JSON, log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="On-Duty leave request portal: per-subject staff approval and OD quota tracking",
    version="1.0.0",
)

# CORS
origins = [o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ODPortalError)
async def od_portal_error_handler(request: Request, exc: ODPortalError):
    logger.info(
        "request.rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=exc.message,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=error_response(message=exc.message, data={"error": type(exc).__name__}),
    )


# Include routers
app.include_router(auth.router)
app.include_router(student.router)
app.include_router(staff.router)
app.include_router(admin.router)
app.include_router(od_requests.router)
app.include_router(compliance.router)


@app.get("/")
async def root():
    return {
        "name": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "auth_mode": settings.AUTH_MODE,
    }


@app.get("/api/health")
async def health():
    return {"status": "healthy", "auth_mode": settings.AUTH_MODE}
