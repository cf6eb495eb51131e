"""
Teaching Practice Workflow API - FastAPI Application

Entry point for the lesson plan → review → observation → feedback workflow.
Business rules live in the feature services; routers only translate HTTP.
"""
import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from config import get_settings, validate_required_settings
from database import get_db_manager
from feedback.api import routes as feedback_routes
from lesson_plans.api import routes as lesson_plan_routes
from notifications.api import routes as notification_routes
from observations.api import routes as observation_routes
from placements.api import routes as placement_routes
from shared.api import health
from shared.api.errors import request_validation_handler

# Validate configuration on startup
validate_required_settings()

settings = get_settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Teaching Practice Workflow API",
    description="Lesson plan review, observation scheduling and feedback for teaching practice",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Malformed request bodies get the same 400 shape as service-level validation
app.add_exception_handler(RequestValidationError, request_validation_handler)

app.include_router(health.router)
app.include_router(placement_routes.router)
app.include_router(lesson_plan_routes.router)
app.include_router(observation_routes.router)
app.include_router(feedback_routes.router)
app.include_router(notification_routes.router)


@app.on_event("startup")
async def startup_event():
    """Validate database connection on startup."""
    logger.info(f"Starting Teaching Practice Workflow API ({settings.environment})")

    if not get_db_manager().health_check():
        logger.warning("Database health check failed on startup")
    else:
        logger.info("Database connection healthy")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.environment == "development",
    )
