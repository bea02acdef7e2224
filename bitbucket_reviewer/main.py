"""
FastAPI application entry point.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bitbucket_reviewer import __version__
from bitbucket_reviewer.api import ai, bitbucket
from bitbucket_reviewer.config import settings
from bitbucket_reviewer.middleware.logging import RequestLoggingMiddleware
from bitbucket_reviewer.utils.logging import get_logger, setup_logging

# Configure structured logging
setup_logging(settings.log_level)

logger = get_logger(__name__)

# Create FastAPI application
app = FastAPI(
    title="Bitbucket PR Reviewer",
    description="AI-assisted code review for Bitbucket Cloud pull requests",
    version=__version__
)

# Open CORS in development, frontend origins only in production
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.frontend_origins if settings.environment == "production" else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health")
async def health_check():
    """Health check endpoint for container orchestration."""
    return {"status": "healthy", "version": __version__}


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Bitbucket PR Reviewer API",
        "version": __version__,
        "docs": "/docs"
    }


# Include API routers
app.include_router(ai.router)
app.include_router(bitbucket.router)


@app.on_event("startup")
async def startup_event():
    """Log the effective configuration on application startup."""
    logger.info(f"Starting Bitbucket PR Reviewer API ({settings.environment})")

    generator = ai.orchestrator.llm_client.describe()
    if generator["configured"]:
        logger.info(f"Text-generation provider: {generator['provider']}, deployment: {generator['deployment']}")
    else:
        logger.warning("Text-generation service not configured; reviews will return the fallback result")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
