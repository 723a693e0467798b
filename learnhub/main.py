from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from learnhub.core.config import settings # Loads the .env file

# Configure logging
logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

from learnhub.core.exceptions import LearnhubError
from learnhub.core.firebase_config import initialize_firebase_app
from learnhub.core.database import create_db_and_tables
from learnhub.routes import api_router_v1


app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Progression and unlock engine for LearnHub courses: modules, chapters, contents and chapter quizzes.",
    version="0.1.0",
)

# --- Event Handlers ---
@app.on_event("startup")
async def startup_event():
    logger.info("Application startup...")
    try:
        initialize_firebase_app()
    except Exception as e:
        # Authenticated endpoints answer 500 until credentials are configured
        logger.error(f"Critical error during Firebase initialization on startup: {e}", exc_info=True)

    # Development convenience; production schemas are managed with Alembic migrations.
    try:
        logger.info("Attempting to create database tables if they don't exist (dev mode)...")
        create_db_and_tables()
        logger.info("Database tables checked/created.")
    except Exception as e:
        logger.error(f"Error creating database tables: {e}", exc_info=True)

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Application shutdown...")

# --- Middleware ---
logger.info(f"Allowed CORS origins: {settings.CORS_ALLOWED_ORIGINS}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Error Handlers ---
@app.exception_handler(LearnhubError)
async def learnhub_exception_handler(request: Request, exc: LearnhubError):
    logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code} {exc.reason}): {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception for request {request.method} {request.url}: {exc}", exc_info=True)
    # Never expose internal error details
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "An unexpected internal server error occurred."},
    )

# --- API Routers ---
app.include_router(api_router_v1)

@app.get("/", tags=["Root"])
async def read_root():
    """
    Root endpoint to check if the API is running.
    """
    return {"message": f"Welcome to the {settings.PROJECT_NAME}! Navigate to /docs for API documentation."}

# --- Main execution (for development) ---
if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8000"))
    host = os.getenv("HOST", "0.0.0.0")
    log_level = os.getenv("UVICORN_LOG_LEVEL", "info")

    logger.info(f"Starting Uvicorn server on {host}:{port} with log level {log_level}")
    uvicorn.run(app, host=host, port=port, log_level=log_level)
