"""FastAPI main application."""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import settings
from .db import DatabaseConnection
from .services import ConversationStore
from .utils.logger import init_app_logger
from .api.v1 import conversations


# Initialize logger
logger = init_app_logger(settings)

# Global database connection
db_instance: DatabaseConnection = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Args:
        app: FastAPI application instance
    """
    logger.info("=" * 70)
    logger.info("Starting Diff Review Conversations...")
    logger.info("=" * 70)

    logger.info("")
    logger.info("Server Configuration:")
    logger.info(f"  Host: {settings.host}")
    logger.info(f"  Port: {settings.port}")
    logger.info(f"  Debug: {settings.debug}")
    logger.info(f"  Log Level: {settings.log_level}")
    logger.info(f"  Log File: {settings.log_file or 'console only'}")

    logger.info("")
    logger.info("Review Configuration:")
    logger.info(f"  Database: {settings.database_path}")
    logger.info(f"  Default User: {settings.default_user}")
    logger.info(f"  Max Message Length: {settings.max_message_length}")

    global db_instance
    db_instance = DatabaseConnection(settings.database_path)

    conversations.store = ConversationStore(db_instance, max_message_length=settings.max_message_length)
    conversations.default_user = settings.default_user

    logger.info("")
    logger.info("=" * 70)
    logger.info("Diff Review Conversations started")
    logger.info(f"Access at: http://{settings.host}:{settings.port}")
    logger.info(f"API Docs: http://{settings.host}:{settings.port}/docs")
    logger.info("=" * 70)

    yield

    logger.info("Shutting down Diff Review Conversations...")
    conversations.store = None
    if db_instance:
        db_instance.close()
        db_instance = None
    logger.info("Diff Review Conversations shut down")


# Create FastAPI application
app = FastAPI(
    title="Diff Review Conversations",
    description="Line-anchored review conversations over file diffs",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(conversations.router)


@app.get("/health")
async def health():
    """
    Simple health check endpoint.

    Returns:
        Health status
    """
    return {
        "status": "healthy",
        "service": "Diff Review Conversations",
        "version": "1.0.0"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "diffreview.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
