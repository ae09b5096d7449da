"""Main FastAPI application for Document Service."""

import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .config.settings import get_settings
from .infrastructure.database.client import DatabaseClient
from .infrastructure.storage import ObjectStorageProvider, get_storage_provider
from .core.audit_log import AuditLog
from .core.comment_manager import CommentManager
from .core.document_manager import DocumentManager
from .core.errors import DocumentServiceError, InternalError, InvalidInputError
from .core.folder_manager import FolderManager
from .core.sharing_manager import SharingManager
from .core.version_manager import VersionManager
from .api.routes import activity, documents, folders, sharing, versions
from .models.requests import HealthResponse

# Configure logging
logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global instances
db_client: DatabaseClient = None
storage: ObjectStorageProvider = None


def install_managers(db: DatabaseClient, object_storage: ObjectStorageProvider) -> None:
    """Build the managers and set them in the route modules."""
    global db_client, storage
    db_client = db
    storage = object_storage

    documents.set_managers(DocumentManager(db, object_storage))
    versions.set_managers(VersionManager(db, object_storage))
    folders.set_managers(FolderManager(db, object_storage))
    sharing.set_managers(SharingManager(db))
    activity.set_managers(CommentManager(db), AuditLog(db))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    settings = get_settings()
    logger.info(f"Starting {settings.service_name} v{__version__}")

    logger.info("Initializing database...")
    db = DatabaseClient(settings.database_url, echo=settings.database_echo)
    await db.initialize()

    logger.info("Initializing object storage provider...")
    object_storage = get_storage_provider(settings)
    await object_storage.initialize()

    install_managers(db, object_storage)
    logger.info(f"{settings.service_name} is ready")

    yield

    # Cleanup
    logger.info("Shutting down...")
    await object_storage.close()
    await db.close()
    logger.info("Shutdown complete")


app = FastAPI(
    title="Document Service",
    description="Multi-tenant document repository with folders, versions and access control",
    version=__version__,
    lifespan=lifespan
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DocumentServiceError)
async def service_error_handler(request: Request, exc: DocumentServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = [
        f"{'.'.join(str(part) for part in error.get('loc', ()))}: {error.get('msg')}"
        for error in exc.errors()
    ]
    error = InvalidInputError("; ".join(problems) or None)
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path} "
        f"(user {request.headers.get('X-User-ID')})",
        exc_info=exc,
    )
    error = InternalError()
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


# Include routers
app.include_router(documents.router)
app.include_router(versions.router)
app.include_router(sharing.router)
app.include_router(activity.router)
app.include_router(folders.router)


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    settings = get_settings()

    db_connected = False
    if db_client is not None:
        try:
            await db_client.verify_connection()
            db_connected = True
        except SQLAlchemyError as e:
            logger.warning(f"Health check could not reach the database: {e}")

    return HealthResponse(
        status="healthy" if db_connected else "degraded",
        service=settings.service_name,
        version=__version__,
        database_connected=db_connected,
        storage_provider=storage.name if storage is not None else "none",
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "document-service",
        "version": __version__,
        "status": "running"
    }


if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run(
        "document_service.main:app",
        host=settings.host,
        port=settings.port,
        reload=True
    )
