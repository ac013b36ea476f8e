import os
import logging
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .infrastructure.logging import setup_logging, RequestLoggingMiddleware
from .api.errors import register_exception_handlers

from .config import settings

# Import adapter classes
from .adapters.embedding.factory import build_embedding_service
from .adapters.persistence.sqlite_document_store import SQLiteDocumentStore
from .core.use_cases.auto_index import AutoIndexUseCase

# Imports for routers
from .api.routes.search import router as search_router
from .api.routes.documents import router as documents_router
from .api.routes.health import router as health_router


app = FastAPI(
    title="Semantic Search",
    debug=settings.DEBUG
)

# Setup logging early
setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

# Add request logging middleware
app.add_middleware(RequestLoggingMiddleware)

# CORS (if frontend served separately)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Adjust in production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# On startup, instantiate and store singleton adapter instances in app.state
@app.on_event("startup")
async def on_startup():
    logger.info("Application startup: instantiating adapters...")

    # Embedding service; stays unconfigured (and rejects calls) without credentials
    app.state.embedding_service = build_embedding_service(settings)

    # Document store
    if settings.DATABASE_URL.startswith("sqlite") and ":///" in settings.DATABASE_URL:
        db_path = settings.DATABASE_URL.split(":///", 1)[1]
        if db_path and os.path.dirname(db_path):
            os.makedirs(os.path.dirname(db_path), exist_ok=True)
    document_store = SQLiteDocumentStore(settings.DATABASE_URL)
    await document_store.init_models()

    # Auto-index runs in the store's write path
    auto_index = AutoIndexUseCase(
        embedding_service=app.state.embedding_service,
        collection_fields=settings.COLLECTION_FIELDS,
        excluded_prefixes=settings.AUTO_INDEX_EXCLUDED_PREFIXES,
        min_text_length=settings.TEXT_MIN_LENGTH,
        enabled=settings.AUTO_INDEX_ENABLED,
    )
    document_store.register_before_write(auto_index.before_write)
    for collection_id in settings.COLLECTION_FIELDS:
        logger.info(f"Registered embedding write hook for {collection_id}")

    app.state.document_store = document_store
    app.state.auto_index = auto_index

    logger.info("Startup complete: adapters instantiated")


@app.on_event("shutdown")
async def on_shutdown():
    logger.info("Application shutdown: closing resources...")

    embedding_svc = getattr(app.state, "embedding_service", None)
    if embedding_svc:
        try:
            await embedding_svc.close()
            logger.info("Closed embedding_service HTTP client")
        except Exception as e:
            logger.warning(f"Error closing embedding_service client: {e}")

    document_store = getattr(app.state, "document_store", None)
    if document_store:
        try:
            await document_store.dispose()
            logger.info("Closed document_store engine")
        except Exception as e:
            logger.warning(f"Error disposing document_store engine: {e}")

    logger.info("Shutdown complete.")


app.include_router(
    search_router,
    prefix="/api/semantic-search",
    tags=["semantic-search"]
)

app.include_router(
    documents_router,
    prefix="/api/documents",
    tags=["documents"]
)

app.include_router(
    health_router,
    prefix="/health",
    tags=["health"]
)


if __name__ == "__main__":
    uvicorn.run(
        "semantic_search.main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG
    )
