"""GridWeaver API - table definitions service.

Serves serialized table definitions by id. Consumers hydrate them
client-side with their own renderer registry:

- `GET /v1/table-definitions` - List definition ids
- `GET /v1/table-definitions/{id}` - Get a stored definition
- `POST /v1/table-definitions` - Create (requires secret header)
- `PATCH /v1/table-definitions/{id}` - Partial update (requires secret header)
- `DELETE /v1/table-definitions/{id}` - Delete (requires secret header)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from gridweaver import __version__
from gridweaver.api.routes import definitions
from gridweaver.gateway.gateway import get_definition_gateway, get_secret_header

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Loading table definitions...")
    gateway = get_definition_gateway()
    logger.info(f"Loaded {len(gateway.list_ids())} table definitions")
    logger.info(
        f"Mutations {'enabled' if gateway.mutation_enabled else 'disabled'} "
        f"(secret header: {get_secret_header()})"
    )

    logger.info("GridWeaver API ready")
    yield
    logger.info("Shutting down GridWeaver API")


app = FastAPI(
    title="GridWeaver API",
    description=__doc__,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(definitions.router, prefix="/v1")


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "GridWeaver API",
        "version": __version__,
        "docs": "/docs",
        "endpoints": {
            "table_definitions": "/v1/table-definitions",
        },
    }


@app.get("/health")
async def health():
    """Health check endpoint."""
    gateway = get_definition_gateway()
    return {
        "status": "healthy",
        "definitions_loaded": len(gateway.list_ids()),
        "mutations_enabled": gateway.mutation_enabled,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "gridweaver.api.main:app",
        host="0.0.0.0",
        port=8001,
        reload=True,
    )
