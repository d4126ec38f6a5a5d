from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import erc1155, health
from .config import settings
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .services.erc1155 import get_erc1155_service


setup_logging()


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await get_erc1155_service().aclose()


# Create FastAPI app
app = FastAPI(
    title="Stylus ERC-1155 API",
    description="Read, transfer and deploy Stylus ERC-1155 multi-token contracts",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(erc1155.router, tags=["ERC-1155"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "Stylus ERC-1155 API",
        "version": "0.1.0",
        "network": settings.default_network,
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "stylus1155.main:app",
        host=settings.host,
        port=settings.port,
        reload=True,
        log_level=settings.log_level.lower()
    )
