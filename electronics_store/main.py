from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

import httpx
import uvicorn

from electronics_store.config import get_settings
from electronics_store.database import engine, Base, SessionLocal
from electronics_store.errors import StoreError
from electronics_store.api import products, orders, health, delivery, investment
from electronics_store.clients.delivery import build_delivery_client
from electronics_store.clients.securities import build_securities_client
from electronics_store.services.product_service import ProductService
from electronics_store.utils.cache import cache_service

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logging.getLogger("httpx").setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    """
    # Startup
    logger.info("Starting up application...")

    # Create database tables
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created successfully")

    if settings.SEED_DEMO_CATALOG:
        db = SessionLocal()
        try:
            ProductService(db).seed_catalog()
        finally:
            db.close()

    # Outbound HTTP client shared by the integration clients
    http_client = httpx.Client(timeout=settings.HTTP_TIMEOUT)
    app.state.delivery_client = build_delivery_client(settings, http_client, cache_service)
    app.state.securities_client = build_securities_client(settings, http_client)

    yield

    # Shutdown
    logger.info("Shutting down application...")
    http_client.close()


# Create FastAPI application
app = FastAPI(
    title="Electronics Store API",
    description="""
    Backend API for an online electronics store:

    - **Catalog**: Products and categories
    - **Orders**: Order placement with stock reservation
    - **Delivery**: Shipping cost quotes from the delivery provider
    - **Investment**: Proxy to the securities service

    ## Features

    ### Stock Management & Race Condition Handling
    An order is validated and written in one transaction. Stock is
    re-checked by a conditional update right before it is decremented,
    so concurrent orders can never oversell a product.

    ### Demo Mode
    Without delivery provider credentials or an investment service URL
    the integration endpoints return clearly flagged demo data.
    """,
    version=settings.VERSION,
    contact={
        "name": "API Support"
    },
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


@app.exception_handler(StoreError)
def store_error_handler(request: Request, exc: StoreError):
    """Render domain errors as ``{"error": message}``."""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(RequestValidationError)
def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report malformed request bodies as 400 with the first problem found."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"][1:]) or "body"
    return JSONResponse(
        status_code=400,
        content={"error": f"Invalid field '{field}': {first['msg']}"}
    )


# Include API routers
app.include_router(health.router)
app.include_router(products.router)
app.include_router(orders.router)
app.include_router(delivery.router)
app.include_router(investment.router)


@app.get("/", tags=["Root"])
def root():
    """Root endpoint with API information."""
    return {
        "service": "Electronics Store API",
        "version": settings.VERSION,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "GET /health": "Health check",
            "GET /api/products": "List products",
            "GET /api/products/:id": "Get product by ID",
            "GET /api/products?category=...": "List products in a category",
            "GET /api/categories": "List categories",
            "GET /api/orders": "List orders",
            "GET /api/orders/:id": "Get order by ID",
            "POST /api/products": "Create product",
            "POST /api/orders": "Create order",
            "POST /api/delivery/calculate": "Calculate delivery cost",
            "GET /api/investment/securities": "List securities"
        }
    }


def run():
    """Console entry point: serve the API on the configured port."""
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
