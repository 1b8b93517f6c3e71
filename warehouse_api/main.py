from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from warehouse_api.core.errors import LedgerError
from warehouse_api.core.observability import (
    http_exception_handler,
    ledger_exception_handler,
    log_event,
    logger,
    request_logging_middleware,
    setup_observability,
    unhandled_exception_handler,
    validation_exception_handler,
)
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from warehouse_api.core.config import settings
from warehouse_api.db.session import engine
from warehouse_api.routers import auth, categories, dashboard, products, reports, stock_movements, users, warehouse

app = FastAPI(
    title=settings.app_name,
    version="1.0.0",
    description=(
        "Backend API for warehouse inventory: products, stock movements, warehouse layout and reports.\n\n"
        "Swagger quick test flow:\n"
        "1. Call `POST /auth/register` (the first account becomes admin), then `POST /auth/login`.\n"
        "2. Click **Authorize** and use your email/username + password "
        "(OAuth token URL: `/auth/token`).\n"
        "3. Test protected endpoints (`/products`, `/stock-movements`, `/warehouse`, `/dashboard`)."
    ),
    swagger_ui_parameters={
        "persistAuthorization": True,
        "displayRequestDuration": True,
        "defaultModelsExpandDepth": 1,
    },
    openapi_tags=[
        {"name": "health", "description": "Service status and quick links."},
        {"name": "auth", "description": "User authentication and access tokens."},
        {"name": "users", "description": "User accounts and roles."},
        {"name": "categories", "description": "Product categories."},
        {"name": "products", "description": "Product catalog, stock balance and legacy stock updates."},
        {"name": "stock-movements", "description": "Stock ledger: record, list, reverse and summarize movements."},
        {"name": "warehouse", "description": "Warehouse areas, locations and occupancy."},
        {"name": "dashboard", "description": "Inventory KPIs and summary metrics."},
        {"name": "reports", "description": "Stock, near expiry and warehouse layout report data."},
    ],
)

setup_observability()
app.middleware("http")(request_logging_middleware)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(LedgerError, ledger_exception_handler)
app.add_exception_handler(Exception, unhandled_exception_handler)

cors_origins = settings.cors_origins or ["http://localhost:5173"]
allow_all_origins = "*" in cors_origins
env_value = settings.env.lower().strip()
allow_origin_regex = settings.cors_origin_regex

if (
    not allow_origin_regex
    and env_value in {"dev", "development", "staging", "stage"}
):
    # Local frontends run on dynamic localhost ports.
    allow_origin_regex = r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if allow_all_origins else cors_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=not allow_all_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router)
app.include_router(users.router)
app.include_router(categories.router)
app.include_router(products.router)
app.include_router(stock_movements.router)
app.include_router(warehouse.router)
app.include_router(warehouse.layout_router)
app.include_router(dashboard.router)
app.include_router(reports.router)


@app.get("/", tags=["health"])
def root():
    return {
        "app": settings.app_name,
        "docs": "/docs",
        "redoc": "/redoc",
        "health": "/health",
        "ready": "/ready",
    }


@app.get("/health", tags=["health"])
def health():
    return {"ok": True}


@app.get("/ready", tags=["health"])
def ready():
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        log_event(logger, "readiness_check_failed", error=str(exc))
        return {"ok": False}
    return {"ok": True}
