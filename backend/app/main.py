from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import get_settings
from core.exceptions import register_exception_handlers
from core.scheduled_jobs import start_scheduler, stop_scheduler
from app.startup import configure_startup_logging, run_startup_checks

# ========== Models (registered on Base.metadata) ==========
from modules.auth.models import User  # noqa: F401
from modules.menu.models import MenuItem  # noqa: F401
from modules.orders.models import Order, OrderItem  # noqa: F401
from modules.payments.models import Payment  # noqa: F401
from modules.inventory.models import InventoryItem  # noqa: F401
from modules.analytics.models import DailyReport  # noqa: F401
from modules.ai_recommendations.models import CustomerRecommendation  # noqa: F401

# ========== Routers ==========
from modules.auth.routes.auth_routes import router as auth_router
from modules.menu.routes import router as menu_router
from modules.orders.routes.order_routes import router as order_router
from modules.payments.api import payment_router
from modules.inventory.routes import router as inventory_router
from modules.kds.routes import router as kds_router
from modules.analytics.routers import router as report_router
from modules.webhooks.routes import router as webhook_router
from modules.kds.services.kds_websocket_manager import kds_websocket_manager

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_startup_logging()
    run_startup_checks()
    if settings.scheduler_enabled:
        start_scheduler()
    yield
    if settings.scheduler_enabled:
        stop_scheduler()
    await kds_websocket_manager.close_all_connections()


app = FastAPI(
    title="Restaurant POS API",
    description="""
    Point-of-sale backend for a single restaurant.

    ## Features

    * **Orders** - Order intake, server-side pricing and the kitchen status lifecycle
    * **Payments** - Cash and card payments with idempotent retries and refunds
    * **Kitchen Display System** - Real-time order pushes over websockets
    * **Menu Management** - Menu items with priced modifiers and recommendations
    * **Inventory Management** - Stock tracking, low-stock SMS alerts and reorder advice
    * **Reports** - Daily sales summaries with trend insights

    ## Authentication

    Staff endpoints require a JWT bearer token. Use `/auth/login` to obtain one.
    """,
    version="1.0.0",
    lifespan=lifespan,
)

# Register exception handlers for consistent error responses
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ========== Include all routers (auth first) ==========
app.include_router(auth_router)
app.include_router(menu_router)
app.include_router(order_router)
app.include_router(payment_router)
app.include_router(inventory_router)
app.include_router(kds_router)
app.include_router(report_router)
app.include_router(webhook_router)


@app.get("/health", tags=["Health"])
async def health_check():
    return {"status": "healthy", "environment": settings.environment}
