"""
POS REST API main application.
Entry point for the FastAPI server.
"""

from fastapi import FastAPI

from pos_api.core import (
    configure_cors,
    lifespan,
    register_exception_handlers,
    register_middlewares,
)
from pos_api.routers.api_tokens import router as api_tokens_router
from pos_api.routers.auth import router as auth_router
from pos_api.routers.categories import router as categories_router
from pos_api.routers.clients import router as clients_router
from pos_api.routers.invoices import router as invoices_router
from pos_api.routers.kitchen import router as kitchen_router
from pos_api.routers.plan import router as plan_router
from pos_api.routers.products import router as products_router
from pos_api.routers.public import health_router, v1_router
from pos_api.routers.reports import router as reports_router, sales_router
from pos_api.routers.superadmin import router as superadmin_router
from pos_api.routers.tables import orders_router, router as tables_router
from pos_api.routers.users import router as users_router
from pos_shared.config.settings import settings
from pos_shared.security.rate_limit import limiter


app = FastAPI(
    title="Restaurante POS API",
    description="Multi-tenant point of sale and invoicing for restaurants",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter

register_exception_handlers(app)
register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(superadmin_router)
app.include_router(plan_router)
app.include_router(users_router)
app.include_router(categories_router)
app.include_router(products_router)
app.include_router(clients_router)
app.include_router(invoices_router)
app.include_router(tables_router)
app.include_router(orders_router)
app.include_router(kitchen_router)
app.include_router(reports_router)
app.include_router(sales_router)
app.include_router(api_tokens_router)
app.include_router(v1_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "pos_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
