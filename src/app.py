"""Storefront FastAPI application.

Processes every request synchronously inside the storefront domain context.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storefront.config import get_settings
from storefront.domain import init_storefront, storefront
from storefront.utils.logging import add_context, clear_context, configure_logging

configure_logging()

# Initialized at module level so uvicorn workers share the registry.
init_storefront()

app = FastAPI(
    title="Storefront API",
    description="Accounts, catalogue, cart and checkout",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[get_settings().frontend_url],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the storefront domain context and a request id for logging."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)
    with storefront.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from storefront.api.errors import register_error_handlers  # noqa: E402
from storefront.catalogue.api import item_router  # noqa: E402
from storefront.identity.api import auth_router, users_router  # noqa: E402
from storefront.ordering.api import cart_router, order_router  # noqa: E402
from storefront.payments.api import gateway_router, reconciliation_router  # noqa: E402

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(item_router)
app.include_router(cart_router)
app.include_router(order_router)
app.include_router(reconciliation_router)
app.include_router(gateway_router)

register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    return JSONResponse(
        content={
            "status": "ok",
            "domain": storefront.name,
            "environment": get_settings().environment,
        }
    )
