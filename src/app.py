"""Storefront FastAPI application.

Multi-domain web server that processes requests synchronously via HTTP.
Each request is wrapped in the correct domain context based on URL prefix.

Usage:
    uvicorn app:app --app-dir src --host 0.0.0.0 --port 8000 --reload
"""

# ---------------------------------------------------------------------------
# Domain initialization
# ---------------------------------------------------------------------------
# Domains are initialized at module level so uvicorn workers share them.
# PROTEAN_ENV selects the config overlay (memory providers unless production).
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from newsletter.domain import newsletter
from ordering.domain import ordering
from shared.logging import add_context, clear_context, configure_logging

configure_logging()

ordering.init()
newsletter.init()

# ---------------------------------------------------------------------------
# Route-to-domain mapping
# ---------------------------------------------------------------------------
# Longest prefix first: /admin/broadcast must win over /admin
_ROUTE_DOMAIN_MAP = {
    "/admin/broadcast": newsletter,
    "/newsletter": newsletter,
    "/cron": newsletter,
    "/admin": ordering,
    "/products": ordering,
    "/coupons": ordering,
    "/orders": ordering,
}


def _resolve_domain(path: str):
    """Return the domain for the given request path, or None."""
    for prefix, domain in _ROUTE_DOMAIN_MAP.items():
        if path.startswith(prefix):
            return domain
    return None


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Storefront API",
    description="Orders, PromptPay slips and newsletter broadcasts",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the correct Protean domain context for each request."""
    clear_context()
    add_context(request_id=request.headers.get("x-request-id") or uuid4().hex, path=request.url.path)

    domain = _resolve_domain(request.url.path)
    if domain is not None:
        with domain.domain_context():
            response = await call_next(request)
        return response
    # No domain match, pass through (health check, docs, etc.)
    return await call_next(request)


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from newsletter.api import broadcast_router, cron_router, newsletter_router  # noqa: E402
from ordering.api import admin_router, storefront_router  # noqa: E402
from shared.api import register_error_handlers  # noqa: E402

app.include_router(storefront_router)
app.include_router(admin_router)
app.include_router(newsletter_router)
app.include_router(broadcast_router)
app.include_router(cron_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health():
    from ordering.inventory import configuration_gaps

    gaps = configuration_gaps()
    return JSONResponse(
        content={
            "status": "degraded" if gaps else "ok",
            "domains": {
                "ordering": {"name": ordering.name},
                "newsletter": {"name": newsletter.name},
            },
            "configuration_gaps": gaps,
        }
    )
