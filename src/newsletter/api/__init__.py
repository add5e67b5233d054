"""Newsletter domain API package."""

from newsletter.api.routes import broadcast_router, cron_router, newsletter_router

__all__ = ["newsletter_router", "broadcast_router", "cron_router"]
