"""API route registration."""

from fastapi import FastAPI

from frontdesk.observability.logging import get_logger

logger = get_logger(__name__)


def register_routes(app: FastAPI) -> None:
    """Register all routers with the application.

    Args:
        app: FastAPI application instance
    """
    from frontdesk.api.routes.health import router as health_router
    from frontdesk.api.routes.policy import router as policy_router
    from frontdesk.api.routes.rules import router as rules_router
    from frontdesk.api.routes.turns import router as turns_router

    app.include_router(policy_router, tags=["Policy"])
    app.include_router(rules_router, tags=["Routing Rules"])
    app.include_router(turns_router, tags=["Turns"])
    app.include_router(health_router, tags=["Health"])

    logger.info("routes_registered", routes=["policy", "rules", "turns", "health"])
