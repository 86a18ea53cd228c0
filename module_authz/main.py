from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.routing import APIRoute

from module_authz.engine.evaluator import Authorizer, build_authorizer
from module_authz.engine.matrix import build_default_matrix, load_permission_matrix
from module_authz.logging_config import configure_app_logging, configure_decision_log
from module_authz.routers import health, permissions
from module_authz.security.decorators import validate_bindings
from module_authz.security.dependencies import enforce_authorization
from module_authz.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def build_authorizer_from_settings(settings: Settings) -> Authorizer:
    matrix_path = settings.resolved_matrix_config_path()
    if matrix_path is None:
        matrix = build_default_matrix()
        logger.info("Using built-in permission matrix")
    else:
        matrix = load_permission_matrix(matrix_path)
        logger.info("Loaded permission matrix: %s", matrix_path)
    return build_authorizer(matrix)


def create_app(settings: Settings | None = None, authorizer: Authorizer | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup: everything is built (or fails) before the first request.
        cfg = settings or get_settings()
        configure_app_logging(cfg.log_level)
        logger.info("App startup beginning")

        listener = configure_decision_log(
            queue_size=cfg.decision_log_queue_size,
            json_format=cfg.decision_log_json,
        )

        try:
            app.state.authorizer = authorizer or build_authorizer_from_settings(cfg)
            bound = validate_bindings(
                (route.endpoint for route in app.routes if isinstance(route, APIRoute)),
                app.state.authorizer.registry,
            )
            logger.info("Authorization ready policies=%s bound_endpoints=%s", len(app.state.authorizer.registry), bound)
            yield
        finally:
            listener.stop()

    # Global dependency: every route is decided before its handler runs.
    app = FastAPI(dependencies=[Depends(enforce_authorization)], lifespan=lifespan)

    app.include_router(health.router)
    app.include_router(permissions.router)

    return app


app = create_app()
