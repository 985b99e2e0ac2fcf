"""Application factory for the FastAPI app.

Centralizes app construction (settings, process state, middleware, handlers,
routers) so tests can build isolated instances with their own data directory
and a fresh rate limiter.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.adapters.rate_limit.base import AbstractRateLimiter
from app.adapters.storage.cooldown import JsonFileCooldownStore
from app.adapters.storage.json_file import JsonFileCollection
from app.api.routes import health_router, questions_router
from app.core.config import AppSettings, Settings, settings as default_settings
from app.core.exception_handlers import setup_exception_handlers
from app.core.logging import configure_logging
from app.core.middleware import request_id_middleware
from app.core.openapi import apply_openapi_customizations
from app.core.rate_limit import build_rate_limiter, rate_limit_middleware
from app.services.catalog_service import QuestionCatalog
from app.services.submission_service import SubmissionService


def build_submission_service(app_settings: AppSettings) -> SubmissionService:
    """Wire the collections and the optional durable cooldown from settings."""

    cooldown = None
    if app_settings.propose_cooldown_enabled:
        cooldown = JsonFileCooldownStore(
            app_settings.propose_cooldown_path,
            cooldown_seconds=app_settings.propose_cooldown_seconds,
        )

    return SubmissionService(
        proposed=JsonFileCollection(
            app_settings.proposed_questions_path, name="proposed-questions"
        ),
        reported=JsonFileCollection(
            app_settings.reported_questions_path, name="reported-questions"
        ),
        cooldown=cooldown,
    )


def create_app(
    settings: Settings | None = None,
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    submission_service: SubmissionService | None = None,
    configure_logs: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        settings: Settings override; defaults to the global settings.
        rate_limiter: Limiter override (e.g. with a fake clock).
        submission_service: Service override (e.g. with in-memory collections).
        configure_logs: Whether to (re)configure the root logger.

    Returns:
        Configured FastAPI app with state, middleware, handlers, routers and docs.
    """

    cfg = settings or default_settings

    # Logging first so subsequent init logs are formatted as desired
    if configure_logs:
        configure_logging(cfg.log)

    app = FastAPI(
        title="Cyber Interview Quiz API",
        description=(
            "Bilingual (EN/FR) cybersecurity interview flashcards. Browse the "
            "question catalog, propose new questions and report wrong ones. "
            "Write routes are rate limited per client."
        ),
        version="0.1.0",
        debug=cfg.app.debug,
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Process-wide state: created here, never persisted, lost on restart
    app.state.settings = cfg
    app.state.rate_limiter = rate_limiter or build_rate_limiter(cfg.app)
    app.state.submission_service = submission_service or build_submission_service(cfg.app)
    app.state.question_catalog = QuestionCatalog(cfg.app.questions_file)

    # Middleware (last registered runs first)
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    # Exception handlers
    setup_exception_handlers(app)

    # Routers
    app.include_router(questions_router)
    app.include_router(health_router)

    apply_openapi_customizations(app, cfg.app)

    return app
