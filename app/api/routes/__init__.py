from __future__ import annotations

from app.api.routes.health import router as health_router
from app.api.routes.questions import router as questions_router

__all__ = ["health_router", "questions_router"]
