"""FastAPI dependency injection for pipeline collaborators."""

from __future__ import annotations

from fastapi import Request

from codecoach.api.app_state import AppState


def get_app_state(request: Request) -> AppState:
    """Get the typed AppState built during lifespan start-up."""
    return request.app.state.typed  # type: ignore[no-any-return]
