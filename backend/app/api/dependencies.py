from __future__ import annotations

from fastapi import Depends, Header, Request

from app.domain.services.storefront_session import SessionRegistry, StorefrontSession

DEFAULT_SESSION_ID = "default"


def provide_registry(request: Request) -> SessionRegistry:
    """FastAPI dependency: the registry owned by the application."""

    return request.app.state.registry


def provide_session(
    x_session_id: str | None = Header(default=None, alias="X-SESSION-ID"),
    registry: SessionRegistry = Depends(provide_registry),
) -> StorefrontSession:
    """FastAPI dependency: the caller's storefront session.

    Rule: one cart per `X-SESSION-ID`; a missing header means the shared
    counter session.
    """

    session_id = (x_session_id or "").strip() or DEFAULT_SESSION_ID
    return registry.session(session_id)
