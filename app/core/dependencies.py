"""
Request-scoped dependencies shared by the controllers.
"""

from fastapi import Request

from app.services.session_service import SessionRegistry


def get_registry(request: Request) -> SessionRegistry:
    """The registry built at startup (see `app.main.create_app`)."""
    return request.app.state.registry


def get_client_address(request: Request) -> str | None:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    return request.client.host if request.client else None
