from typing import Any
from fastapi import HTTPException
from starlette.requests import Request


def resolve_service(request: Request, name: str) -> Any:
    """Resolve `name` from the container on `request.app.state`.

    A missing container or registration is a deployment error and is
    reported as HTTP 500.
    """
    container = getattr(request.app.state, 'container', None)
    if container is None:
        raise HTTPException(status_code=500, detail="Service container not configured")
    try:
        return container.get(name)
    except KeyError:
        raise HTTPException(status_code=500, detail=f"Service '{name}' not configured")


def resolve_optional_service(request: Request, name: str) -> Any:
    """Like `resolve_service` but returns None when `name` is not registered."""
    container = getattr(request.app.state, 'container', None)
    if container is None or name not in container:
        return None
    return container.get(name)
