"""FastAPI dependencies resolving the runtime and the caller."""

from fastapi import Depends, HTTPException, Request

from rudra.models.chat import Identity
from rudra.runtime import Runtime


def get_runtime(request: Request) -> Runtime:
    """The runtime installed on the application at startup."""
    return request.app.state.runtime


async def get_identity(request: Request, runtime: Runtime = Depends(get_runtime)) -> Identity | None:
    """The caller's identity, or None."""
    return await runtime.auth.current_identity(request)


async def require_identity(identity: Identity | None = Depends(get_identity)) -> Identity:
    """The caller's identity; rejects unauthenticated requests."""
    if identity is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return identity
