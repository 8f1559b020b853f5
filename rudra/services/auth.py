"""Identity lookup interface and implementations."""

from typing import Protocol

from fastapi import Request

from rudra.models.chat import Identity


class AuthProvider(Protocol):
    """Resolves the caller of a request to a user identity.

    This allows pluggable identity sources:
    - Static bearer tokens for development and the terminal client
    - An external OAuth session store in production
    """

    async def current_identity(self, request: Request) -> Identity | None:
        """Return the caller's identity, or None if unauthenticated."""
        ...


class StaticTokenAuthProvider:
    """Bearer-token lookup against a fixed token table."""

    def __init__(self, tokens: dict[str, Identity]):
        """Initialize with a mapping of bearer token to identity."""
        self.tokens = dict(tokens)

    async def current_identity(self, request: Request) -> Identity | None:
        header = request.headers.get("authorization", "")
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        return self.tokens.get(token.strip())
