from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.repositories.implementations.supabase.memo_repository import (
    SupabaseMemoRepository,
)
from app.core.schemas.auth import AuthUser
from app.core.services.memo_service import MemoService
from app.core.services.tag_service import TagService
from app.db.base import create_request_supabase_client
from app.utils.logging import get_logger

logger = get_logger(__name__)

# Use auto_error=False to handle missing tokens gracefully
http_bearer = HTTPBearer(auto_error=False)

if TYPE_CHECKING:
    from supabase import Client

    from app.core.repositories.memo_repository import MemoRepository


async def _run_blocking(func):
    """Run blocking functions in a thread pool."""
    return await asyncio.to_thread(func)


def get_request_supabase_client(request: Request) -> Client:
    """Create a request-scoped Supabase client and set PostgREST bearer.

    Extracts the Authorization: Bearer <jwt> header if present and configures
    PostgREST to enforce RLS for the user.
    """
    auth_header = request.headers.get("authorization") or request.headers.get("Authorization")
    jwt: str | None = None
    if auth_header and auth_header.lower().startswith("bearer "):
        jwt = auth_header.split(" ", 1)[1].strip()
    return create_request_supabase_client(jwt)


def get_memo_repository(client: Client = Depends(get_request_supabase_client)) -> MemoRepository:
    """Get a request-scoped memo repository instance using request client."""
    return SupabaseMemoRepository(client)


def get_memo_service(repo: MemoRepository = Depends(get_memo_repository)) -> MemoService:
    """Get a request-scoped memo service instance."""
    return MemoService(repo)


def get_tag_service(repo: MemoRepository = Depends(get_memo_repository)) -> TagService:
    """Get a request-scoped tag service instance."""
    return TagService(repo)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Security(http_bearer),
) -> AuthUser:
    """Validate JWT via Supabase and return authenticated user."""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    jwt = credentials.credentials
    if not jwt or len(jwt.split(".")) != 3:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token format",
            headers={"WWW-Authenticate": "Bearer"},
        )
    supabase = create_request_supabase_client(jwt)
    try:
        resp = await _run_blocking(lambda: supabase.auth.get_user(jwt))
    except Exception as err:
        error_msg = str(err).lower()
        logger.warning(
            "JWT validation failed",
            extra={
                "error_type": type(err).__name__,
                "error_summary": error_msg[:100] if error_msg else "Unknown error",
                "jwt_length": len(jwt) if jwt else 0,
            }
        )
        detail = "Token is invalid or expired" if "invalid" in error_msg or "expired" in error_msg else "Authentication failed"
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        ) from err
    user = getattr(resp, "user", None)
    user_id = getattr(user, "id", None)
    if not user or not user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid user data",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return AuthUser(
        id=user_id,
        email=getattr(user, "email", None),
        role=getattr(user, "role", None),
    )
