from __future__ import annotations

from uuid import UUID  # noqa: TCH003

from app.core.models.base import AppBaseModel


class AuthUser(AppBaseModel):
    """Caller resolved from a Supabase JWT; `id` scopes every memo and tag query."""

    id: UUID
    email: str | None = None
    role: str | None = None
