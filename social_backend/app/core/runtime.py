from __future__ import annotations

from contextvars import ContextVar
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .documents import DocumentStore
    from .security import PasswordHasher, TokenService

# Holds runtime singletons (redis client, store, auth services) to avoid circular imports.
redis_client: Any | None = None
store: DocumentStore | None = None
token_service: TokenService | None = None
password_hasher: PasswordHasher | None = None

# Resolved user id of the request being served; None outside the auth gate.
current_user_id: ContextVar[str | None] = ContextVar("current_user_id", default=None)
