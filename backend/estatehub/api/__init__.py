"""Web-layer glue: dependencies and error mapping."""

from estatehub.api.deps import (
    get_auth_service,
    get_current_claims,
    get_current_user,
    require_role,
)
from estatehub.api.errors import register_exception_handlers

__all__ = [
    "get_auth_service",
    "get_current_claims",
    "get_current_user",
    "register_exception_handlers",
    "require_role",
]
