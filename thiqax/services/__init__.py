"""Services for the ThiQaX verification API.

The integration services (documents, profiles, applications,
reconciliation) are imported from their modules directly.
"""

from .token import create_token, decode_token
from .rbac import require_role, get_current_actor, ensure_self_or_role

__all__ = [
    "create_token",
    "decode_token",
    "require_role",
    "get_current_actor",
    "ensure_self_or_role",
]
