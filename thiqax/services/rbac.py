"""Role-based access control for API endpoints.

Handlers never read the caller from ambient state inside the workflow;
they resolve an explicit ``Actor`` here and pass it down.
"""

from typing import Callable, Iterable

import structlog
from fastapi import Request

from thiqax.errors import AuthenticationError, ForbiddenError
from thiqax.workflow.types import Actor, Role

logger = structlog.get_logger()

STAFF_ROLES = (Role.ADMIN.value, Role.AGENT.value)


def get_current_actor(request: Request) -> Actor:
    """
    Resolve the authenticated caller.

    Usage:
        @router.get("/me")
        def get_me(actor: Actor = Depends(get_current_actor)):
            return {"id": actor.id}
    """
    if not hasattr(request.state, "user"):
        raise AuthenticationError()
    return Actor(id=str(request.state.user_id), role=request.state.user_role)


def require_role(allowed_roles: list[str]) -> Callable:
    """
    Dependency that requires the caller to have one of the specified roles.

    Usage:
        @router.post("/admin-only")
        def admin_endpoint(actor: Actor = Depends(require_role(["admin"]))):
            ...
    """
    def check_role(request: Request) -> Actor:
        actor = get_current_actor(request)
        if actor.role in allowed_roles:
            return actor

        logger.warning(
            "Role check failed",
            user=actor.id,
            required=allowed_roles,
            role=actor.role,
        )
        raise ForbiddenError()

    return check_role


def ensure_self_or_role(
    actor: Actor,
    owner_id: str,
    message: str,
    roles: Iterable[str] = STAFF_ROLES,
) -> None:
    """Allow the owner of a resource or any of ``roles``; otherwise 403."""
    if actor.id == owner_id or actor.role in roles:
        return
    logger.warning("Ownership check failed", user=actor.id, owner=owner_id, role=actor.role)
    raise ForbiddenError(message)
