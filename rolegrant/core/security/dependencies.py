"""
FastAPI dependencies for permission checks.

Usage:
    app.state.security_checker = SecurityChecker(granter)

    # Resolve the actor's roles however the app authenticates
    app.dependency_overrides[get_current_roles] = roles_from_token

    @router.get("/books", dependencies=[Depends(require_permission("entity:books:read"))])
    async def list_books():
        ...

    @router.post("/books/{id}/publish")
    async def publish(
        id: int,
        roles: list[str] = Depends(require_permission("entity:books:update", "entity:books:publish")),
    ):
        ...

    @router.delete("/books/{id}")
    async def delete_book(
        id: int,
        _: list[str] = Depends(require_permission(any_of=["entity:books:delete", "admin:**"])),
    ):
        ...
"""

from typing import Annotated, Callable

from fastapi import Depends, HTTPException, Request, status

from .checker import SecurityChecker
from .interfaces import ANONYMOUS_ROLE


# ============================================================
# ACTOR DEPENDENCIES
# ============================================================

async def get_current_roles() -> list[str]:
    """
    Roles of the current actor.

    Anonymous by default. Applications override this dependency with
    their own authentication.
    """
    return [ANONYMOUS_ROLE]


def get_security_checker(request: Request) -> SecurityChecker:
    """
    SecurityChecker stored on app.state.security_checker.

    Raises:
        RuntimeError: If the application did not configure one
    """
    checker = getattr(request.app.state, "security_checker", None)
    if checker is None:
        raise RuntimeError("app.state.security_checker is not configured")
    return checker


# ============================================================
# PERMISSION DEPENDENCIES
# ============================================================

def require_permission(*permissions: str, any_of: list[str] | None = None) -> Callable:
    """
    Dependency factory requiring permissions.

    Args:
        *permissions: Permission strings that are ALL required (AND logic)
        any_of: Permission strings where ANY is sufficient (OR logic)

    The dependency resolves to the actor's roles.

    Raises:
        HTTPException 403: "Permission denied: <permission>"
    """
    async def dependency(
        roles: list[str] = Depends(get_current_roles),
        checker: SecurityChecker = Depends(get_security_checker),
    ) -> list[str]:
        await checker.granter.ensure_ready()

        for permission in permissions:
            if not checker.is_granted(roles, permission):
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Permission denied: {permission}",
                )

        if any_of and not any(checker.is_granted(roles, p) for p in any_of):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {' or '.join(any_of)}",
            )

        return roles

    return dependency


# ============================================================
# TYPE ALIASES FOR CLEAN SIGNATURES
# ============================================================

# Roles of the current actor
CurrentRoles = Annotated[list[str], Depends(get_current_roles)]

# Configured security checker
Checker = Annotated[SecurityChecker, Depends(get_security_checker)]
