"""
FastAPI dependencies for authentication and authorization.
"""
from dataclasses import dataclass
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from app.features.users.auth import verify_jwt_token


security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Principal:
    """The caller identified by a verified bearer token."""
    user_id: int
    username: str
    permissions: frozenset[str]

    def has_permission(self, name: str) -> bool:
        return name in self.permissions


async def get_current_principal(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Principal:
    """
    Get the caller from the JWT in the Authorization header.

    Usage:
        @router.get("/me")
        async def get_me(principal: Principal = Depends(get_current_principal)):
            return principal
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = verify_jwt_token(credentials.credentials)
    try:
        user_id = int(payload["sub"])
    except (KeyError, ValueError):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
        )

    return Principal(
        user_id=user_id,
        username=payload.get("name", ""),
        permissions=frozenset(payload.get("permissions") or []),
    )


def require_permission(name: str):
    """
    FastAPI dependency to require a permission claim.

    Usage:
        @router.delete("/{user_id}")
        async def delete_user(
            user_id: int,
            principal: Principal = Depends(require_permission("user.delete"))
        ):
            ...

    Raises:
        HTTPException: 403 if the token does not carry the permission
    """
    async def permission_dependency(
        principal: Annotated[Principal, Depends(get_current_principal)],
    ) -> Principal:
        if not principal.has_permission(name):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Permission denied: {name}",
            )
        return principal

    return permission_dependency


def get_authorization_header(request: Request) -> str:
    """
    Extract authorization header for rate limiting.
    Used with slowapi Limiter.
    """
    auth = request.headers.get("Authorization", "")
    return auth or "anonymous"
