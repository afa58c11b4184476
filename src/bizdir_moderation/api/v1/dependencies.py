"""Shared API dependencies for authentication and service wiring."""

from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bizdir_moderation.core.security import decode_access_token
from bizdir_moderation.services.components import ModerationComponents, get_components
from bizdir_moderation.services.identity import StaticIdentity
from bizdir_moderation.services.moderation import ModerationService

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> int:
    """Return the authenticated user id from the bearer token.

    Raises:
        HTTPException: If the token is invalid or carries no usable subject
    """
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )
    return user_id


def get_components_dep() -> ModerationComponents:
    """Return the process-wide moderation components."""
    return get_components()


CurrentUserIdDep = Annotated[int, Depends(get_current_user_id)]
ComponentsDep = Annotated[ModerationComponents, Depends(get_components_dep)]


def get_moderation_service(
    user_id: CurrentUserIdDep,
    components: ComponentsDep,
) -> ModerationService:
    """Build the orchestrator for the calling user."""
    return components.moderation_service(StaticIdentity(user_id))


ModerationServiceDep = Annotated[ModerationService, Depends(get_moderation_service)]
