# tests/v1/test_dependencies.py
"""Tests for API dependencies module."""

import pytest
from fastapi import HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from jose import jwt

from bizdir_moderation.api.v1.dependencies import (
    get_components_dep,
    get_current_user_id,
    get_moderation_service,
)
from bizdir_moderation.core.security import create_access_token
from bizdir_moderation.core.settings import settings
from bizdir_moderation.services.moderation import ModerationService


def _credentials(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


class TestGetCurrentUserId:
    """Test the get_current_user_id dependency function."""

    def test_valid_token(self):
        assert get_current_user_id(_credentials(create_access_token(42))) == 42

    def test_garbage_token(self):
        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(_credentials("not.a.token"))

        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED
        assert "Could not validate credentials" in exc_info.value.detail

    def test_wrong_secret(self):
        token = jwt.encode({"sub": "42"}, "another-secret", algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException) as exc_info:
            get_current_user_id(_credentials(token))
        assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED

    def test_non_numeric_subject(self):
        token = jwt.encode({"sub": "alice"}, settings.secret_key, algorithm=settings.jwt_algorithm)

        with pytest.raises(HTTPException):
            get_current_user_id(_credentials(token))


class TestServiceWiring:
    def test_components_are_shared(self, components):
        assert get_components_dep() is components

    def test_service_acts_as_caller(self, components, moderator):
        service = get_moderation_service(moderator, components)

        assert isinstance(service, ModerationService)
        assert service._identity.current_user_id() == moderator
