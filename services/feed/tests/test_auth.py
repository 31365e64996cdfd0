import uuid

import pytest
from fastapi import HTTPException
from fastapi.security import HTTPAuthorizationCredentials

from shared.auth.config import AuthSettings
from shared.auth.dependencies import get_current_user_optional, get_current_user_required
from shared.constants import Role

from tests.factories import TEST_JWT_SECRET, make_token

SETTINGS = AuthSettings(secret=TEST_JWT_SECRET)


def _bearer(token: str) -> HTTPAuthorizationCredentials:
    return HTTPAuthorizationCredentials(scheme="Bearer", credentials=token)


@pytest.mark.asyncio
async def test_roles_round_trip_from_top_level_claim() -> None:
    user_id = uuid.uuid4()
    token = make_token(user_id, roles=["admin", "not-a-role"], email="a@example.com")

    user = await get_current_user_optional(_bearer(token), SETTINGS)

    assert user.id == user_id
    assert user.email == "a@example.com"
    assert user.roles == [Role.ADMIN]


@pytest.mark.asyncio
async def test_roles_read_from_app_metadata() -> None:
    token = make_token(app_metadata={"roles": ["creator"]})
    user = await get_current_user_optional(_bearer(token), SETTINGS)
    assert user.roles == [Role.CREATOR]


@pytest.mark.asyncio
async def test_token_without_roles_has_none() -> None:
    user = await get_current_user_optional(_bearer(make_token()), SETTINGS)
    assert user.roles == []


@pytest.mark.asyncio
async def test_bad_token_is_anonymous_and_required_rejects() -> None:
    user = await get_current_user_optional(_bearer("garbage"), SETTINGS)
    assert user is None
    with pytest.raises(HTTPException) as exc_info:
        await get_current_user_required(user)
    assert exc_info.value.status_code == 401
