import time
from uuid import uuid4

import pytest
from jose import JWTError, jwt

from shared.auth.config import AuthSettings
from shared.auth.dependencies import decode_token
from shared.constants import Role

SETTINGS = AuthSettings(secret="test-secret")


def _token(**claims) -> str:
    payload = {
        "sub": str(uuid4()),
        "email": "admin@example.com",
        "roles": ["admin", "moderator"],
        "iss": SETTINGS.issuer,
        "aud": SETTINGS.audience,
        "exp": int(time.time()) + 300,
    }
    payload.update(claims)
    return jwt.encode(payload, SETTINGS.secret, algorithm=SETTINGS.algorithm)


def test_decode_token_keeps_known_roles() -> None:
    user = decode_token(_token(), SETTINGS)
    assert user.roles == [Role.ADMIN]
    assert user.is_admin


def test_learner_is_not_admin() -> None:
    user = decode_token(_token(roles=["learner"]), SETTINGS)
    assert not user.is_admin


def test_missing_subject_is_rejected() -> None:
    with pytest.raises(ValueError):
        decode_token(_token(sub=""), SETTINGS)


def test_wrong_audience_is_rejected() -> None:
    with pytest.raises(JWTError):
        decode_token(_token(aud="someone-else"), SETTINGS)


def test_expired_token_is_rejected() -> None:
    with pytest.raises(JWTError):
        decode_token(_token(exp=int(time.time()) - 3600), SETTINGS)


@pytest.mark.asyncio
async def test_bearer_token_reaches_admin_route(api_client, monkeypatch) -> None:
    monkeypatch.setenv("JWT_SECRET", SETTINGS.secret)
    resp = await api_client.post(
        "/api/v1/backoffice/modules/reorder",
        json={"source_id": str(uuid4()), "target_id": str(uuid4())},
        headers={"Authorization": f"Bearer {_token(roles=['learner'])}"},
    )
    assert resp.status_code == 403
