import pytest
from jose import JWTError
from courtside.core.dependencies.auth import get_current_user_with_roles, get_token_payload, TokenPayload
from courtside.domain.exceptions import Unauthorized, Forbidden
from courtside.domain.tickets.models import Owner


@pytest.mark.asyncio
async def test_get_token_payload_ok(mocker):
    mocker.patch("courtside.core.dependencies.auth.SECRET_KEY", "fake-key")
    decode = mocker.patch("courtside.core.dependencies.auth.jwt.decode",
                          return_value={
                              "sub": "uid-7",
                              "email": "fan@example.com",
                              "roles": ["CUSTOMER"],
                              "iss": "courtside-idp",
                              "aud": "courtside-web"
                          })

    payload = await get_token_payload("token")

    assert payload.sub == "uid-7"
    assert payload.roles == ["CUSTOMER"]
    assert decode.call_args.kwargs["audience"] == "courtside-web"


@pytest.mark.asyncio
async def test_get_token_payload_missing_token_raises_401():
    with pytest.raises(Unauthorized) as e:
        await get_token_payload(None)

    assert e.value.ctx.get("reason") == "missing_token"


@pytest.mark.asyncio
async def test_get_token_payload_invalid_jwt_raises_401(mocker):
    mocker.patch("courtside.core.dependencies.auth.SECRET_KEY", "fake-key")
    mocker.patch("courtside.core.dependencies.auth.jwt.decode", side_effect=JWTError("err"))

    with pytest.raises(Unauthorized) as e:
        await get_token_payload("bad-token")

    assert e.value.ctx.get("reason") == "invalid_token"


@pytest.mark.asyncio
async def test_get_token_payload_without_subject_raises_401(mocker):
    mocker.patch("courtside.core.dependencies.auth.jwt.decode", return_value={"iat": 1})

    with pytest.raises(Unauthorized):
        await get_token_payload("no-sub")


@pytest.mark.asyncio
async def test_get_current_user_with_roles_when_roles_intersect():
    dependency = get_current_user_with_roles("ADMIN", "CUSTOMER")
    payload = TokenPayload(sub="uid-1", email="a@example.com", name="Ann", roles=["CUSTOMER"])

    user = await dependency(payload)

    assert user.uid == "uid-1"
    assert user.email == "a@example.com"
    assert user.owner == Owner.user("uid-1")


@pytest.mark.asyncio
async def test_get_current_user_with_roles_when_roles_do_not_intersect_raises_403():
    dependency = get_current_user_with_roles("ADMIN")
    payload = TokenPayload(sub="uid-1", roles=["CUSTOMER"])

    with pytest.raises(Forbidden) as e:
        await dependency(payload)

    assert e.value.ctx["required"] == ["ADMIN"]


@pytest.mark.asyncio
async def test_get_current_user_without_required_roles_accepts_any_authenticated_user():
    dependency = get_current_user_with_roles()

    user = await dependency(TokenPayload(sub="uid-2"))

    assert user.roles == frozenset()
