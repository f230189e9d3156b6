from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from typing import Annotated, NamedTuple
from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError
from courtside.core.config import SECRET_KEY, ALGORITHM, JWT_ISSUER, JWT_AUDIENCE
from courtside.domain.exceptions import Unauthorized, Forbidden
from courtside.domain.tickets.models import Owner
from courtside.core.ctx import AUTH_ROLES_CTX, AUTH_USER_ID_CTX


oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/token", auto_error=False)


class TokenPayload(BaseModel):
    sub: str
    email: str | None = None
    name: str | None = None
    roles: list[str] = []


class CurrentUser(NamedTuple):
    uid: str
    email: str | None
    name: str | None
    roles: frozenset[str]

    @property
    def owner(self) -> Owner:
        return Owner.user(self.uid)


async def get_token_payload(token: Annotated[str | None, Depends(oauth2_bearer)]) -> TokenPayload:
    if not token:
        raise Unauthorized("Missing bearer token", ctx={"reason": "missing_token"})
    try:
        raw_payload = jwt.decode(
            token,
            SECRET_KEY,
            algorithms=[ALGORITHM],
            issuer=JWT_ISSUER,
            audience=JWT_AUDIENCE,
            options={"verify_aud": True, "leeway": 5}
        )
        return TokenPayload.model_validate(raw_payload)
    except (JWTError, ValidationError):
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})


def get_current_user_with_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    async def _inner(payload: Annotated[TokenPayload, Depends(get_token_payload)]) -> CurrentUser:
        roles = frozenset(payload.roles)
        AUTH_ROLES_CTX.set(tuple(sorted(roles)))
        AUTH_USER_ID_CTX.set(payload.sub)

        if allowed and roles.isdisjoint(allowed):
            raise Forbidden("Permission denied", ctx={"required": sorted(allowed), "user_roles": sorted(roles)})
        return CurrentUser(uid=payload.sub, email=payload.email, name=payload.name, roles=roles)
    return _inner
