"""Auth routes: signup and login. Bearer JWT for the quiz routes."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from geoquiz.core.config import Settings, get_app_settings
from geoquiz.core.errors import Unauthorized
from geoquiz.core.security import decode_access_token
from geoquiz.db.session import get_db
from geoquiz.schemas.auth import CredentialsSchema, TokenOutSchema, UserOutSchema
from geoquiz.services import identity

router = APIRouter(prefix="/api/auth", tags=["auth"])
bearer = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    id: int
    username: str


def get_identity_store(db: Annotated[AsyncSession, Depends(get_db)]) -> identity.IdentityStore:
    return identity.IdentityStore(db)


def get_current_user(
    settings: Annotated[Settings, Depends(get_app_settings)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Access token required")
    claims = decode_access_token(credentials.credentials, settings)
    if not claims or claims.get("type") != "access":
        raise Unauthorized("Invalid or expired token")
    try:
        return CurrentUser(id=int(claims["sub"]), username=claims.get("username", ""))
    except (KeyError, ValueError) as exc:
        raise Unauthorized("Invalid or expired token") from exc


def get_owner_id(
    settings: Annotated[Settings, Depends(get_app_settings)],
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)],
) -> int | None:
    """Caller's account id; None in creator mode, where routes are open."""
    if not settings.requires_account:
        return None
    return get_current_user(settings, credentials).id


@router.post("/signup", response_model=TokenOutSchema, status_code=201)
async def signup(
    body: CredentialsSchema,
    store: Annotated[identity.IdentityStore, Depends(get_identity_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    """Create an account and return a session token."""
    user, token = await identity.signup(store, body.username, body.password, settings)
    return TokenOutSchema(token=token, user=UserOutSchema.model_validate(user))


@router.post("/login", response_model=TokenOutSchema)
async def login(
    body: CredentialsSchema,
    store: Annotated[identity.IdentityStore, Depends(get_identity_store)],
    settings: Annotated[Settings, Depends(get_app_settings)],
):
    user, token = await identity.login(store, body.username, body.password, settings)
    return TokenOutSchema(token=token, user=UserOutSchema.model_validate(user))
