from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from deps.auth import CurrentUser
from deps.services import get_credential_store, get_token_service
from schemas.auth import AuthResponse, LoginRequest, MeResponse, RegisterRequest
from services.credentials import CredentialStore
from services.tokens import TokenService

router = APIRouter(prefix="/auth", tags=["auth"])

Store = Annotated[CredentialStore, Depends(get_credential_store)]
Tokens = Annotated[TokenService, Depends(get_token_service)]


def _auth_response(user, tokens: TokenService) -> AuthResponse:
    return AuthResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        email_verified=user.email_verified,
        token=tokens.issue(user.id, user.role),
    )


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(req: RegisterRequest, store: Store, tokens: Tokens):
    user = store.register(req.name, req.email, req.password)
    return _auth_response(user, tokens)


@router.post("/login", response_model=AuthResponse)
def login(req: LoginRequest, store: Store, tokens: Tokens):
    user = store.authenticate(req.email, req.password)
    return _auth_response(user, tokens)


@router.get("/me", response_model=MeResponse)
def me(principal: CurrentUser, store: Store):
    return MeResponse.model_validate(store.get_by_id(principal.id))
