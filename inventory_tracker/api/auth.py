from fastapi import APIRouter, Cookie, Depends, HTTPException, Response
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from inventory_tracker.config import settings
from inventory_tracker.database import get_db
from inventory_tracker.errors import PermissionDeniedError
from inventory_tracker.models.user import User
from inventory_tracker.schemas.common import CAMEL_CONFIG
from inventory_tracker.services import auth_service

router = APIRouter(prefix="/auth", tags=["Auth"])

bearer_scheme = HTTPBearer(auto_error=False)


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=6)


class RefreshRequest(BaseModel):
    refresh_token: str

    model_config = CAMEL_CONFIG


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: str
    active: bool = True

    model_config = CAMEL_CONFIG


class TokenOut(BaseModel):
    access_token: str
    refresh_token: str
    user: UserOut

    model_config = CAMEL_CONFIG


def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    token: str | None = Cookie(default=None, alias="token"),
    db: Session = Depends(get_db),
) -> User:
    """Dependency: resolve the user from a Bearer header, falling back to the cookie."""
    raw = credentials.credentials if credentials else token
    if not raw:
        raise HTTPException(401, "Not authenticated")
    payload = auth_service.decode_token(raw)
    if not payload:
        raise HTTPException(401, "Invalid or expired token")
    user = auth_service.get_user_by_id(db, payload["sub"])
    if not user or not user.active:
        raise HTTPException(401, "User not found or disabled")
    return user


def require_inventory_writer(user: User = Depends(get_current_user)) -> User:
    """Dependency: only roles allowed to mutate inventory pass."""
    if not user.can_edit_inventory:
        raise PermissionDeniedError("Not allowed to modify inventory")
    return user


def _issue_tokens(user: User, response: Response) -> TokenOut:
    access = auth_service.create_access_token(user)
    response.set_cookie(
        "token", access, httponly=True, samesite="lax", max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
    return TokenOut(
        access_token=access,
        refresh_token=auth_service.create_refresh_token(user),
        user=UserOut.model_validate(user),
    )


@router.post("/signup", response_model=TokenOut, status_code=201)
def signup(data: SignupRequest, response: Response, db: Session = Depends(get_db)):
    user = auth_service.create_user(db, data.name, data.email, data.password)
    return _issue_tokens(user, response)


@router.post("/login", response_model=TokenOut)
def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    user = auth_service.authenticate(db, data.email, data.password)
    if not user:
        raise HTTPException(401, "Invalid email or password")
    return _issue_tokens(user, response)


@router.post("/refresh")
def refresh(data: RefreshRequest, response: Response, db: Session = Depends(get_db)):
    payload = auth_service.decode_token(data.refresh_token, auth_service.REFRESH)
    if not payload:
        raise HTTPException(401, "Invalid or expired refresh token")
    user = auth_service.get_user_by_id(db, payload["sub"])
    if not user or not user.active:
        raise HTTPException(401, "User not found or disabled")
    access = auth_service.create_access_token(user)
    response.set_cookie(
        "token", access, httponly=True, samesite="lax", max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    )
    return {"accessToken": access}


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie("token")
    return {"ok": True}


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(get_current_user)):
    return user
