# server/api/auth.py

from pydantic import BaseModel
from fastapi import APIRouter, Cookie, Depends, Response
from api.deps import get_users, get_sessions
from core.errors import AuthError, NotFoundError, ValidationError
from core.security import SessionManager, get_password_hash, verify_password
from core.store import UserStore
from models.user import User


router = APIRouter(prefix="/api")


class SignupRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


def serialize_user(user: User) -> dict:
    return {
        "id": user.id,
        "username": user.username,
        "email": user.email,
        "created_at": user.created_at,
    }


def get_current_user(
    token: str | None = Cookie(default=None),
    sessions: SessionManager = Depends(get_sessions),
) -> str:
    """
    Resolves the `token` cookie to a user id or rejects the request with 401.
    """
    if not token:
        raise AuthError("No token provided.")
    user_id = sessions.verify(token)
    if user_id is None:
        raise AuthError("Invalid token.")
    return user_id


@router.post("/signup")
def signup(
    req: SignupRequest,
    response: Response,
    users: UserStore = Depends(get_users),
    sessions: SessionManager = Depends(get_sessions),
):
    if not req.username or not req.email or not req.password:
        raise ValidationError("All fields are required.")

    user = users.create_user(req.username, req.email, get_password_hash(req.password))
    sessions.set_cookie(response, sessions.issue(user.id))
    return {"user": serialize_user(user), "message": "User created successfully."}


@router.post("/login")
def login(
    req: LoginRequest,
    response: Response,
    users: UserStore = Depends(get_users),
    sessions: SessionManager = Depends(get_sessions),
):
    user = users.find_by_email(req.email) if req.email else None
    if not user or not req.password or not verify_password(req.password, user.password):
        raise AuthError("Invalid credentials.", status_code=400)

    sessions.set_cookie(response, sessions.issue(user.id))
    return {
        "user": {"id": user.id, "username": user.username, "email": user.email},
        "message": "Logged in successfully.",
    }


@router.get("/fetch-user")
def fetch_user(
    user_id: str = Depends(get_current_user),
    users: UserStore = Depends(get_users),
):
    user = users.find_by_id(user_id)
    if user is None:
        raise NotFoundError("User not found.", status_code=400)
    return {"user": serialize_user(user)}


@router.post("/logout")
def logout(response: Response, sessions: SessionManager = Depends(get_sessions)):
    sessions.clear_cookie(response)
    return {"message": "Logged out successfully."}
