# server/core/security.py

from datetime import datetime, timedelta, timezone
from fastapi import Response
from jose import JWTError, jwt
from passlib.context import CryptContext


COOKIE_NAME = "token"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


class SessionManager:
    """
    Issues and verifies the signed session token carried in the `token` cookie.
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256",
                 expires_in: timedelta = timedelta(days=7), secure: bool = False):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expires_in = expires_in
        self.secure = secure

    def issue(self, user_id: str) -> str:
        expire = datetime.now(timezone.utc) + self.expires_in
        to_encode = {"id": user_id, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> str | None:
        """
        Returns the user id carried by `token`, or None when the token is
        malformed, tampered with, expired or has no id.
        """
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except JWTError:
            return None
        user_id = payload.get("id")
        if not isinstance(user_id, str) or not user_id:
            return None
        return user_id

    def set_cookie(self, response: Response, token: str):
        response.set_cookie(
            key=COOKIE_NAME,
            value=token,
            max_age=int(self.expires_in.total_seconds()),
            httponly=True,
            secure=self.secure,
            samesite="strict",
        )

    def clear_cookie(self, response: Response):
        response.delete_cookie(
            key=COOKIE_NAME,
            httponly=True,
            secure=self.secure,
            samesite="strict",
        )
