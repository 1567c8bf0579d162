# users_api/routers/auth.py
# HTTP Basic 認證相依（FastAPI Depends）

import binascii
from base64 import b64decode
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from fastapi.security.utils import get_authorization_scheme_param

from users_api.db.controller import authenticate
from users_api.db.models import User
from users_api.db.repositories import UserRepository

UNAUTHORIZED_HEADERS = {"WWW-Authenticate": 'Basic realm="users"'}


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unauthorized",
        headers=UNAUTHORIZED_HEADERS,
    )


class UTF8HTTPBasic(HTTPBasic):
    """
    HTTPBasic 預設用 ASCII 解碼，非 ASCII 帳密會直接 401。
    這裡改用 UTF-8，解析失敗一律回 _unauthorized()。

    沒帶 Authorization 或 scheme 不是 Basic → None
    """

    async def __call__(self, request: Request) -> Optional[HTTPBasicCredentials]:
        authorization = request.headers.get("Authorization")
        scheme, param = get_authorization_scheme_param(authorization)
        if not authorization or scheme.lower() != "basic":
            return None

        try:
            data = b64decode(param, validate=True).decode("utf-8")
        except (ValueError, UnicodeDecodeError, binascii.Error):
            raise _unauthorized()

        username, separator, password = data.partition(":")
        if not separator:
            raise _unauthorized()
        return HTTPBasicCredentials(username=username, password=password)


security = UTF8HTTPBasic(auto_error=False)


# ------------------------------
# Middlewares / Helpers
# ------------------------------
def get_user_repo(request: Request) -> UserRepository:
    """取得 app 啟動時注入的 UserRepository"""
    return request.app.state.user_repo


def require_basic_auth(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    repo: UserRepository = Depends(get_user_repo),
) -> User:
    """
    必須帶正確的 Basic 帳密，失敗 → 401
    """
    if credentials is None:
        raise _unauthorized()

    result = authenticate(repo, credentials.username, credentials.password)
    if not result.granted:
        raise _unauthorized()
    return result.user


def optional_basic_auth(
    credentials: Optional[HTTPBasicCredentials] = Depends(security),
    repo: UserRepository = Depends(get_user_repo),
) -> Optional[User]:
    """
    沒帶帳密 → None（匿名）；有帶就必須正確，否則 401
    """
    if credentials is None:
        return None

    result = authenticate(repo, credentials.username, credentials.password)
    if not result.granted:
        raise _unauthorized()
    return result.user
