import logging
import os
from typing import Any, Dict, Optional

import bcrypt
from dotenv import load_dotenv

from users_api.db.models import AuthResult, User
from users_api.db.repositories import UserRepository

load_dotenv()

logger = logging.getLogger("users_api.auth")

# 測試環境可以調低（bcrypt 最少 4）
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 12))


def hash_password(password: str) -> str:
    """雜湊密碼"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode("utf-8")


def verify_password(plain: str, stored: Optional[str]) -> bool:
    """
    密碼驗證。沒有存密碼的帳號一律不通過。
    """
    if not stored:
        return False

    try:
        return bcrypt.checkpw(plain.encode("utf-8"), stored.encode("utf-8"))
    except ValueError:
        # 存的不是合法的 bcrypt hash
        return False


def authenticate(repo: UserRepository, username: str, password: str) -> AuthResult:
    """
    用帳號密碼對 repository 驗證。

    username 不唯一：依建立順序逐一比對，第一個密碼相符的帳號通過。
    """
    for user in repo.find_by_username(username):
        if verify_password(password, user.password):
            return AuthResult(granted=True, user=user)

    logger.info("Authentication failed for username %r", username)
    return AuthResult(granted=False)


def get_user_info(user: User) -> Dict[str, Any]:
    """
    整理要回傳給前端的使用者資訊（不含密碼）。
    """
    return {
        "id": user.id,
        "username": user.username,
    }
