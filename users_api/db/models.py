from enum import Enum
from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    id: str
    username: str
    password: Optional[str] = None  # bcrypt hash，upsert 沒帶密碼時為 None


class UserFields(BaseModel):
    """驗證通過、準備寫入的欄位（password 仍是明碼）"""

    id: Optional[str] = None
    username: str
    password: Optional[str] = None


class ReplaceStatus(str, Enum):
    CREATED = "created"
    UPDATED = "updated"


class AuthResult(BaseModel):
    granted: bool
    user: Optional[User] = None
