# users_api/services/user_validator.py
# 使用者欄位驗證

from enum import Enum
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, Field

from users_api.db.models import UserFields
from users_api.services.id_service import accept_user_id

ID_KEYS = ("_id", "id")


class FieldErrorKind(str, Enum):
    MISSING_FIELD = "Missing field"
    INCORRECT_FIELD_TYPE = "Incorrect field type"


class FieldError(BaseModel):
    kind: FieldErrorKind
    field: str

    @property
    def message(self) -> str:
        # 回給前端的字串要一字不差，例如 "Missing field: username"
        return f"{self.kind.value}: {self.field}"


class UserCandidate(BaseModel):
    """
    待驗證的使用者資料。

    mode:
      - create : POST /users，password 必填，可自帶 _id
      - replace: PUT /users/{id}，以路徑上的 id 為準，body 的 _id 不看
    """

    mode: Literal["create", "replace"]
    body: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_json(cls, mode: str, payload: Any) -> "UserCandidate":
        # 不是 JSON object（陣列、字串...）一律當成沒有任何欄位
        return cls(mode=mode, body=payload if isinstance(payload, dict) else {})


class ValidationSuccess(BaseModel):
    ok: Literal[True] = True
    fields: UserFields


class ValidationFailure(BaseModel):
    ok: Literal[False] = False
    error: FieldError


ValidationResult = Union[ValidationSuccess, ValidationFailure]


def _missing(field: str) -> ValidationFailure:
    return ValidationFailure(error=FieldError(kind=FieldErrorKind.MISSING_FIELD, field=field))


def _incorrect_type(field: str) -> ValidationFailure:
    return ValidationFailure(error=FieldError(kind=FieldErrorKind.INCORRECT_FIELD_TYPE, field=field))


def validate(candidate: UserCandidate) -> ValidationResult:
    """
    驗證使用者資料，遇到第一個錯誤就回傳（順序有意義）。

    檢查順序：
    1. username 存在（空字串視為沒帶）
    2. username 是字串
    3. password 存在（僅 create）
    4. password 是字串（有帶才檢查）
    5. _id / id 格式（僅 create，有帶才檢查）

    Args:
        candidate: 待驗證資料

    Returns:
        ValidationSuccess（含要寫入的欄位）或 ValidationFailure（含單一錯誤）
    """
    body = candidate.body

    username = body.get("username")
    if "username" not in body or username == "":
        return _missing("username")
    if not isinstance(username, str):
        return _incorrect_type("username")

    password = body.get("password")
    if "password" not in body and candidate.mode == "create":
        return _missing("password")
    if "password" in body and not isinstance(password, str):
        return _incorrect_type("password")

    user_id: Optional[str] = None
    if candidate.mode == "create":
        for key in ID_KEYS:
            if key not in body:
                continue
            user_id = accept_user_id(body[key])
            if user_id is None:
                return _incorrect_type(key)
            break

    return ValidationSuccess(
        fields=UserFields(id=user_id, username=username, password=password)
    )
