# users_api/routers/users.py
# 使用者帳號路由

import json
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool

from users_api.db.controller import get_user_info, hash_password
from users_api.db.models import User
from users_api.db.repositories import DuplicateIdError, UserNotFoundError, UserRepository
from users_api.routers.auth import get_user_repo, optional_basic_auth, require_basic_auth
from users_api.services.id_service import accept_user_id, generate_user_id
from users_api.services.user_validator import (
    FieldError,
    FieldErrorKind,
    UserCandidate,
    ValidationFailure,
    validate,
)
from users_api.utils.responses import JSONResponse, error_response, not_found

logger = logging.getLogger("users_api.routers.users")

router = APIRouter()


async def _read_json(request: Request) -> Any:
    """讀 request body；空 body 當成 {}，不是合法 JSON → 400"""
    raw = await request.body()
    if not raw.strip():
        return {}

    try:
        return json.loads(raw)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Malformed JSON body",
        )


# ─────────────────────────────────────────────────────────
# 列出使用者
# ─────────────────────────────────────────────────────────
@router.get("")
def list_users(
    caller: User = Depends(require_basic_auth),
    repo: UserRepository = Depends(get_user_repo),
):
    """
    列出所有使用者（依建立順序，不分頁）。

    權限：需 Basic 認證
    """
    return JSONResponse(content=[get_user_info(u) for u in repo.list()])


# ─────────────────────────────────────────────────────────
# 新增使用者
# ─────────────────────────────────────────────────────────
@router.post("")
async def create_user(
    request: Request,
    repo: UserRepository = Depends(get_user_repo),
):
    """
    新增使用者。沒帶 _id 由 server 產生。

    權限：不需認證
    """
    payload = await _read_json(request)
    result = validate(UserCandidate.from_json("create", payload))
    if isinstance(result, ValidationFailure):
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, result.error.message)

    fields = result.fields
    user = User(
        id=fields.id or generate_user_id(),
        username=fields.username,
        password=await run_in_threadpool(hash_password, fields.password),
    )

    try:
        await run_in_threadpool(repo.insert, user)
    except DuplicateIdError as e:
        logger.warning("Create rejected: %s %s", e.code, e.details)
        return error_response(status.HTTP_409_CONFLICT, e.message)

    location = request.app.url_path_for("get_user", user_id=user.id)
    return JSONResponse(
        status_code=status.HTTP_201_CREATED,
        content=get_user_info(user),
        headers={"Location": str(location)},
    )


# ─────────────────────────────────────────────────────────
# 取得單一使用者
# ─────────────────────────────────────────────────────────
@router.get("/{user_id}")
def get_user(
    user_id: str,
    caller: Optional[User] = Depends(optional_basic_auth),
    repo: UserRepository = Depends(get_user_repo),
):
    """
    取得單一使用者。

    權限：可匿名；有帶 Basic 帳密就必須正確
    """
    accepted_id = accept_user_id(user_id)
    user = repo.get_by_id(accepted_id) if accepted_id else None
    if not user:
        return not_found()

    return JSONResponse(content=get_user_info(user))


# ─────────────────────────────────────────────────────────
# 取代 / 建立使用者（upsert）
# ─────────────────────────────────────────────────────────
@router.put("/{user_id}")
async def replace_user(
    user_id: str,
    request: Request,
    repo: UserRepository = Depends(get_user_repo),
):
    """
    整筆取代使用者；id 不存在時直接用這個 id 建立。
    建立或更新都回 200。

    權限：不需認證
    """
    payload = await _read_json(request)
    result = validate(UserCandidate.from_json("replace", payload))
    if isinstance(result, ValidationFailure):
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, result.error.message)

    accepted_id = accept_user_id(user_id)
    if accepted_id is None:
        error = FieldError(kind=FieldErrorKind.INCORRECT_FIELD_TYPE, field="id")
        return error_response(status.HTTP_422_UNPROCESSABLE_ENTITY, error.message)

    fields = result.fields
    password = None
    if fields.password is not None:
        password = await run_in_threadpool(hash_password, fields.password)
    user, replace_status = await run_in_threadpool(
        repo.replace_by_id, accepted_id, fields.username, password
    )
    logger.debug("PUT /users/%s -> %s", accepted_id, replace_status.value)

    return JSONResponse(content=get_user_info(user))


# ─────────────────────────────────────────────────────────
# 刪除使用者
# ─────────────────────────────────────────────────────────
@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    caller: User = Depends(require_basic_auth),
    repo: UserRepository = Depends(get_user_repo),
):
    """
    刪除使用者，回傳被刪掉的資料。

    權限：需 Basic 認證
    """
    accepted_id = accept_user_id(user_id)
    if accepted_id is None:
        return not_found()

    try:
        user = repo.delete_by_id(accepted_id)
    except UserNotFoundError:
        return not_found()

    logger.info("User %s deleted by %s", user.id, caller.id)
    return JSONResponse(content=get_user_info(user))
