# users_api/utils/responses.py
# 統一的 JSON 回應格式

from fastapi import status
from fastapi.responses import JSONResponse as _JSONResponse


class JSONResponse(_JSONResponse):
    """所有回應（含錯誤）都帶 charset=utf-8"""

    media_type = "application/json; charset=utf-8"


def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """錯誤回應只有一個 message 欄位"""
    return JSONResponse(
        status_code=status_code,
        content={"message": message},
        headers=headers,
    )


def not_found() -> JSONResponse:
    return error_response(status.HTTP_404_NOT_FOUND, "User not found")
