# users_api/services/id_service.py
# 使用者 id 產生 / 檢查

import re
import uuid
from typing import Any, Optional

USER_ID_LENGTH = 24
USER_ID_PATTERN = re.compile(r"[0-9a-fA-F]{24}")


def generate_user_id() -> str:
    """
    生成使用者 id。

    格式：24 位小寫十六進制字串（取 uuid4 前 96 bits）
    例如：9f1c2ab04e7d4c0f8a6b3d21

    Returns:
        新的使用者 id
    """
    return uuid.uuid4().hex[:USER_ID_LENGTH]


def accept_user_id(candidate: Any) -> Optional[str]:
    """
    檢查呼叫端自帶的 id，只看格式（剛好 24 位十六進制，大小寫皆可）。

    Returns:
        轉成小寫的 id；格式不符回傳 None
    """
    if not isinstance(candidate, str) or not USER_ID_PATTERN.fullmatch(candidate):
        return None
    return candidate.lower()
