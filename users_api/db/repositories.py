# users_api/db/repositories.py
# 使用者資料存取層（Redis）

import logging
from typing import Any, Dict, List, Optional, Tuple

import redis

from users_api.db.models import ReplaceStatus, User

logger = logging.getLogger("users_api.repository")

ORDER_KEY = "users"
SEQ_KEY = "users:seq"


class UserStoreError(Exception):
    """資料層錯誤基礎類別"""

    def __init__(self, code: str, message: str, details: Optional[dict] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


class DuplicateIdError(UserStoreError):
    """id 已存在"""

    def __init__(self, user_id: str):
        super().__init__(
            code="DUPLICATE_ID",
            message=f"Duplicate id: {user_id}",
            details={"id": user_id},
        )


class UserNotFoundError(UserStoreError):
    """找不到使用者"""

    def __init__(self, user_id: str):
        super().__init__(
            code="USER_NOT_FOUND",
            message="User not found",
            details={"id": user_id},
        )


class UserRepository:
    """
    與 Redis 互動的 User 資料存取層。

    Redis 結構：
      - user:{id}                 => Hash(id, username, password, seq)
      - users                     => Sorted Set(id, score=seq)，保留新增順序
      - users:seq                 => 遞增序號
      - user:username:{username}  => Sorted Set(id, score=seq)，username 索引

    username 不要求唯一，同名帳號依 seq 排序（先建立者在前）。
    每個寫入都用 WATCH/MULTI/EXEC 包住 user:{id}，同一筆資料的並發寫入不會交錯。
    """

    def __init__(self, redis_conn: redis.Redis):
        self._redis = redis_conn

    # Key helpers
    def _key_by_id(self, user_id: str) -> str:
        return f"user:{user_id}"

    def _index_by_username(self, username: str) -> str:
        return f"user:username:{username}"

    @staticmethod
    def _dump(user: User, seq: int) -> Dict[str, Any]:
        # Redis Hash 不能存 None，沒有密碼就存空字串
        return {
            "id": user.id,
            "username": user.username,
            "password": user.password or "",
            "seq": seq,
        }

    @staticmethod
    def _load(data: Dict[str, Any]) -> User:
        return User(
            id=data["id"],
            username=data["username"],
            password=data.get("password") or None,
        )

    # ------------------------------------------------------------------
    # 讀取
    # ------------------------------------------------------------------
    def get_by_id(self, user_id: str) -> Optional[User]:
        data: Dict[str, Any] = self._redis.hgetall(self._key_by_id(user_id))
        if not data:
            return None
        return self._load(data)

    def _get_many(self, user_ids: List[str]) -> List[User]:
        if not user_ids:
            return []

        pipe = self._redis.pipeline(transaction=False)
        for user_id in user_ids:
            pipe.hgetall(self._key_by_id(user_id))

        # 讀取期間被刪掉的會是空 dict，直接略過
        return [self._load(data) for data in pipe.execute() if data]

    def find_by_username(self, username: str) -> List[User]:
        """依 username 找出所有同名帳號，依新增順序排列。"""
        user_ids = self._redis.zrange(self._index_by_username(username), 0, -1)
        return self._get_many(user_ids)

    def get_by_username(self, username: str) -> Optional[User]:
        users = self.find_by_username(username)
        return users[0] if users else None

    def list(self) -> List[User]:
        user_ids = self._redis.zrange(ORDER_KEY, 0, -1)
        return self._get_many(user_ids)

    # ------------------------------------------------------------------
    # 寫入
    # ------------------------------------------------------------------
    def insert(self, user: User) -> User:
        """
        新增使用者。

        Raises:
            DuplicateIdError: id 已存在
        """
        key = self._key_by_id(user.id)

        def _insert(pipe: redis.client.Pipeline) -> None:
            if pipe.exists(key):
                raise DuplicateIdError(user.id)
            seq = pipe.incr(SEQ_KEY)

            pipe.multi()
            pipe.hset(key, mapping=self._dump(user, seq))
            pipe.zadd(ORDER_KEY, {user.id: seq})
            pipe.zadd(self._index_by_username(user.username), {user.id: seq})

        self._redis.transaction(_insert, key)
        logger.info("Inserted user %s (%s)", user.id, user.username)
        return user

    def replace_by_id(
        self,
        user_id: str,
        username: str,
        password: Optional[str] = None,
    ) -> Tuple[User, ReplaceStatus]:
        """
        整筆取代（upsert）。

        存在 => 覆寫所有可變欄位，保留原本的排序位置，回傳 UPDATED
        不存在 => 用這個 id 建立新資料，回傳 CREATED
        """
        key = self._key_by_id(user_id)
        user = User(id=user_id, username=username, password=password)

        def _replace(pipe: redis.client.Pipeline) -> ReplaceStatus:
            current: Dict[str, Any] = pipe.hgetall(key)
            if current:
                seq = int(current["seq"])
                status = ReplaceStatus.UPDATED
            else:
                seq = pipe.incr(SEQ_KEY)
                status = ReplaceStatus.CREATED

            pipe.multi()
            if current and current["username"] != username:
                pipe.zrem(self._index_by_username(current["username"]), user_id)
            pipe.hset(key, mapping=self._dump(user, seq))
            pipe.zadd(ORDER_KEY, {user_id: seq})
            pipe.zadd(self._index_by_username(username), {user_id: seq})
            return status

        status = self._redis.transaction(_replace, key, value_from_callable=True)
        logger.info("Replaced user %s (%s)", user_id, status.value)
        return user, status

    def delete_by_id(self, user_id: str) -> User:
        """
        刪除使用者並回傳被刪掉的資料。

        Raises:
            UserNotFoundError: 找不到該 id
        """
        key = self._key_by_id(user_id)

        def _delete(pipe: redis.client.Pipeline) -> User:
            data: Dict[str, Any] = pipe.hgetall(key)
            if not data:
                raise UserNotFoundError(user_id)

            pipe.multi()
            pipe.delete(key)
            pipe.zrem(ORDER_KEY, user_id)
            pipe.zrem(self._index_by_username(data["username"]), user_id)
            return self._load(data)

        user = self._redis.transaction(_delete, key, value_from_callable=True)
        logger.info("Deleted user %s", user_id)
        return user

    def clear(self) -> None:
        """清掉所有使用者相關的 key（測試 / seed --reset 用）。"""
        keys = list(self._redis.scan_iter(match="user:*"))
        keys += [ORDER_KEY, SEQ_KEY]
        self._redis.delete(*keys)
        logger.info("Cleared %d user keys", len(keys))
