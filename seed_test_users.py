import argparse
from typing import List, Optional

from redis import Redis

from users_api.db.controller import hash_password
from users_api.db.db import get_redis
from users_api.db.models import User
from users_api.db.repositories import DuplicateIdError, UserRepository
from users_api.services.id_service import generate_user_id


# =========================================================
# 測試帳號資料
# =========================================================
test_users = [
    {
        "username": "joe",
        "password": "abc123",
        "_id": "aaaaaaaaaaaaaaaaaaaaaaaa",
    },
    {
        "username": "fred",
        "password": "why123",
    },
    {
        "username": "george",
        "password": "whhhhhyyyy",
    },
]


def seed(repo: UserRepository, reset: bool = False) -> List[User]:
    """
    把測試帳號寫進 repository，回傳實際寫入的帳號。
    固定 id 的帳號如果已存在就跳過。
    """
    if reset:
        repo.clear()

    created: List[User] = []
    for u in test_users:
        user = User(
            id=u.get("_id") or generate_user_id(),
            username=u["username"],
            password=hash_password(u["password"]),
        )
        try:
            repo.insert(user)
        except DuplicateIdError:
            print(f"↷ Skip user: {user.username} (id={user.id} already exists)")
            continue

        created.append(user)
        print(f"✔ Seed user: {user.username} → Redis key: user:{user.id}")

    return created


def main(argv: Optional[List[str]] = None, redis_conn: Optional[Redis] = None) -> None:
    parser = argparse.ArgumentParser(description="Seed demo users into Redis")
    parser.add_argument("--reset", action="store_true", help="delete existing users first")
    args = parser.parse_args(argv)

    repo = UserRepository(redis_conn if redis_conn is not None else get_redis())

    print("🚀 開始寫入測試帳號到 Redis...\n")
    created = seed(repo, reset=args.reset)
    print(f"\n🎉 完成，共建立 {len(created)} 個帳號！")


if __name__ == "__main__":
    main()
