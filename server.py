import logging
import os
from datetime import datetime, timezone
from contextlib import asynccontextmanager
from typing import Optional

import redis
import uvicorn
from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException

from users_api.db.db import get_redis  # 這個是有 @lru_cache 的同步 redis client
from users_api.db.repositories import UserRepository
from users_api.routers import users
from users_api.utils.responses import JSONResponse, error_response

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    redis_conn = app.state.redis

    try:
        # 啟動時測試一下連線狀況（同步呼叫 OK，這邊還在啟動階段）
        try:
            redis_conn.ping()
            print("✅ Successfully connected to Redis.")
        except redis.RedisError as e:
            # 不讓整個服務直接掛掉，但把錯誤印出來
            print(f"⚠️ Failed to ping Redis on startup: {e}")

        # 把控制權交回給 FastAPI（開始處理請求）
        yield

    finally:
        print("🧹 Closing Redis connection.")
        try:
            redis_conn.close()
        except redis.RedisError as e:
            print(f"⚠️ Error while closing Redis: {e}")

        # 把 @lru_cache 的 cache 清掉，確保下次重啟不會殘留舊連線物件
        get_redis.cache_clear()


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTPException 一律轉成 {"message": ...}"""
    return error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))


def create_app(redis_conn: Optional[redis.Redis] = None) -> FastAPI:
    """
    建立 FastAPI app。

    redis_conn 沒給就用 get_redis()；測試時注入 fakeredis。
    """
    app = FastAPI(
        title="users-api",
        lifespan=lifespan,
        default_response_class=JSONResponse,
    )

    app.state.redis = redis_conn if redis_conn is not None else get_redis()
    app.state.user_repo = UserRepository(app.state.redis)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.include_router(users.router, prefix="/users", tags=["users"])

    @app.get("/health")
    def health_check():
        return JSONResponse(
            content={
                "success": True,
                "message": "Server is running",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "server:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3001")),
        reload=os.getenv("RELOAD", "0") == "1",
    )
