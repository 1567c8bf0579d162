from functools import lru_cache
import redis
import os
from dotenv import load_dotenv

load_dotenv()

# 連線設定一律從環境變數讀
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", 6379))
REDIS_DB = int(os.getenv("REDIS_DB", 0))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD") or None


@lru_cache
def get_redis() -> redis.Redis:
    """
    回傳預設的 Redis client（只給 server 啟動 / seed 腳本使用）。
    lru_cache 確保整個程式生命週期只建立一次連線實例。

    Repository 不會自己呼叫這個函式，client 一律由外部注入。
    """
    return redis.Redis(
        host=REDIS_HOST,
        port=REDIS_PORT,
        db=REDIS_DB,
        password=REDIS_PASSWORD,
        decode_responses=True,  # 自動把 bytes 轉成 str
    )
