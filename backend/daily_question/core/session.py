"""Redisサーバーセッション (Cookie: session_id)

セッションハッシュには認証済みのIdentity (users.id) とメールアドレスのみを保持する。
"""
import secrets
import time
from typing import Optional
import redis.asyncio as aioredis
from daily_question.core.config import settings

SESSION_PREFIX = "session:"
SESSION_COOKIE = "session_id"
SESSION_TTL = settings.SESSION_TIMEOUT_MINUTES * 60  # 秒


async def create_session(r: aioredis.Redis, user_id: str, email: str) -> str:
    """新しいセッションを作成し、session_idを返す"""
    session_id = secrets.token_hex(32)
    key = f"{SESSION_PREFIX}{session_id}"
    now = str(int(time.time()))
    await r.hset(key, mapping={
        "user_id": user_id,
        "email": email,
        "created_at": now,
        "last_accessed": now,
    })
    await r.expire(key, SESSION_TTL)
    return session_id


async def get_session(r: aioredis.Redis, session_id: Optional[str]) -> Optional[dict]:
    """セッション情報を取得。アクセスごとにTTL更新"""
    if not session_id:
        return None
    key = f"{SESSION_PREFIX}{session_id}"
    data = await r.hgetall(key)
    if not data:
        return None
    # アイドルタイムアウトをリセット
    await r.expire(key, SESSION_TTL)
    await r.hset(key, "last_accessed", str(int(time.time())))
    return data


async def destroy_session(r: aioredis.Redis, session_id: Optional[str]) -> None:
    """セッションを破棄"""
    if session_id:
        await r.delete(f"{SESSION_PREFIX}{session_id}")
