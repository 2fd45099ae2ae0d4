from fastapi import APIRouter
from daily_question.core.database import check_db_connection
from daily_question.core.redis import check_redis_connection
from daily_question.services.page_session import page_sessions

router = APIRouter()


@router.get("/health")
@router.get("/api/health")
async def health_check():
    """ヘルスチェック (DB・Redis接続とプロセス内ページセッション数)"""
    db_ok = check_db_connection()
    redis_ok = await check_redis_connection()

    return {
        "status": "ok" if (db_ok and redis_ok) else "degraded",
        "db": "connected" if db_ok else "disconnected",
        "redis": "connected" if redis_ok else "disconnected",
        "page_sessions": len(page_sessions),
    }
