"""サイト情報API (認証不要)"""
from fastapi import APIRouter

from daily_question.core.config import settings
from daily_question.services.qa_resolver import today_for

router = APIRouter(prefix="/api/pages", tags=["pages"])


@router.get("")
async def get_site_info():
    """サイト名と、サーバーが「今日」とみなす日付"""
    return {
        "site_name": settings.SITE_NAME,
        "description": "Frage des Tages für uns zwei.",
        "today": today_for().isoformat(),
        "timezone": settings.QUESTION_TIMEZONE,
    }
