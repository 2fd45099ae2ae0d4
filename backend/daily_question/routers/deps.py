"""共通依存関数: 認証・ページセッション・リゾルバ"""
from datetime import date
from typing import Optional
from fastapi import Request, HTTPException, Depends
from sqlalchemy.orm import Session

from daily_question.core.database import get_db
from daily_question.core.redis import get_redis
from daily_question.core.session import SESSION_COOKIE, get_session
from daily_question.models.user import User
from daily_question.services import auth_service
from daily_question.services.page_session import BrowserSession, page_sessions
from daily_question.services.qa_resolver import DailyQAResolver, today_for
from daily_question.services.stores import SqlAnswerStore, SqlQuestionStore

MSG_LOGIN_REQUIRED = "Bitte zuerst einloggen."


async def get_browser_session(
    request: Request,
    r=Depends(get_redis),
) -> Optional[BrowserSession]:
    """Cookie → Redis でIdentityを取得し、SessionGateに反映する。未ログインならNone"""
    session_id = request.cookies.get(SESSION_COOKIE)
    if not session_id:
        return None

    session_data = await get_session(r, session_id)
    if not session_data:
        # 期限切れ: プロセス内の状態も破棄
        page_sessions.discard(session_id)
        return None

    entry = page_sessions.get_or_create(session_id)
    entry.gate.set_identity(session_data.get("user_id") or None)
    return entry


async def require_browser_session(
    entry: Optional[BrowserSession] = Depends(get_browser_session),
) -> BrowserSession:
    """ログイン必須。未ログインなら401"""
    if entry is None or not entry.gate.is_authenticated:
        raise HTTPException(status_code=401, detail=MSG_LOGIN_REQUIRED)
    return entry


async def require_login(
    entry: BrowserSession = Depends(require_browser_session),
    db: Session = Depends(get_db),
) -> User:
    """ログイン中のユーザー (削除・無効化済みなら401)"""
    user = auth_service.get_user_by_id(db, entry.gate.current_identity)
    if user is None or not user.is_active:
        raise HTTPException(status_code=401, detail=MSG_LOGIN_REQUIRED)
    return user


async def require_active_session(
    entry: BrowserSession = Depends(require_browser_session),
    user: User = Depends(require_login),
) -> BrowserSession:
    """有効なユーザーのブラウザセッション (Q&A系ルート用)"""
    return entry


def get_resolver(db: Session = Depends(get_db)) -> DailyQAResolver:
    """リクエストのDBセッションに束縛したリゾルバ"""
    return DailyQAResolver(SqlQuestionStore(db), SqlAnswerStore(db))


def get_today() -> date:
    """設定タイムゾーンでの今日"""
    return today_for()
