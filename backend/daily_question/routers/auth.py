"""認証ルーター: 登録、ログイン、ログアウト"""
from fastapi import APIRouter, Depends, HTTPException, Response, Request
from sqlalchemy.orm import Session

from daily_question.core.database import get_db
from daily_question.core.redis import get_redis
from daily_question.core.session import SESSION_COOKIE, create_session, destroy_session
from daily_question.core.csrf import CSRF_HEADER, discard_csrf_token, generate_csrf_token
from daily_question.core.config import settings
from daily_question.core.logging import get_logger
from daily_question.core.rate_limit import limiter, LOGIN_RATE_LIMIT, REGISTER_RATE_LIMIT
from daily_question.models.user import User
from daily_question.schemas.auth import RegisterRequest, LoginRequest, AuthResponse, UserInfo
from daily_question.services import auth_service
from daily_question.services.page_session import page_sessions
from daily_question.routers.deps import require_login

logger = get_logger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


async def _start_session(request: Request, response: Response, r, user: User) -> str:
    """セッション作成 (固定化攻撃対策: 毎回新規) → Cookie/CSRFトークン設定"""
    old_session_id = request.cookies.get(SESSION_COOKIE)
    if old_session_id:
        await destroy_session(r, old_session_id)
        page_sessions.discard(old_session_id)

    session_id = await create_session(r, user.id, user.email)
    csrf_token = await generate_csrf_token(session_id)

    # SessionGateにサインインを通知
    page_sessions.get_or_create(session_id).gate.set_identity(user.id)

    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_id,
        httponly=True,
        secure=not settings.DEBUG,  # 本番(DEBUG=False)ではTrue
        samesite="lax",
        max_age=settings.SESSION_TIMEOUT_MINUTES * 60,
    )
    response.headers[CSRF_HEADER] = csrf_token
    return csrf_token


@router.post("/register", response_model=AuthResponse)
@limiter.limit(REGISTER_RATE_LIMIT)
async def register(
    request: Request,
    req: RegisterRequest,
    db: Session = Depends(get_db),
):
    """会員登録"""
    if auth_service.get_user_by_email(db, req.email):
        raise HTTPException(status_code=400, detail="Diese E-Mail-Adresse ist bereits registriert.")

    user = auth_service.create_user(db=db, email=req.email, password=req.password)
    return AuthResponse(message="Konto erstellt. Du kannst dich jetzt einloggen.", user_id=user.id)


@router.post("/login", response_model=AuthResponse)
@limiter.limit(LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    req: LoginRequest,
    response: Response,
    db: Session = Depends(get_db),
    r=Depends(get_redis),
):
    """ログイン"""
    user = auth_service.authenticate(db, req.email, req.password)
    if user is None:
        raise HTTPException(status_code=401, detail="E-Mail oder Passwort ist falsch.")

    if not user.is_active:
        raise HTTPException(status_code=403, detail="Dieses Konto ist deaktiviert.")

    csrf_token = await _start_session(request, response, r, user)
    logger.info(f"ログイン: user_id={user.id}")
    return AuthResponse(message="Login erfolgreich.", user_id=user.id, csrf_token=csrf_token)


@router.post("/logout")
async def logout(request: Request, response: Response, r=Depends(get_redis)):
    """ログアウト (サーバーセッション・ページ状態を破棄)"""
    session_id = request.cookies.get(SESSION_COOKIE)
    if session_id:
        await destroy_session(r, session_id)
        await discard_csrf_token(session_id)
        page_sessions.discard(session_id)
    response.delete_cookie(SESSION_COOKIE)
    return {"message": "Abgemeldet."}


@router.get("/me", response_model=UserInfo)
async def get_me(user: User = Depends(require_login)):
    """現在のログインユーザー情報"""
    return UserInfo.model_validate(user)
