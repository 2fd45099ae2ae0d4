import secrets
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from daily_question.core import redis as redis_module
from daily_question.core.session import SESSION_COOKIE

CSRF_PREFIX = "csrf:"
CSRF_HEADER = "X-CSRF-Token"
CSRF_TTL = 3600 * 24  # 24時間

# セッション確立前に呼ばれるため検証を免除
CSRF_EXEMPT_PATHS = {
    "/api/auth/login",
    "/api/auth/register",
}

CSRF_METHODS = {"POST", "PUT", "DELETE", "PATCH"}


async def generate_csrf_token(session_id: str) -> str:
    """CSRFトークンを生成してRedisに保存"""
    token = secrets.token_hex(32)
    r = await redis_module.get_redis()
    await r.set(f"{CSRF_PREFIX}{session_id}", token, ex=CSRF_TTL)
    return token


async def validate_csrf_token(session_id: str, token: str) -> bool:
    """CSRFトークンを検証"""
    if not session_id or not token:
        return False
    r = await redis_module.get_redis()
    stored = await r.get(f"{CSRF_PREFIX}{session_id}")
    return stored is not None and secrets.compare_digest(stored, token)


async def discard_csrf_token(session_id: str) -> None:
    """ログアウト時にトークンを削除"""
    r = await redis_module.get_redis()
    await r.delete(f"{CSRF_PREFIX}{session_id}")


def _forbidden() -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": "CSRF-Token ist ungültig."})


class CSRFMiddleware(BaseHTTPMiddleware):
    """CSRF保護ミドルウェア

    ミドルウェア内でHTTPExceptionを送出すると500になるため、直接403を返す。
    """

    async def dispatch(self, request: Request, call_next):
        if request.method not in CSRF_METHODS:
            return await call_next(request)

        if request.url.path in CSRF_EXEMPT_PATHS:
            return await call_next(request)

        session_id = request.cookies.get(SESSION_COOKIE)
        if not session_id:
            return _forbidden()

        csrf_token = request.headers.get(CSRF_HEADER, "")
        if not await validate_csrf_token(session_id, csrf_token):
            return _forbidden()

        return await call_next(request)
