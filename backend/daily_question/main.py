from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from daily_question.core.config import settings
from daily_question.core.logging import setup_logging, get_logger
from daily_question.core.csrf import CSRF_HEADER, CSRFMiddleware
from daily_question.core.security_headers import SecurityHeadersMiddleware
from daily_question.core.rate_limit import limiter, rate_limit_exceeded_handler
from daily_question.routers import health, auth, qa, pages

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションライフサイクル管理"""
    setup_logging(debug=settings.DEBUG)
    logger.info(f"アプリケーション起動: env={settings.ENV}, timezone={settings.QUESTION_TIMEZONE}")
    yield
    logger.info("アプリケーション終了")


app = FastAPI(
    title=settings.SITE_NAME,
    lifespan=lifespan,
    docs_url="/api/docs" if settings.DEBUG else None,
    redoc_url="/api/redoc" if settings.DEBUG else None,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# --- バリデーションエラーのドイツ語化 ---
_FIELD_DE = {
    "email": "E-Mail",
    "password": "Passwort",
    "answer_text": "Antwort",
    "text": "Text",
}


def _translate_error(err: dict) -> str:
    t = err.get("type", "")
    ctx = err.get("ctx", {})
    loc = err.get("loc", [])
    field = str(loc[-1]) if loc else ""
    fd = _FIELD_DE.get(field, field)

    if "email" in t or ("value" in t and "email" in err.get("msg", "").lower()):
        return f"{fd}: bitte eine gültige E-Mail-Adresse eingeben"
    if t == "string_too_short":
        return f"{fd}: mindestens {ctx.get('min_length', '')} Zeichen"
    if t == "string_too_long":
        return f"{fd}: höchstens {ctx.get('max_length', '')} Zeichen"
    if t == "missing":
        return f"{fd} fehlt"
    if t == "string_type":
        return f"{fd} muss Text sein"
    return f"{fd}: ungültige Eingabe"


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    messages = [_translate_error(e) for e in exc.errors()]
    return JSONResponse(status_code=422, content={"detail": ", ".join(messages)})


# ミドルウェア (後に登録したものが先に実行される)
app.add_middleware(SecurityHeadersMiddleware, enable_hsts=not settings.DEBUG)
app.add_middleware(CSRFMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=[CSRF_HEADER],
)

app.include_router(health.router)
app.include_router(pages.router)
app.include_router(auth.router)
app.include_router(qa.router)
