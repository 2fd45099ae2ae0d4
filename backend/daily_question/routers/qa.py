"""今日の質問API"""
from datetime import date
from fastapi import APIRouter, Depends, HTTPException, Request

from daily_question.core.errors import ValidationFailure
from daily_question.core.rate_limit import limiter, ANSWER_RATE_LIMIT
from daily_question.schemas.qa import AnswerSubmit, DraftUpdate, PageView
from daily_question.services.page_session import BrowserSession
from daily_question.services.qa_resolver import DailyQAResolver
from daily_question.routers.deps import get_resolver, get_today, require_active_session

router = APIRouter(prefix="/api/qa", tags=["qa"])


@router.get("/today", response_model=PageView)
async def get_today_question(
    entry: BrowserSession = Depends(require_active_session),
    resolver: DailyQAResolver = Depends(get_resolver),
    today: date = Depends(get_today),
):
    """今日の質問と2人分の回答 (読み込み失敗は state=failed で返す)"""
    await entry.page.load(resolver, entry.gate.require_identity(), today)
    return entry.page.snapshot()


@router.get("/state", response_model=PageView)
async def get_page_state(entry: BrowserSession = Depends(require_active_session)):
    """再読み込みせずに現在の表示状態を返す"""
    return entry.page.snapshot()


@router.put("/draft", response_model=PageView)
async def update_draft(
    data: DraftUpdate,
    entry: BrowserSession = Depends(require_active_session),
):
    """回答の下書きを更新"""
    entry.page.set_draft(data.text)
    return entry.page.snapshot()


@router.post("/answer", response_model=PageView)
@limiter.limit(ANSWER_RATE_LIMIT)
async def submit_answer(
    request: Request,
    data: AnswerSubmit,
    entry: BrowserSession = Depends(require_active_session),
    resolver: DailyQAResolver = Depends(get_resolver),
):
    """自分の回答を保存 (同じ質問への再送信は上書き)"""
    page = entry.page
    saved = await page.submit(resolver, entry.gate.current_identity, data.answer_text)
    if saved is None:
        err = page.last_error
        if isinstance(err, ValidationFailure):
            raise HTTPException(status_code=422, detail=err.message)
        # 保存失敗 (WriteFailure)
        raise HTTPException(status_code=502, detail=err.message)
    return page.snapshot()
