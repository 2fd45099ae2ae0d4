from typing import Optional
from pydantic import BaseModel


class QuestionOut(BaseModel):
    id: str
    question_date: str
    text: str


class AnswerOut(BaseModel):
    id: str
    question_id: str
    user_id: str
    answer_text: str


class PageView(BaseModel):
    """今日の質問ページの表示状態"""

    state: str
    question: Optional[QuestionOut] = None
    mine: Optional[AnswerOut] = None
    partner_other: Optional[AnswerOut] = None
    draft_text: str = ""
    message: Optional[str] = None


class AnswerSubmit(BaseModel):
    # 空白のみの検証はリゾルバ側で行う (ValidationFailure)
    answer_text: Optional[str] = None


class DraftUpdate(BaseModel):
    text: str = ""
