"""今日の質問の解決と、2人分の回答の振り分け

resolve_today: 質問 → 回答 の順に2回読み込み、回答を「自分」「相手」に振り分ける
submit_answer: (question_id, user_id) をキーにした冪等なupsert
"""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Optional, Union
from zoneinfo import ZoneInfo

from daily_question.core.config import settings
from daily_question.core.errors import LookupFailure, StoreError, ValidationFailure, WriteFailure
from daily_question.core.logging import get_logger, log_event
from daily_question.services.stores import AnswerRecord, AnswerStore, QuestionRecord, QuestionStore

logger = get_logger(__name__)

MSG_NO_QUESTION = "Für heute ist noch keine Frage hinterlegt."
MSG_QUESTION_LOOKUP_FAILED = "Fehler beim Laden der Frage: "
MSG_ANSWER_LOOKUP_FAILED = "Fehler beim Laden der Antworten: "
MSG_NOTHING_LOADED = "Kein User oder keine Frage geladen."
MSG_EMPTY_ANSWER = "Bitte gib eine Antwort ein."
MSG_WRITE_FAILED = "Fehler beim Speichern: "
MSG_INVALID_DATE = "Ungültiges Datum: "


class ResolutionStatus(str, Enum):
    NO_QUESTION = "no_question"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class ParticipantPair:
    """自分 (mine) と相手 (partner_other) の2スロット

    2人用アプリなので回答は最大2件の想定。相手側の回答が複数ある場合
    (データ不整合) は取得順で先頭のものを採用する。
    """

    mine: Optional[AnswerRecord] = None
    partner_other: Optional[AnswerRecord] = None

    @classmethod
    def from_answers(cls, identity: str, answers: list[AnswerRecord]) -> "ParticipantPair":
        mine = next((a for a in answers if a.user_id == identity), None)
        others = [a for a in answers if a.user_id != identity]
        if len(others) > 1:
            log_event(
                logger, logging.WARNING, "相手側の回答が複数存在します (先頭を採用)",
                question_id=others[0].question_id,
                answer_ids=[a.id for a in others],
            )
        return cls(mine=mine, partner_other=others[0] if others else None)

    def with_mine(self, answer: AnswerRecord) -> "ParticipantPair":
        """自分のスロットだけ差し替え (相手側は再解決するまで不変)"""
        return ParticipantPair(mine=answer, partner_other=self.partner_other)


@dataclass(frozen=True)
class Resolution:
    """1回の解決パスの結果"""

    status: ResolutionStatus
    question: Optional[QuestionRecord] = None
    participants: ParticipantPair = field(default_factory=ParticipantPair)
    message: Optional[str] = None

    @property
    def mine(self) -> Optional[AnswerRecord]:
        return self.participants.mine

    @property
    def partner_other(self) -> Optional[AnswerRecord]:
        return self.participants.partner_other

    @property
    def draft_text(self) -> str:
        """編集欄の初期値: 自分の回答があればその本文"""
        return self.mine.answer_text if self.mine else ""


def parse_today(value: Union[date, str]) -> date:
    """date または YYYY-MM-DD 文字列を date に変換"""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationFailure(f"{MSG_INVALID_DATE}{value}") from e


def today_for(timezone_name: Optional[str] = None, now: Optional[datetime] = None) -> date:
    """設定タイムゾーンでの今日の日付"""
    tz = ZoneInfo(timezone_name or settings.QUESTION_TIMEZONE)
    current = now.astimezone(tz) if now else datetime.now(tz)
    return current.date()


class DailyQAResolver:
    """今日の質問と回答を解決するコンポーネント

    ストアはコンストラクタで受け取る。状態は持たない (状態は QAPageSession 側)。
    """

    def __init__(self, question_store: QuestionStore, answer_store: AnswerStore):
        self.question_store = question_store
        self.answer_store = answer_store

    async def resolve_today(self, identity: str, today: Union[date, str]) -> Resolution:
        """
        今日の質問と2人分の回答を解決する

        Raises:
            LookupFailure: 質問または回答の読み込み失敗 (リトライしない)
            ValidationFailure: 日付形式が不正
        """
        if not identity:
            raise ValidationFailure(MSG_NOTHING_LOADED)
        question_date = parse_today(today)

        try:
            question = await self.question_store.find_by_date(question_date)
        except StoreError as e:
            raise LookupFailure(f"{MSG_QUESTION_LOOKUP_FAILED}{e}") from e

        if question is None:
            logger.info(f"今日の質問なし: date={question_date}")
            return Resolution(status=ResolutionStatus.NO_QUESTION, message=MSG_NO_QUESTION)

        try:
            answers = await self.answer_store.find_by_question(question.id)
        except StoreError as e:
            raise LookupFailure(f"{MSG_ANSWER_LOOKUP_FAILED}{e}") from e

        participants = ParticipantPair.from_answers(identity, answers)
        logger.debug(
            f"解決完了: question_id={question.id}, answers={len(answers)}, "
            f"mine={participants.mine is not None}, partner={participants.partner_other is not None}"
        )
        return Resolution(
            status=ResolutionStatus.RESOLVED,
            question=question,
            participants=participants,
        )

    async def submit_answer(
        self,
        identity: Optional[str],
        question: Optional[QuestionRecord],
        text: Optional[str],
    ) -> AnswerRecord:
        """
        自分の回答を作成または上書きする

        前後の空白を除いた本文を保存する。検証エラー時はストアを呼ばない。

        Raises:
            ValidationFailure: Identity/質問なし、または本文が空
            WriteFailure: upsert失敗
        """
        if not identity or question is None:
            raise ValidationFailure(MSG_NOTHING_LOADED)

        body = (text or "").strip()
        if not body:
            raise ValidationFailure(MSG_EMPTY_ANSWER)

        try:
            saved = await self.answer_store.upsert(question.id, identity, body)
        except StoreError as e:
            raise WriteFailure(f"{MSG_WRITE_FAILED}{e}") from e

        logger.info(f"回答保存: question_id={question.id}, answer_id={saved.id}")
        return saved
