"""質問・回答ストア

リゾルバはこのモジュールのポート (QuestionStore / AnswerStore) だけに依存する。
SQLAlchemy実装はリクエストごとのDBセッションに束縛して使う。
"""
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from daily_question.core.errors import StoreError
from daily_question.core.logging import get_logger
from daily_question.models.answer import Answer
from daily_question.models.question import Question

logger = get_logger(__name__)


@dataclass(frozen=True)
class QuestionRecord:
    id: str
    question_date: date
    text: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question_date": self.question_date.isoformat(),
            "text": self.text,
        }


@dataclass(frozen=True)
class AnswerRecord:
    id: str
    question_id: str
    user_id: str
    answer_text: str

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "question_id": self.question_id,
            "user_id": self.user_id,
            "answer_text": self.answer_text,
        }


class QuestionStore(ABC):
    """質問ストア (読み取り専用)"""

    @abstractmethod
    async def find_by_date(self, question_date: date) -> Optional[QuestionRecord]:
        """指定日の質問。なければNone"""


class AnswerStore(ABC):
    """回答ストア。(question_id, user_id) で一意"""

    @abstractmethod
    async def find_by_question(self, question_id: str) -> list[AnswerRecord]:
        """質問に対する全回答 (取得順は安定)"""

    @abstractmethod
    async def upsert(self, question_id: str, user_id: str, answer_text: str) -> AnswerRecord:
        """(question_id, user_id) をキーに作成または上書きし、保存後の行を返す"""


def _question_record(row: Question) -> QuestionRecord:
    return QuestionRecord(id=row.id, question_date=row.question_date, text=row.text)


def _answer_record(row: Answer) -> AnswerRecord:
    return AnswerRecord(
        id=row.id,
        question_id=row.question_id,
        user_id=row.user_id,
        answer_text=row.answer_text,
    )


class SqlQuestionStore(QuestionStore):
    def __init__(self, db: Session):
        self.db = db

    async def find_by_date(self, question_date: date) -> Optional[QuestionRecord]:
        try:
            row = self.db.query(Question).filter(Question.question_date == question_date).first()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"質問取得エラー: date={question_date}, error={e}")
            raise StoreError(str(e)) from e
        return _question_record(row) if row else None


def _upsert_statement(dialect_name: str, values: dict):
    """方言ごとの INSERT ... ON CONFLICT/ON DUPLICATE KEY UPDATE"""
    if dialect_name == "mysql":
        stmt = mysql.insert(Answer).values(**values)
        return stmt.on_duplicate_key_update(
            answer_text=stmt.inserted.answer_text,
            updated_at=func.now(),
        )

    if dialect_name == "postgresql":
        stmt = postgresql.insert(Answer).values(**values)
    elif dialect_name == "sqlite":
        stmt = sqlite.insert(Answer).values(**values)
    else:
        raise StoreError(f"upsert未対応のDB方言です: {dialect_name}")

    return stmt.on_conflict_do_update(
        index_elements=["question_id", "user_id"],
        set_={"answer_text": stmt.excluded.answer_text, "updated_at": func.now()},
    )


class SqlAnswerStore(AnswerStore):
    def __init__(self, db: Session):
        self.db = db

    async def find_by_question(self, question_id: str) -> list[AnswerRecord]:
        try:
            rows = (
                self.db.query(Answer)
                .filter(Answer.question_id == question_id)
                .order_by(Answer.created_at.asc(), Answer.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"回答取得エラー: question_id={question_id}, error={e}")
            raise StoreError(str(e)) from e
        return [_answer_record(r) for r in rows]

    async def upsert(self, question_id: str, user_id: str, answer_text: str) -> AnswerRecord:
        values = {
            "id": str(uuid.uuid4()),
            "question_id": question_id,
            "user_id": user_id,
            "answer_text": answer_text,
        }
        try:
            stmt = _upsert_statement(self.db.get_bind().dialect.name, values)
            self.db.execute(stmt)
            self.db.commit()
            # 既存行の場合は元のidが残るため読み直す
            row = (
                self.db.query(Answer)
                .filter(Answer.question_id == question_id, Answer.user_id == user_id)
                .populate_existing()
                .one()
            )
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"回答保存エラー: question_id={question_id}, user_id={user_id}, error={e}")
            raise StoreError(str(e)) from e
        return _answer_record(row)
