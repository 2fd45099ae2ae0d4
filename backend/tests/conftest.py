"""
Pytest configuration and fixtures
"""
import os
import uuid
from datetime import date
from typing import Optional

# アプリのimport前にテスト用設定を入れる
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("QUESTION_TIMEZONE", "UTC")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from daily_question.core.database import Base
from daily_question.core.errors import StoreError
from daily_question.services.stores import AnswerRecord, AnswerStore, QuestionRecord, QuestionStore
import daily_question.models  # noqa: F401


class InMemoryQuestionStore(QuestionStore):
    """date → QuestionRecord"""

    def __init__(self, questions: Optional[list[QuestionRecord]] = None, fail: bool = False):
        self.questions = {q.question_date: q for q in (questions or [])}
        self.fail = fail
        self.calls = 0

    async def find_by_date(self, question_date: date) -> Optional[QuestionRecord]:
        self.calls += 1
        if self.fail:
            raise StoreError("connection refused")
        return self.questions.get(question_date)


class InMemoryAnswerStore(AnswerStore):
    """(question_id, user_id) で一意な回答リスト (挿入順を保持)"""

    def __init__(self, answers: Optional[list[AnswerRecord]] = None):
        self.rows: list[AnswerRecord] = list(answers or [])
        self.fail_reads = False
        self.fail_writes = False
        self.reads = 0
        self.writes = 0

    async def find_by_question(self, question_id: str) -> list[AnswerRecord]:
        self.reads += 1
        if self.fail_reads:
            raise StoreError("timeout")
        return [a for a in self.rows if a.question_id == question_id]

    async def upsert(self, question_id: str, user_id: str, answer_text: str) -> AnswerRecord:
        self.writes += 1
        if self.fail_writes:
            raise StoreError("duplicate key")
        for i, row in enumerate(self.rows):
            if row.question_id == question_id and row.user_id == user_id:
                updated = AnswerRecord(row.id, question_id, user_id, answer_text)
                self.rows[i] = updated
                return updated
        created = AnswerRecord(str(uuid.uuid4()), question_id, user_id, answer_text)
        self.rows.append(created)
        return created


class FakeRedis:
    """テスト用の最小限の非同期Redis (TTLは無視)"""

    def __init__(self):
        self.data: dict = {}

    async def hset(self, key, field=None, value=None, mapping=None):
        h = self.data.setdefault(key, {})
        if mapping:
            h.update(mapping)
        if field is not None:
            h[field] = value
        return 1

    async def hgetall(self, key):
        return dict(self.data.get(key, {}))

    async def hget(self, key, field):
        return self.data.get(key, {}).get(field)

    async def expire(self, key, seconds):
        return key in self.data

    async def set(self, key, value, ex=None):
        self.data[key] = value
        return True

    async def get(self, key):
        value = self.data.get(key)
        return value if isinstance(value, str) else None

    async def delete(self, *keys):
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def ping(self):
        return True


QUESTION_DAY = date(2024, 12, 5)


@pytest.fixture
def question() -> QuestionRecord:
    return QuestionRecord(id="q1", question_date=QUESTION_DAY, text="Lieblingserinnerung?")


@pytest.fixture
def question_store(question) -> InMemoryQuestionStore:
    return InMemoryQuestionStore([question])


@pytest.fixture
def answer_store() -> InMemoryAnswerStore:
    return InMemoryAnswerStore()


@pytest.fixture(scope="function")
def db_engine():
    """インメモリSQLite (全スレッドで同一接続を共有)"""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine) -> Session:
    """Create a database session for testing"""
    session = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
