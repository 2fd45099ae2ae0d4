import uuid
from sqlalchemy import Column, String, Text, Date, DateTime, func
from daily_question.core.database import Base


class Question(Base):
    __tablename__ = "questions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    question_date = Column(Date, unique=True, nullable=False, index=True, comment="出題日 (1日1問)")
    text = Column(Text, nullable=False, comment="質問文")
    created_at = Column(DateTime, nullable=False, server_default=func.now())
