import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, UniqueConstraint, func
from daily_question.core.database import Base


class Answer(Base):
    __tablename__ = "answers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    question_id = Column(String(36), ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), nullable=False, index=True, comment="回答者のIdentity")
    answer_text = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=False, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("question_id", "user_id", name="uq_answer_question_user"),
    )
