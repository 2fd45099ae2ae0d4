# 全モデルをインポート (Alembic autogenerate用)
from daily_question.models.user import User
from daily_question.models.question import Question
from daily_question.models.answer import Answer

__all__ = [
    "User",
    "Question",
    "Answer",
]
