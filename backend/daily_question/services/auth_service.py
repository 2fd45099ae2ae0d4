"""認証ビジネスロジック (Identityプロバイダ側)"""
from typing import Optional

import bcrypt
from sqlalchemy.orm import Session

from daily_question.models.user import User
from daily_question.core.logging import get_logger

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """パスワードをbcryptでハッシュ化"""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    """パスワードを検証"""
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


def normalize_email(email: str) -> str:
    return email.strip().lower()


def create_user(db: Session, email: str, password: str) -> User:
    """新規ユーザー作成"""
    user = User(
        email=normalize_email(email),
        password_hash=hash_password(password),
        is_active=True,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"ユーザー作成: user_id={user.id}")
    return user


def authenticate(db: Session, email: str, password: str) -> Optional[User]:
    """メールアドレスとパスワードが一致すればユーザーを返す"""
    user = get_user_by_email(db, email)
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def get_user_by_id(db: Session, user_id: str) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()
