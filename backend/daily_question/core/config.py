from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """アプリケーション設定"""

    # データベース
    DATABASE_URL: str = "mysql+pymysql://qotd:qotdpassword@db:3306/daily_question?charset=utf8mb4"

    # Redis
    REDIS_URL: str = "redis://redis:6379/0"

    # サービス設定
    SITE_NAME: str = "Couple Questions"
    ALLOWED_ORIGINS: str = "http://localhost:8000,http://localhost:3000"

    # セッション
    SESSION_TIMEOUT_MINUTES: int = 60 * 24 * 7

    # 「今日」の判定に使うタイムゾーン
    QUESTION_TIMEZONE: str = "UTC"

    # 環境
    ENV: str = "development"
    DEBUG: bool = True

    @property
    def allowed_origins_list(self) -> list[str]:
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
