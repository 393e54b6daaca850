from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    database_url: str = Field(..., alias="DATABASE_URL")
    # e.g. "READ COMMITTED", "REPEATABLE READ"; driver default when unset
    db_isolation_level: Optional[str] = Field(None, alias="DB_ISOLATION_LEVEL")

    jwt_secret_key: str = Field(..., alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(15, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Day of month on which each monthly installment falls due.
    monthly_due_day: int = Field(10, ge=1, le=28, alias="MONTHLY_DUE_DAY")
    # flat: every installment carries the full structure amount.
    # divided: the amount is spread over twelve installments.
    monthly_installment_mode: Literal["flat", "divided"] = Field("flat", alias="MONTHLY_INSTALLMENT_MODE")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
