from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import List


class Settings(BaseSettings):

    DATABASE_URL: str = "sqlite:///./rfp_portal.db"
    SECRET_KEY: str
    ALGORITHM: str = "HS256"

    REDIS_HOST: str = "localhost"
    REDIS_PORT: int = 6379

    # Workflows
    INVITATION_EXPIRE_DAYS: int = 7
    DOWNLOAD_URL_EXPIRE_SECONDS: int = 300
    BLOB_BASE_URL: str = "http://localhost:9000/rfp-documents"
    FREE_MAIL_DOMAINS: List[str] = [
        "gmail.com", "yahoo.com", "hotmail.com", "outlook.com", "aol.com",
        "icloud.com", "protonmail.com", "tutanota.com", "yandex.com",
        "mail.ru", "qq.com", "163.com", "sina.com",
    ]

    # Email
    MAIL_USERNAME: str = ""
    MAIL_PASSWORD: str = ""
    MAIL_FROM: str = "no-reply@rfp-portal.local"
    MAIL_PORT: int = 587
    MAIL_SERVER: str = "localhost"

    FRONTEND_URL: str = "http://localhost:5173"
    CORS_ORIGINS: List[str] = ["http://localhost:5173", "http://localhost:8000"]

    class Config:
        env_file = ".env"


@lru_cache
def get_settings():
    return Settings()
