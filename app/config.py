from typing import List

from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://user:password@db:5432/real_estate_db"
    REDIS_URL: str = "redis://localhost:6379/0"
    JWT_SECRET: str = "your_jwt_secret"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REMEMBER_TOKEN_EXPIRE_HOURS: int = 24
    BCRYPT_ROUNDS: int = 10
    MIN_PASSWORD_LENGTH: int = 6
    # "memory" keeps revoked tokens in this process only; "redis" shares them
    REVOCATION_BACKEND: str = "memory"
    RATE_LIMIT_ENABLED: bool = True
    AUTO_CREATE_TABLES: bool = True
    CORS_ORIGINS: List[str] = ["*"]
    DEFAULT_AVATAR_URL: str = (
        "https://res.cloudinary.com/dlkwv0qaq/image/upload/v1761876296/default-avatar-profile_bse2jk.webp"
    )
    LOG_LEVEL: str = "INFO"
    # Pagination defaults
    DEFAULT_PAGE_SIZE: int = 10
    MESSAGES_PAGE_SIZE: int = 3
    CONTACTS_PAGE_SIZE: int = 4
    MAX_PAGE_SIZE: int = 100
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"

settings = Settings()
