from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./school.db"
    REDIS_URL: str = "redis://localhost:6379/3"
    SECRET_KEY: str = "dev-secret-school"
    JWT_ALGORITHM: str = "HS256"
    LOG_LEVEL: str = "INFO"
    CACHE_TTL: int = 300  # 5 minutes
    BULK_RATE_LIMIT_PER_MINUTE: int = 10
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    # Проверять занятость кабинета при составлении расписания
    SCHEDULE_ROOM_CONFLICTS: bool = True

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
